#!/usr/bin/env python3
"""
spindex CLI - neighborhood queries and reachability ordering on numeric data
"""

import argparse
import json
import sys
from pathlib import Path

import numpy as np

from spindex.config import SpindexConfig, load_config
from spindex.core.distance import DISTANCE_FUNCTIONS, get_distance_function
from spindex.core.vector import vectors_from_array
from spindex.index.rtree import RTree
from spindex.logging_utils import configure_logging
from spindex.optics import OPTICS


class SpindexCLI:
    """Main CLI interface for spindex."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the argument parser."""
        parser = argparse.ArgumentParser(
            prog="spindex",
            description="Spatial index queries and OPTICS cluster ordering",
        )
        parser.add_argument(
            "--config",
            metavar="DIR",
            help="Directory containing spindex.toml (default: current directory)",
        )
        parser.add_argument(
            "--log-level",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Override the configured log level",
        )

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        # Shared data arguments
        data_parser = argparse.ArgumentParser(add_help=False)
        data_parser.add_argument("data", help="Numeric matrix file, one record per row")
        data_parser.add_argument(
            "--delimiter",
            help="Column delimiter (default: ',' for .csv files, whitespace otherwise)",
        )
        data_parser.add_argument(
            "--distance",
            choices=sorted(DISTANCE_FUNCTIONS),
            help="Distance function (default: from config)",
        )

        # knn command
        knn_parser = subparsers.add_parser(
            "knn", parents=[data_parser], help="k nearest neighbors of a query point"
        )
        knn_parser.add_argument(
            "-q", "--query", required=True, help="Query point, comma separated"
        )
        knn_parser.add_argument(
            "-k", type=int, default=1, help="Number of neighbors (default: 1)"
        )
        knn_parser.add_argument("--json", action="store_true", help="Output as JSON")

        # range command
        range_parser = subparsers.add_parser(
            "range", parents=[data_parser], help="Records within a radius of a query point"
        )
        range_parser.add_argument(
            "-q", "--query", required=True, help="Query point, comma separated"
        )
        range_parser.add_argument(
            "-e", "--epsilon", type=float, required=True, help="Query radius"
        )
        range_parser.add_argument("--json", action="store_true", help="Output as JSON")

        # optics command
        optics_parser = subparsers.add_parser(
            "optics", parents=[data_parser], help="Compute the OPTICS cluster order"
        )
        optics_parser.add_argument(
            "-e", "--epsilon", type=float, help="Neighborhood radius (default: from config)"
        )
        optics_parser.add_argument(
            "-m", "--min-pts", type=int, help="Core point threshold (default: from config)"
        )
        optics_parser.add_argument(
            "-o", "--output", help="Write the cluster order to a file instead of stdout"
        )
        optics_parser.add_argument("--json", action="store_true", help="Output as JSON")

        # stats command
        stats_parser = subparsers.add_parser(
            "stats", parents=[data_parser], help="Show index statistics for a data set"
        )
        stats_parser.add_argument("--json", action="store_true", help="Output as JSON")

        return parser

    def run(self, args=None) -> int:
        """Run the CLI."""
        args = self.parser.parse_args(args)

        if not args.command:
            self.parser.print_help()
            return 0

        try:
            config = load_config(project_path=Path(args.config or Path.cwd()))
            if args.log_level:
                config.logging.level = args.log_level
            configure_logging(config.logging)

            if args.command == "knn":
                return self._cmd_knn(args, config)
            elif args.command == "range":
                return self._cmd_range(args, config)
            elif args.command == "optics":
                return self._cmd_optics(args, config)
            elif args.command == "stats":
                return self._cmd_stats(args, config)
            else:
                print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
                return 1
        except Exception as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    def _load_index(self, args, config: SpindexConfig) -> RTree:
        """Load the data file and bulk load it into an R-tree."""
        path = Path(args.data)
        if not path.exists():
            raise FileNotFoundError(f"Data file not found: {path}")

        delimiter = args.delimiter
        if delimiter is None and path.suffix.lower() == ".csv":
            delimiter = ","
        data = np.loadtxt(path, delimiter=delimiter, ndmin=2)
        if data.size == 0:
            raise ValueError(f"Data file is empty: {path}")

        return RTree.from_vectors(
            vectors_from_array(data), dimensionality=data.shape[1], config=config.index
        )

    def _parse_query(self, text: str) -> np.ndarray:
        try:
            return np.array([float(v) for v in text.split(",")], dtype=np.float64)
        except ValueError:
            raise ValueError(f"Invalid query point: {text!r}") from None

    def _distance(self, args, config: SpindexConfig):
        return get_distance_function(args.distance or config.optics.distance)

    def _print_results(self, results, as_json: bool) -> None:
        if as_json:
            print(
                json.dumps(
                    [{"id": r.vector_id, "distance": r.distance} for r in results],
                    indent=2,
                )
            )
            return
        if not results:
            print("No results")
            return
        for r in results:
            print(f"{r.vector_id}\t{r.distance:.6g}")

    def _cmd_knn(self, args, config: SpindexConfig) -> int:
        """Print the k nearest neighbors of the query point."""
        tree = self._load_index(args, config)
        query = self._parse_query(args.query)
        results = tree.knn_query(query, args.k, self._distance(args, config))
        self._print_results(results, args.json)
        return 0

    def _cmd_range(self, args, config: SpindexConfig) -> int:
        """Print the records within epsilon of the query point."""
        tree = self._load_index(args, config)
        query = self._parse_query(args.query)
        results = tree.range_query(query, args.epsilon, self._distance(args, config))
        self._print_results(results, args.json)
        return 0

    def _cmd_optics(self, args, config: SpindexConfig) -> int:
        """Compute the cluster order and print or save it."""
        tree = self._load_index(args, config)
        epsilon = args.epsilon if args.epsilon is not None else config.optics.epsilon
        min_pts = args.min_pts if args.min_pts is not None else config.optics.min_pts
        optics = OPTICS(epsilon, min_pts, self._distance(args, config))
        order = optics.run(tree)

        if args.json:
            text = json.dumps(order.to_dict(), indent=2)
        else:
            lines = ["id,predecessor,reachability"]
            for entry in order:
                pred = "" if entry.predecessor_id is None else str(entry.predecessor_id)
                lines.append(f"{entry.object_id},{pred},{entry.reachability:.6g}")
            text = "\n".join(lines)

        if args.output:
            output = Path(args.output)
            output.write_text(text + "\n")
            print(f"Wrote cluster order of {len(order)} records to {output}")
        else:
            print(text)
        return 0

    def _cmd_stats(self, args, config: SpindexConfig) -> int:
        """Show index statistics."""
        tree = self._load_index(args, config)
        stats = tree.get_stats()

        if args.json:
            print(json.dumps(stats, indent=2))
            return 0

        print(f"Vectors:        {stats['num_vectors']}")
        print(f"Dimensionality: {stats['dimensionality']}")
        print(f"Height:         {stats['height']}")
        print(f"Nodes:          {stats['num_nodes']} ({stats['num_leaves']} leaves)")
        print(f"Page capacity:  {stats['min_entries']}-{stats['max_entries']}")
        print(f"Average fill:   {stats['avg_fill']:.1%}")
        print(f"Page accesses:  {stats['io_access']}")
        return 0


def main():
    """Main entry point."""
    cli = SpindexCLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
