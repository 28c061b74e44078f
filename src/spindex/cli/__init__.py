"""spindex command line interface"""

from spindex.cli.main import SpindexCLI, main

__all__ = ["SpindexCLI", "main"]
