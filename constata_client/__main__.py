"""
CLI entry point.

Usage:
    python -m constata_client --help
"""
import sys

from constata_client.cli import main

if __name__ == "__main__":
    sys.exit(main())
