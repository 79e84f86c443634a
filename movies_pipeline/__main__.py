"""
Entry point for running the pipeline as a module.

Usage:
    python -m movies_pipeline <command>
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
