"""Entry point for taskboard when run as a module.

This allows the package to be run with: python -m taskboard
"""

import sys

from taskboard.cli import main

if __name__ == "__main__":
    sys.exit(main())
