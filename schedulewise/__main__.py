"""
Allows running the tool via ``python -m schedulewise``.
"""
import sys

from schedulewise.cli import main

if __name__ == "__main__":
    sys.exit(main())
