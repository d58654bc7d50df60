#!/usr/bin/env python3
"""
stacktodate - Track technology lifecycle statuses from a source checkout.

Usage:
    std.py autodetect [PATH]   # Detect technologies and their EOL status
    std.py check               # Compare stacktodate.yml with detection
    std.py push                # Send the stack to stacktodate.club
"""

import os
import sys

# Add current directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from stacktodate.cli import main


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
