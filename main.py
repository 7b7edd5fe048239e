#!/usr/bin/env python3
"""
dockjobs
Application entry point
"""

import sys

from dockjobs.cli import run_cli


def main():
    """Main function"""
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
