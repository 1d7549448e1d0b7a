"""
Command-line argument parser for ape-commands.
"""

import argparse

from .. import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ape-commands",
        description="ape-commands - resolve and run @domain and /slash commands",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ape-commands                                  # Interactive prompt (default)
  ape-commands --parse '@git:commit -m "fix"'   # Show how a line parses
  ape-commands --execute '@jira 이슈 목록 보여줘'  # Run one line and exit
  ape-commands --list-commands                  # List registered commands
  ape-commands --plugin-dir ./plugins           # Load plugins from a directory
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ape-commands {__version__}"
    )

    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    mode_group = parser.add_mutually_exclusive_group()

    mode_group.add_argument(
        "--parse",
        type=str,
        metavar="TEXT",
        help="Parse a line and print the result as JSON"
    )

    mode_group.add_argument(
        "--execute",
        type=str,
        metavar="TEXT",
        help="Execute a single line and exit"
    )

    mode_group.add_argument(
        "--list-commands",
        action="store_true",
        help="List registered commands"
    )

    parser.add_argument(
        "--plugin-dir",
        action="append",
        default=[],
        metavar="DIR",
        dest="plugin_dirs",
        help="Additional plugin directory (repeatable)"
    )

    return parser


def parse_args(args=None):
    """Parse command line arguments."""
    parser = create_parser()
    return parser.parse_args(args)
