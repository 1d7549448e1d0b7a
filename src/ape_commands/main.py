"""
Console entry point for ape-commands.
"""

import sys

from .cli import parse_args, handle_cli_command


def main() -> int:
    """Main entry point for ape-commands."""
    try:
        args = parse_args()
        return handle_cli_command(args)
    except KeyboardInterrupt:
        print("\nGoodbye!")
        return 0


if __name__ == "__main__":
    sys.exit(main())
