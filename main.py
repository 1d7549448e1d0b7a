#!/usr/bin/env python3
"""
ape-commands - command resolution for chat-style agents

Development entry point; the installed console script is ``ape-commands``.
"""

import sys
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from ape_commands.main import main


if __name__ == "__main__":
    sys.exit(main())
