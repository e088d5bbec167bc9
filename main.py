#!/usr/bin/env python3
"""
Blue Button Finder - Main Entry Point

Runs the console harness: connection check, text prompt, then the
screen/region/file analysis menu.
"""

import sys
from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)

from bluebutton.cli import main


if __name__ == "__main__":
    sys.exit(main())
