"""Allow ``python -m bluebutton``."""

import sys

from bluebutton.cli import main

if __name__ == "__main__":
    sys.exit(main())
