"""Launch with: python -m easyshot <command>"""

import sys

from easyshot.cli import main

if __name__ == "__main__":
    sys.exit(main())
