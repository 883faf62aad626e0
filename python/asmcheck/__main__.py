"""Allow ``python -m asmcheck``."""

import sys

from asmcheck.cli import main

if __name__ == '__main__':
    sys.exit(main())
