import sys

from threadview.cli import main

if __name__ == "__main__":
    sys.exit(main())
