import sys

from fga_typegen.cli import main


if __name__ == "__main__":
    sys.exit(main())
