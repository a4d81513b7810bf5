#main.py
import sys

from statussync.__main__ import main

if __name__ == "__main__":
    sys.exit(main())
