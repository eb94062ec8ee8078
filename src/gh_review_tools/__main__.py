"""Entry point: python -m gh_review_tools"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
