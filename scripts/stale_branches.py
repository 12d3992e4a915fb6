#!/usr/bin/env python3
"""List stale branches across a Bitbucket workspace.

Pass --delete to remove stale branches that are not protected.
"""

import sys

from branchsweep.cli import main

if __name__ == "__main__":
    sys.exit(main())
