#!/usr/bin/env python3
"""Run Journeymap from a source checkout.

Journeys are kept in ./.journeymap-data unless --data-dir or
JOURNEYMAP_DATA_DIR says otherwise, so development runs never touch the
installed app's files.
"""

import os
import sys

ROOT = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, ROOT)

from journeymap.launcher import main

if __name__ == "__main__":
    os.environ.setdefault("JOURNEYMAP_DATA_DIR", os.path.join(ROOT, ".journeymap-data"))
    sys.exit(main())
