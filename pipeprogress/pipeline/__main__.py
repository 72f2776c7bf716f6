#!/usr/bin/env python3
"""Allow running as: python3 -m pipeprogress.pipeline <activity>"""

from pipeprogress.pipeline.cli import main
import sys

sys.exit(main() or 0)
