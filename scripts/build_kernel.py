#!/usr/bin/env python3
"""
Build Kernel Script

Runs the Orange Pi 5 Plus kernel builder from a source checkout.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kbuilder.cli.builder import main


if __name__ == "__main__":
    sys.exit(main())
