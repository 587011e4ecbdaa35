#!/usr/bin/env python3
"""
Install Builder Script

Installs the kernel builder system-wide from a source checkout. The
source directory defaults to the checkout root.
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from kbuilder.cli.installer import main


if __name__ == "__main__":
    argv = sys.argv[1:]
    if not any(arg.startswith("--source-dir") for arg in argv):
        argv = ["--source-dir", str(PROJECT_ROOT.resolve()), *argv]
    sys.exit(main(argv))
