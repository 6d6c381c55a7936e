#!/usr/bin/env python3
"""tpcdsbench CLI entrypoint -- run without pip install.

Usage:
    python tbrun.py run -f tpcdsbench.yaml
    python tbrun.py --help
"""

import sys
from pathlib import Path

# Add src/ to import path so the tpcdsbench package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from tpcdsbench.cli import app

if __name__ == "__main__":
    app()
