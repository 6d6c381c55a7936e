"""Resource path resolution for tpcdsbench.

Handles correct path resolution whether running from:
- Source tree (development)
- pip install (site-packages)
- PyInstaller bundle (frozen binary)
"""

from __future__ import annotations

import sys
from pathlib import Path


def _package_dir() -> Path:
    """Return the tpcdsbench package directory.

    Works in all execution contexts:
    - Development: src/tpcdsbench/
    - Installed: site-packages/tpcdsbench/
    - PyInstaller: sys._MEIPASS/tpcdsbench/
    """
    if getattr(sys, "frozen", False):
        # PyInstaller bundle -- data files extracted under _MEIPASS
        return Path(sys._MEIPASS) / "tpcdsbench"  # type: ignore[attr-defined]
    return Path(__file__).parent


def get_queries_dir() -> Path:
    """Return path to the TPC-DS query template directory."""
    return _package_dir() / "benchmark" / "sql"
