#!/usr/bin/env python3
"""
Simple runner script for the CommentGuard CLI.

Usage:
    python run.py init-db
    python run.py seed-settings
    python run.py make-admin USER_ID --username NAME
    python run.py check-text "some comment"
    python run.py audit USER_ID
"""

import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from commentguard import main

if __name__ == "__main__":
    main()
