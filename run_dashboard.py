#!/usr/bin/env python3
"""
Simple runner script for the CommentGuard Dashboard.

Usage:
    python run_dashboard.py

Or make executable:
    chmod +x run_dashboard.py
    ./run_dashboard.py
"""

import sys
from pathlib import Path

# Add src and dashboard to path for imports
root = Path(__file__).parent
sys.path.insert(0, str(root / "src"))
sys.path.insert(0, str(root / "dashboard"))

from commentguard.config import load_config
from commentguard.utils.logging import setup_logging

from app import app, configure_app

if __name__ == "__main__":
    try:
        config = load_config()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)
    configure_app(config)
    app.run(host=config.dashboard_host, port=config.dashboard_port, debug=False)
