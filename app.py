#!/usr/bin/env python3
"""
DSE Market Data - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
Long-running process for the scheduled jobs.

- Compatible with PM2 process management
- Daily close scrape every hour (window from 19:00 market time)
- Live snapshot and price alerts every 15 minutes in market hours
- Handles SIGINT / SIGTERM gracefully

============================================================
USAGE
============================================================
Direct execution:
    python app.py

With PM2:
    pm2 start app.py --interpreter python --name dse-market-data

One-off runs go through the CLI:
    python -m orchestrator.cli daily

============================================================
"""

import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.absolute()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from orchestrator.cli import main


# ============================================================
# ENTRY POINT
# ============================================================

if __name__ == "__main__":
    sys.exit(main(["schedule"] + sys.argv[1:]))
