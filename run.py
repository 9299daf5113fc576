#!/usr/bin/env python3
"""Convenience runner for the Desk Treadmill distance tool.

Usage:
    python run.py [--env-file strava.env] [--json]
"""
import logging
import sys

from desk_treadmill.main import main

if __name__ == "__main__":
    if not logging.getLogger().hasHandlers():
        logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s %(name)s: %(message)s")
    sys.exit(main())
