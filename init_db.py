#!/usr/bin/env python3
"""
Startup initialization for the API and for Docker.
Creates the jobs table and the video output and job workspace directories.
"""

import logging
import os
import sys

from config import JOBS_SUBDIR, OUTPUT_DIR, REMOTION_PROJECT_DIR
from database import engine, Base
import models  # noqa: F401  registers the jobs table


def init_database(bind=engine, directories=None):
    """Create all tables and the directories jobs write into."""
    logging.info("Creating database tables...")
    Base.metadata.create_all(bind=bind)
    for path in directories or (OUTPUT_DIR, os.path.join(REMOTION_PROJECT_DIR, JOBS_SUBDIR)):
        os.makedirs(path, exist_ok=True)
    logging.info("✅ Database tables created successfully!")


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    try:
        init_database()
    except Exception as e:
        logging.error(f"❌ Error creating database tables: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
