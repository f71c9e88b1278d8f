#!/usr/bin/env python3
"""
Database initialization script for Docker.
Creates tables if they don't exist.
"""

import sys
import logging
from database import engine, Base
from models import StorageEntry  # noqa: F401  registers the table on Base

def init_database():
    """Initialize the database by creating all tables."""
    logging.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logging.info("✅ Database tables created successfully!")

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    try:
        init_database()
    except Exception as e:
        logging.error(f"❌ Error creating database tables: {e}")
        sys.exit(1)
