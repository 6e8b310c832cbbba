"""
Database Initialization Script for the Kandoo Foundation API

Creates any missing tables and adds columns introduced by newer releases.
Existing data is never dropped.

Usage:
    python init_db.py [development|production]
"""

import sys

from app import create_app
from database import init_database


def main(config_name=None):
    """Initialize the database with all tables"""
    app = create_app(config_name)
    # create_app already initializes unless SKIP_DB_INIT is set
    if app.config.get('SKIP_DB_INIT'):
        init_database(app)

    print("Database tables initialized:")
    print("- users, bios")
    print("- blogs (reviews embedded as JSON)")
    print("- donations, payment_methods")
    print("- volunteers")


if __name__ == '__main__':
    print("Kandoo Foundation Database Initialization")
    print("=" * 50)
    main(sys.argv[1] if len(sys.argv) > 1 else None)
