"""
Persistence helpers: connectivity check, schema creation, additive migrations,
raw queries and the scoped transaction used by multi-statement writes
"""

import logging
from contextlib import contextmanager

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from models import db

logger = logging.getLogger(__name__)

# (table, column, DDL type) added when missing; never dropped or altered
ADDITIVE_COLUMNS = (
    ('blogs', 'reviews', 'JSON'),
    ('blogs', 'version', 'INTEGER NOT NULL DEFAULT 1'),
)


class DatabaseUnavailableError(RuntimeError):
    """Raised when the startup connectivity check fails"""


def query(sql, params=None):
    """Run a raw SQL statement and return the rows as dictionaries"""
    result = db.session.execute(text(sql), params or {})
    return [dict(row) for row in result.mappings().all()]


@contextmanager
def transaction():
    """Commit everything done on the yielded session, or roll all of it back"""
    session = db.session
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def check_connection():
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        logger.error(f"Database connectivity check failed: {e}")
        raise DatabaseUnavailableError('Could not connect to the database') from e
    finally:
        db.session.remove()
    logger.info("Successfully connected to the database")


def apply_additive_migrations():
    """Add columns that newer code expects to tables created by older releases"""
    inspector = inspect(db.engine)
    tables = set(inspector.get_table_names())
    applied = []
    for table, column, ddl in ADDITIVE_COLUMNS:
        if table not in tables:
            continue
        existing = {c['name'] for c in inspector.get_columns(table)}
        if column in existing:
            continue
        with db.engine.begin() as connection:
            connection.execute(text(f'ALTER TABLE {table} ADD COLUMN {column} {ddl}'))
        logger.info(f"Added column {table}.{column}")
        applied.append((table, column))
    return applied


def init_database(app):
    """Verify connectivity, then create missing tables and columns"""
    with app.app_context():
        check_connection()
        db.create_all()
        apply_additive_migrations()
        logger.info("Database tables initialized")
