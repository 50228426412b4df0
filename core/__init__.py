"""
Project package: settings, URLs, Celery app and shared service helpers.
"""

from django.db.backends.signals import connection_created

from .celery import app as celery_app

__all__ = ("celery_app",)


def enable_sqlite_wal(sender, connection, **kwargs):
    """Use WAL journaling on SQLite so readers don't block the writer."""
    if connection.vendor == "sqlite":
        cursor = connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.execute("PRAGMA busy_timeout=30000;")


connection_created.connect(enable_sqlite_wal)
