"""
SQLite persistence for accounts and reservations.
"""

from .sqlite_account_repository import SqliteAccountRepository

__all__ = ["SqliteAccountRepository"]
