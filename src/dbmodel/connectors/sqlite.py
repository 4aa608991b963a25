"""
SQLite database implementation
"""
import logging
import sqlite3

from dbmodel.connectors.base import BaseDatabase

logger = logging.getLogger(__name__)


class SQLiteDatabase(BaseDatabase):
    """SQLite database connection"""

    driver = 'sqlite'
    placeholder = '?'

    def connect(self) -> "SQLiteDatabase":
        """Open the database file, explicit BEGIN statements delimit transactions"""
        path = self.config.get('path') or self.config.get('database') or ':memory:'
        try:
            self.connection = sqlite3.connect(path, isolation_level=None)
            logger.info(f"Connected to SQLite database {path}")
            return self

        except sqlite3.Error as e:
            logger.error(f"Failed to open SQLite database {path}: {e}")
            raise

    def disconnect(self) -> None:
        """Close SQLite connection"""
        if self.connection:
            self.connection.close()
            self.connection = None
            logger.info("Disconnected from SQLite")

    def _driver_errors(self) -> tuple:
        return (sqlite3.Error,)

    def _begin(self) -> None:
        self.execute("BEGIN")

    def _commit(self) -> None:
        self.execute("COMMIT")

    def _rollback(self) -> None:
        self.execute("ROLLBACK")
