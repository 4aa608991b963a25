"""
MySQL database implementation
"""
import logging
from typing import Any

import mysql.connector
from mysql.connector import Error as MySQLError

from dbmodel.connectors.base import BaseDatabase
from dbmodel.utils.retry import with_retry

logger = logging.getLogger(__name__)


class MySQLDatabase(BaseDatabase):
    """MySQL database connection"""

    driver = 'mysql'
    placeholder = '%s'

    def connect(self) -> "MySQLDatabase":
        """Establish connection to MySQL, retrying transient failures connect_retries times"""
        attempts = max(1, int(self.config.get('connect_retries') or 3))
        return with_retry(max_attempts=attempts, delay_seconds=1.0, exceptions=(MySQLError,))(self._connect)()

    def _connect(self) -> "MySQLDatabase":
        """Statements autocommit outside transactions"""
        try:
            self.connection = mysql.connector.connect(
                host=self.config.get('host', 'localhost'),
                port=self.config.get('port', 3306),
                database=self.config['database'],
                user=self.config['username'],
                password=self.config['password'],
                charset=self.config.get('charset', 'utf8mb4'),
                autocommit=True
            )
            logger.info(f"Connected to MySQL at {self.config.get('host')}:{self.config.get('port')}")
            return self

        except MySQLError as e:
            logger.error(f"Failed to connect to MySQL: {e}")
            raise

    def disconnect(self) -> None:
        """Close MySQL connection"""
        if self.connection:
            self.connection.close()
            self.connection = None
            logger.info("Disconnected from MySQL")

    def _driver_errors(self) -> tuple:
        return (MySQLError,)

    def _begin(self) -> None:
        if self.connection is None:
            self.connect()
        self.connection.start_transaction()

    def _commit(self) -> None:
        self.connection.commit()

    def _rollback(self) -> None:
        self.connection.rollback()

    def escape(self, value: Any) -> str:
        """Render a value as an SQL literal, backslashes are escapes in MySQL strings"""
        if isinstance(value, str):
            value = value.replace('\\', '\\\\')
        return super().escape(value)

    def get_database_name(self) -> str:
        return self.config['database']
