"""
Base database interface: statement execution, escaping and nested transactions
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from dbmodel.core.exceptions import NoTransaction, QueryError, RollbackOnly

logger = logging.getLogger(__name__)


class BaseDatabase(ABC):
    """Abstract base class for database connections"""

    driver: str = ''
    placeholder: str = '?'

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.connection = None
        self._transaction_depth = 0
        self._rollback_only = False
        self._last_insert_id = None

    @abstractmethod
    def connect(self) -> "BaseDatabase":
        """Establish connection to the database"""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close database connection"""
        pass

    @abstractmethod
    def _driver_errors(self) -> tuple:
        """Exception classes raised by the underlying driver"""
        pass

    @abstractmethod
    def _begin(self) -> None:
        pass

    @abstractmethod
    def _commit(self) -> None:
        pass

    @abstractmethod
    def _rollback(self) -> None:
        pass

    def _cursor(self):
        if self.connection is None:
            self.connect()
        return self.connection.cursor()

    def _run(self, sql: str, params: Optional[Sequence[Any]], fetch: bool):
        params = tuple(params or ())
        logger.debug(f"Executing: {sql} | params: {params}")
        cursor = self._cursor()
        try:
            cursor.execute(sql, params)
            if fetch:
                return self._rows(cursor)
            if sql.lstrip().upper().startswith('INSERT'):
                self._last_insert_id = cursor.lastrowid
            return cursor.rowcount
        except self._driver_errors() as e:
            logger.error(f"Query failed: {e} | SQL: {sql}")
            raise QueryError(str(e), sql, params) from e
        finally:
            cursor.close()

    def _rows(self, cursor) -> List[Dict[str, Any]]:
        columns = [description[0] for description in cursor.description or ()]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """
        Execute a statement that returns no rows

        Args:
            sql: SQL text with driver placeholders
            params: Values bound to the placeholders

        Returns:
            Number of affected rows as reported by the driver
        """
        return self._run(sql, params, fetch=False)

    def fetch_all(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """Execute a query and return rows as dictionaries"""
        return self._run(sql, params, fetch=True)

    def fetch_value(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Execute a query and return the first column of the first row"""
        rows = self.fetch_all(sql, params)
        if not rows:
            return None
        return next(iter(rows[0].values()))

    def last_insert_id(self) -> Optional[Any]:
        """Id generated by the most recent insert, None when there was none"""
        return self._last_insert_id or None

    def escape(self, value: Any) -> str:
        """Render a value as an SQL literal"""
        if value is None:
            return 'NULL'
        if isinstance(value, bool):
            return '1' if value else '0'
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        return "'" + str(value).replace("'", "''") + "'"

    def begin_transaction(self) -> None:
        """Open a transaction, nested calls only increase the depth"""
        if self._transaction_depth == 0:
            self._rollback_only = False
            self._begin()
            logger.debug("Transaction started")
        self._transaction_depth += 1

    def commit(self) -> None:
        if self._transaction_depth == 0:
            raise NoTransaction("Cannot commit, no transaction is active")
        if self._rollback_only:
            raise RollbackOnly(
                "Transaction was marked for rollback by an inner rollback, roll back instead"
            )

        self._transaction_depth -= 1
        if self._transaction_depth == 0:
            self._commit()
            logger.debug("Transaction committed")

    def rollback(self) -> None:
        if self._transaction_depth == 0:
            raise NoTransaction("Cannot roll back, no transaction is active")

        self._transaction_depth -= 1
        if self._transaction_depth == 0:
            self._rollback_only = False
            self._rollback()
            logger.debug("Transaction rolled back")
        else:
            self._rollback_only = True

    def in_transaction(self) -> bool:
        return self._transaction_depth > 0

    @contextmanager
    def transaction(self):
        """Commit on success, roll back when the block raises or was marked rollback only"""
        self.begin_transaction()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        try:
            self.commit()
        except RollbackOnly:
            self.rollback()
            raise

    def __enter__(self):
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()
