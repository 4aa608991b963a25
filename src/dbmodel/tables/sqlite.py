"""
SQLite table implementation
"""
import logging
from typing import Any, Dict, List, Optional

from dbmodel.connectors.base import BaseDatabase
from dbmodel.models.column import Column
from dbmodel.tables.base import AbstractTable, Clause

logger = logging.getLogger(__name__)


class SQLiteTable(AbstractTable):
    """Table stored in a SQLite database"""

    ESCAPE_CHAR = '"'
    REBUILD_SUFFIX = '__rebuild'

    def __init__(self, database: BaseDatabase, name: str, columns: Optional[List[Column]] = None,
                 preserve_data_on_rebuild: bool = True):
        super().__init__(database, name, columns)
        self.preserve_data_on_rebuild = preserve_data_on_rebuild

    @staticmethod
    def _literal(default: Optional[str]) -> Optional[str]:
        if default is None or default.upper() == 'NULL':
            return None
        if len(default) >= 2 and default[0] == default[-1] and default[0] in ("'", '"'):
            return default[1:-1].replace("''", "'")
        return default

    def get_db_columns(self) -> Dict[str, Column]:
        """Read column definitions with PRAGMA table_info"""
        rows = self.database.fetch_all(f"PRAGMA table_info({self.get_name()})")
        if not rows:
            return {}

        table_sql = self.database.fetch_value(
            "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = ?", (self.name,)
        ) or ''
        autoincrement = 'AUTOINCREMENT' in table_sql.upper()

        columns = {}
        for row in rows:
            primary_key = bool(row['pk'])
            columns[row['name']] = Column.from_database_type(
                row['name'],
                row['type'],
                nullable=not row['notnull'],
                default=self._literal(row['dflt_value']),
                primary_key=primary_key,
                auto_increment=autoincrement and primary_key and row['type'].upper() == 'INTEGER'
            )
        return columns

    def get_column_definition(self, column: Column, with_key: bool = False) -> str:
        name = self.escape_column(column.name)
        if column.auto_increment and column.primary_key:
            return f"{name} INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT"

        definition = f"{name} {column.get_database_type(self.database.driver)}"
        definition += ' NULL' if column.nullable else ' NOT NULL'
        if column.default is not None:
            definition += f" DEFAULT {self.database.escape(column.default)}"
        if with_key:
            definition += ' PRIMARY KEY'
        return definition

    def _write_filter(self, conditions: Any, limit: Any) -> Clause:
        """SQLite has no LIMIT on UPDATE/DELETE, limit through a rowid subselect"""
        if limit is None:
            return super()._write_filter(conditions, None)
        where, params = self._conditions_clause(conditions)
        subselect = f"SELECT rowid FROM {self.get_name()}{where}{self._limit_clause(limit)}"
        return f" WHERE rowid IN ({subselect})", params

    def synchronize(self) -> bool:
        """
        Alter the live table to match the declared columns

        New columns are added in place. Removed or modified columns and
        primary key changes rebuild the table, copying the shared columns when
        preserve_data_on_rebuild is set.
        """
        db_columns = self.get_db_columns()
        if not db_columns:
            return self.create()

        columns = self.get_columns()
        removed = [name for name in db_columns if name not in columns]
        modified = [
            name for name, column in columns.items()
            if name in db_columns and column.differs_from(db_columns[name])
        ]
        if removed or modified:
            logger.info(f"Rebuilding table {self.name} (removed: {removed}, modified: {modified})")
            return self._rebuild(db_columns)

        for name, column in columns.items():
            if name in db_columns:
                continue
            definition = self.get_column_definition(column)
            if not column.nullable and column.default is None:
                definition += f" DEFAULT {self.database.escape(column.get_default_value())}"
            self.database.execute(f"ALTER TABLE {self.get_name()} ADD COLUMN {definition}")
            logger.info(f"Added column {name} to table {self.name}")
        return True

    def _rebuild(self, db_columns: Dict[str, Column]) -> bool:
        if not self.preserve_data_on_rebuild:
            logger.warning(f"Recreating table {self.name}, existing rows are discarded")
            return self.create(replace=True)

        shared = [name for name in self.get_column_names() if name in db_columns]
        backup = self.escape_column(f"{self.name}{self.REBUILD_SUFFIX}")
        with self.database.transaction():
            self.database.execute(f"ALTER TABLE {self.get_name()} RENAME TO {backup}")
            self.create()
            if shared:
                names = ', '.join(self.escape_column(name) for name in shared)
                self.database.execute(
                    f"INSERT INTO {self.get_name()} ({names}) SELECT {names} FROM {backup}"
                )
            self.database.execute(f"DROP TABLE {backup}")
        return True

    def clear(self) -> bool:
        self.database.execute(f"DELETE FROM {self.get_name()}")
        self.database.execute("VACUUM")
        return True
