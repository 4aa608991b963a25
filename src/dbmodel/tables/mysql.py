"""
MySQL table implementation
"""
import logging
from typing import Dict

from dbmodel.models.column import Column
from dbmodel.tables.base import AbstractTable

logger = logging.getLogger(__name__)


class MySQLTable(AbstractTable):
    """Table stored in a MySQL database"""

    ESCAPE_CHAR = '`'

    def get_db_columns(self) -> Dict[str, Column]:
        """Read column definitions from information_schema"""
        query = """
            SELECT
                COLUMN_NAME AS column_name,
                COLUMN_TYPE AS column_type,
                IS_NULLABLE AS is_nullable,
                COLUMN_DEFAULT AS column_default,
                COLUMN_KEY AS column_key,
                EXTRA AS extra
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s
            ORDER BY ORDINAL_POSITION
        """
        rows = self.database.fetch_all(query, (self.database.config['database'], self.name))

        columns = {}
        for row in rows:
            columns[row['column_name']] = Column.from_database_type(
                row['column_name'],
                row['column_type'],
                nullable=row['is_nullable'] == 'YES',
                default=row['column_default'],
                primary_key=row['column_key'] == 'PRI',
                auto_increment='auto_increment' in (row['extra'] or '').lower()
            )
        return columns

    def get_column_definition(self, column: Column, with_key: bool = False) -> str:
        definition = f"{self.escape_column(column.name)} {column.get_database_type(self.database.driver)}"
        definition += ' NULL' if column.nullable else ' NOT NULL'
        if column.default is not None:
            definition += f" DEFAULT {self.database.escape(column.default)}"
        if column.auto_increment:
            definition += ' AUTO_INCREMENT'
        if with_key:
            definition += ' PRIMARY KEY'
        return definition

    def synchronize(self) -> bool:
        """
        Alter the live table to match the declared columns

        Adds, modifies and drops columns and replaces the primary key when its
        columns changed. A missing table is created.
        """
        db_columns = self.get_db_columns()
        if not db_columns:
            return self.create()

        columns = self.get_columns()
        changes = []
        for name, column in columns.items():
            if name not in db_columns:
                changes.append(f"ADD COLUMN {self.get_column_definition(column)}")
            elif column.differs_from(db_columns[name]):
                changes.append(f"MODIFY COLUMN {self.get_column_definition(column)}")

        for name in db_columns:
            if name not in columns:
                changes.append(f"DROP COLUMN {self.escape_column(name)}")

        db_pks = [name for name, column in db_columns.items() if column.primary_key]
        pks = self.get_pk_fields()
        if db_pks != pks:
            if db_pks:
                changes.insert(0, "DROP PRIMARY KEY")
            if pks:
                changes.append(f"ADD PRIMARY KEY ({', '.join(self.escape_column(pk) for pk in pks)})")

        if not changes:
            logger.debug(f"Table {self.name} is up to date")
            return True

        self.database.execute(f"ALTER TABLE {self.get_name()} {', '.join(changes)}")
        logger.info(f"Synchronized table {self.name}: {len(changes)} change(s)")
        return True

    def clear(self) -> bool:
        self.database.execute(f"TRUNCATE TABLE {self.get_name()}")
        return True
