"""
Connector factory for creating databases and their tables
"""
from typing import Any, Dict, List, Optional

from dbmodel.connectors.base import BaseDatabase
from dbmodel.connectors.mysql import MySQLDatabase
from dbmodel.connectors.sqlite import SQLiteDatabase
from dbmodel.models.column import Column
from dbmodel.tables.base import AbstractTable
from dbmodel.tables.mysql import MySQLTable
from dbmodel.tables.sqlite import SQLiteTable


class ConnectorFactory:
    """Factory for creating database connections and driver specific tables"""

    _databases = {
        'mysql': MySQLDatabase,
        'sqlite': SQLiteDatabase,
        'sqlite3': SQLiteDatabase,
    }

    _tables = {
        'mysql': MySQLTable,
        'sqlite': SQLiteTable,
    }

    @classmethod
    def create_database(cls, db_type: str, config: Dict[str, Any]) -> BaseDatabase:
        """
        Create a database connection based on type

        Args:
            db_type: Type of database (mysql, sqlite)
            config: Database configuration dictionary

        Returns:
            Database instance, not yet connected

        Raises:
            ValueError: If database type is not supported
        """
        db_type_lower = db_type.lower()

        if db_type_lower not in cls._databases:
            raise ValueError(
                f"Unsupported database type: {db_type}. "
                f"Supported types: {', '.join(cls._databases.keys())}"
            )

        return cls._databases[db_type_lower](config)

    @classmethod
    def create_table(cls, database: BaseDatabase, name: str,
                     columns: Optional[List[Column]] = None, **options) -> AbstractTable:
        """
        Create a table bound to a database, matching its driver

        Args:
            database: Database the table lives in
            name: Table name
            columns: Declared columns, loaded from the database when omitted
            options: Driver specific table options

        Returns:
            Table instance
        """
        if database.driver not in cls._tables:
            raise ValueError(f"No table implementation for driver: {database.driver}")

        return cls._tables[database.driver](database, name, columns, **options)

    @classmethod
    def register_database(cls, db_type: str, database_class: type, table_class: type = None) -> None:
        """
        Register a new database type

        Args:
            db_type: Type identifier for the database
            database_class: Database class to register
            table_class: Table class used for databases of this driver
        """
        cls._databases[db_type.lower()] = database_class
        if table_class is not None:
            cls._tables[database_class.driver] = table_class

    @classmethod
    def get_supported_types(cls) -> list:
        """Get list of supported database types"""
        return list(cls._databases.keys())
