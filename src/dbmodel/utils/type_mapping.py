"""
Type mapping between semantic column types and database column types
"""
import logging
from typing import TYPE_CHECKING, List, Tuple

if TYPE_CHECKING:
    from dbmodel.models.column import Column

logger = logging.getLogger(__name__)


class TypeMapper:
    """Maps semantic column types to driver DDL types and back"""

    # Driver DDL per semantic type, without length
    TYPE_MAPPINGS = {
        'mysql': {
            'int': 'INT',
            'float': 'FLOAT',
            'bool': 'BOOLEAN',
            'string': 'VARCHAR',
            'text': 'TEXT',
            'datetime': 'DATETIME',
            'null': 'TEXT',
        },
        'sqlite': {
            'int': 'INT',
            'float': 'FLOAT',
            'bool': 'BOOLEAN',
            'string': 'VARCHAR',
            'text': 'TEXT',
            'datetime': 'DATETIME',
            'null': 'TEXT',
        },
    }

    # Checked in order, first substring match wins
    REVERSE_MAPPINGS: List[Tuple[str, str]] = [
        ('tinyint(1)', 'bool'),
        ('bool', 'bool'),
        ('int', 'int'),
        ('float', 'float'),
        ('double', 'float'),
        ('decimal', 'float'),
        ('real', 'float'),
        ('numeric', 'float'),
        ('text', 'text'),
        ('date', 'datetime'),
        ('time', 'datetime'),
        ('char', 'string'),
        ('clob', 'string'),
        ('null', 'null'),
    ]

    DEFAULT_LENGTHS = {
        'int': 11,
        'float': 11,
        'string': 255,
    }

    @classmethod
    def to_database_type(cls, column: 'Column', driver: str) -> str:
        """
        Build the DDL type of a column for a driver

        Args:
            column: Column definition
            driver: Driver name (mysql, sqlite)

        Returns:
            Database type such as INT(11) or VARCHAR(255)
        """
        if column.database_type:
            return column.database_type

        mapping = cls.TYPE_MAPPINGS.get(driver.lower())
        if mapping is None:
            raise ValueError(f"Unsupported driver for type mapping: {driver}")

        type_name = column.type.value

        # SQLite only aliases rowid for a bare INTEGER key
        if driver.lower() == 'sqlite' and column.auto_increment and column.primary_key:
            return 'INTEGER'

        if type_name == 'float' and isinstance(column.length, str):
            return f"DECIMAL({column.length})"

        base = mapping[type_name]
        if type_name in cls.DEFAULT_LENGTHS:
            length = column.length or cls.DEFAULT_LENGTHS[type_name]
            return f"{base}({length})"
        return base

    @classmethod
    def from_database_type(cls, db_type: str) -> str:
        """
        Map a database type to a semantic type name

        Matching is a plain substring search, unknown types map to string.
        """
        lowered = (db_type or '').lower()
        for needle, type_name in cls.REVERSE_MAPPINGS:
            if needle in lowered:
                return type_name

        logger.debug(f"No mapping for database type '{db_type}', using string")
        return 'string'
