"""
Column definition and value formatting
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

from dbmodel.core.exceptions import InvalidColumnType
from dbmodel.utils.type_mapping import TypeMapper


class ColumnType(Enum):
    """Semantic column types"""
    INTEGER = "int"
    FLOAT = "float"
    BOOLEAN = "bool"
    STRING = "string"
    TEXT = "text"
    DATETIME = "datetime"
    NULL = "null"


NUMERIC_PREFIX = re.compile(r'\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?')

def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip('-').isdigit():
            return int(stripped) != 0
        return stripped != ''
    return bool(value)


def _numeric_prefix(value: str) -> float:
    """Leading number of a string, 0.0 when it does not start with one"""
    match = NUMERIC_PREFIX.match(value)
    return float(match.group()) if match else 0.0


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, str):
        stripped = value.strip()
        try:
            return int(stripped)
        except ValueError:
            return int(_numeric_prefix(stripped))
    return int(value)


def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, str):
        return _numeric_prefix(value)
    return float(value)


def _to_str(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, bool):
        return '1' if value else ''
    return str(value)


FORMATTERS: Dict[ColumnType, Callable[[Any], Any]] = {
    ColumnType.INTEGER: _to_int,
    ColumnType.FLOAT: _to_float,
    ColumnType.BOOLEAN: _to_bool,
    ColumnType.STRING: _to_str,
    ColumnType.TEXT: _to_str,
    ColumnType.DATETIME: _to_str,
    ColumnType.NULL: lambda value: None,
}


@dataclass
class Column:
    """Column definition in a table"""
    name: str
    type: Union[ColumnType, str] = ColumnType.STRING
    default: Optional[Any] = None
    nullable: bool = False
    primary_key: bool = False
    auto_increment: bool = False
    length: Optional[Union[int, str]] = None
    database_type: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate the semantic type"""
        if not isinstance(self.type, ColumnType):
            try:
                self.type = ColumnType(str(self.type).lower())
            except ValueError:
                raise InvalidColumnType(
                    f"Type '{self.type}' of column '{self.name}' is not supported. "
                    f"Supported types: {', '.join(t.value for t in ColumnType)}"
                )

    @classmethod
    def from_database_type(cls, name: str, db_type: str, **kwargs) -> "Column":
        """Create a column from a driver type such as VARCHAR(255)"""
        return cls(
            name=name,
            type=TypeMapper.from_database_type(db_type),
            database_type=db_type.upper() if db_type else None,
            **kwargs
        )

    def format(self, value: Any,
               mapping: Optional[Dict[ColumnType, Callable[[Any], Any]]] = None) -> Any:
        """
        Coerce a raw value to the column type

        Args:
            value: Raw value read from storage or given by a caller
            mapping: Optional per-type conversion overrides

        Returns:
            Value of the column type, or None for a null on a nullable column
        """
        if self.nullable and (value is None or
                              (isinstance(value, str) and value.lower() == 'null')):
            return None

        converters = FORMATTERS if not mapping else {**FORMATTERS, **mapping}
        return converters[self.type](value)

    def get_default_value(self) -> Any:
        """Default value formatted to the column type"""
        return self.format(self.default)

    def is_nullable(self) -> bool:
        return self.nullable

    def is_primary_key(self) -> bool:
        return self.primary_key

    def is_auto_increment(self) -> bool:
        return self.auto_increment

    def get_database_type(self, driver: str) -> str:
        """DDL type of this column for a driver"""
        return TypeMapper.to_database_type(self, driver)

    def differs_from(self, other: "Column") -> bool:
        """
        Check whether the definitions differ enough to require an ALTER

        Defaults are only compared when this column declares one.
        """
        def normalized(default):
            if default is None:
                return None
            if isinstance(default, str):
                default = default.strip("'\"")
            return self.format(default)

        return (
            self.type != other.type
            or self.nullable != other.nullable
            or self.primary_key != other.primary_key
            or self.auto_increment != other.auto_increment
            or (self.default is not None and normalized(self.default) != normalized(other.default))
        )

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'name': self.name,
            'type': self.type.value,
            'default': self.default,
            'nullable': self.nullable,
            'primary_key': self.primary_key,
            'auto_increment': self.auto_increment,
            'length': self.length,
        }
