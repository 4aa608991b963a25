"""
Base table: SQL generation and the key-value storage contract used by models
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union

from dbmodel.connectors.base import BaseDatabase
from dbmodel.core.exceptions import EmptyValues, InvalidConditions
from dbmodel.models.column import Column
from dbmodel.models.condition import Cond, Condition
from dbmodel.models.query import COLUMNS_ALL, Query

logger = logging.getLogger(__name__)

Clause = Tuple[str, List[Any]]


class AbstractTable(ABC):
    """Abstract base class for driver specific tables"""

    ESCAPE_CHAR = '"'

    def __init__(self, database: BaseDatabase, name: str, columns: Optional[List[Column]] = None):
        self.database = database
        self.name = name
        self._columns: Dict[str, Column] = {}
        if columns:
            self.set_columns(columns)

    @abstractmethod
    def get_db_columns(self) -> Dict[str, Column]:
        """
        Read the live column definitions of this table

        Returns:
            Columns keyed by name, empty when the table does not exist
        """
        pass

    @abstractmethod
    def get_column_definition(self, column: Column, with_key: bool = False) -> str:
        """
        Build the DDL fragment of a column

        Args:
            column: Column to render
            with_key: Declare the column as the (single) primary key inline

        Returns:
            Column definition such as "name" VARCHAR(255) NOT NULL
        """
        pass

    @abstractmethod
    def synchronize(self) -> bool:
        """Alter the live table to match the declared columns"""
        pass

    @abstractmethod
    def clear(self) -> bool:
        """Remove every row"""
        pass

    def escape_column(self, name: str) -> str:
        """Quote an identifier, qualified names are quoted per part"""
        if name == COLUMNS_ALL:
            return name
        char = self.ESCAPE_CHAR
        return '.'.join(
            f"{char}{part.replace(char, char * 2)}{char}" for part in str(name).split('.')
        )

    def get_name(self, escaped: bool = True) -> str:
        return self.escape_column(self.name) if escaped else self.name

    def set_columns(self, columns: List[Column]) -> "AbstractTable":
        resolved = {}
        for column in columns:
            if not isinstance(column, Column):
                raise TypeError(f"Table columns must be Column instances, got {type(column).__name__}")
            resolved[column.name] = column
        self._columns = resolved
        return self

    def get_columns(self, primary_keys_only: bool = False) -> Dict[str, Column]:
        """Declared columns, loaded from the database when none were declared"""
        if not self._columns:
            self._columns = self.get_db_columns()
        if primary_keys_only:
            return {name: column for name, column in self._columns.items() if column.primary_key}
        return self._columns

    def get_column_names(self) -> List[str]:
        return list(self.get_columns())

    def get_pk_fields(self) -> List[str]:
        return list(self.get_columns(primary_keys_only=True))

    def get_pk_field(self) -> Union[str, List[str], None]:
        """Name of the primary key, or the list of names when it is composite"""
        pks = self.get_pk_fields()
        if not pks:
            return None
        return pks[0] if len(pks) == 1 else pks

    def get_fields(self) -> List[str]:
        """Names of the columns that are not part of the primary key"""
        return [name for name, column in self.get_columns().items() if not column.primary_key]

    def format(self, data: Dict[str, Any], defaults: bool = False) -> Dict[str, Any]:
        """
        Coerce row values to their column types

        Args:
            data: Row keyed by column name
            defaults: Fill columns missing from data with their default value

        Returns:
            Formatted row, keys without a column are kept unchanged
        """
        columns = self.get_columns()
        result = {}
        for name, column in columns.items():
            if name in data:
                result[name] = column.format(data[name])
            elif defaults:
                result[name] = column.get_default_value()
        for key, value in data.items():
            if key not in columns:
                result[key] = value
        return result

    def create(self, replace: bool = False) -> bool:
        """Create the table from the declared columns"""
        if replace:
            self.remove()

        columns = self.get_columns()
        pks = self.get_pk_fields()
        if not pks:
            logger.warning(f"Table {self.name} is created without a primary key")

        definitions = [
            self.get_column_definition(column, with_key=len(pks) == 1 and column.primary_key)
            for column in columns.values()
        ]
        if len(pks) > 1:
            definitions.append(f"PRIMARY KEY ({', '.join(self.escape_column(pk) for pk in pks)})")

        sql = f"CREATE TABLE IF NOT EXISTS {self.get_name()} ({', '.join(definitions)})"
        self.database.execute(sql)
        logger.info(f"Created table {self.name}")
        return True

    def remove(self) -> bool:
        self.database.execute(f"DROP TABLE IF EXISTS {self.get_name()}")
        logger.info(f"Dropped table {self.name}")
        return True

    @staticmethod
    def _is_empty(conditions: Any) -> bool:
        if conditions is None:
            return True
        if isinstance(conditions, (dict, str, list, tuple)):
            return not conditions
        return False

    def _conditions_clause(self, conditions: Any) -> Clause:
        if self._is_empty(conditions):
            return '', []
        if isinstance(conditions, str):
            return f" WHERE {conditions.strip()}", []
        if isinstance(conditions, dict):
            conditions = Cond.from_dict(conditions)
        if isinstance(conditions, Condition):
            sql, params = conditions.to_sql(self.escape_column, self.database.placeholder)
            return (f" WHERE {sql}" if sql else ''), params
        raise InvalidConditions(
            f"Conditions must be a string, a dict or a Condition, got {type(conditions).__name__}"
        )

    def _columns_clause(self, columns: Any) -> str:
        if columns is None or columns == COLUMNS_ALL:
            return COLUMNS_ALL
        if isinstance(columns, dict):
            return ', '.join(
                f"{self.escape_column(column)} AS {self.escape_column(alias)}"
                for column, alias in columns.items()
            )
        if isinstance(columns, (list, tuple)):
            return ', '.join(self.escape_column(column) for column in columns)
        return str(columns)

    def _order_clause(self, order: Any) -> str:
        if not order:
            return ''
        if isinstance(order, dict):
            parts = []
            for column, direction in order.items():
                if isinstance(direction, str):
                    direction = 'DESC' if direction.strip().upper() == 'DESC' else 'ASC'
                else:
                    direction = 'ASC' if direction else 'DESC'
                parts.append(f"{self.escape_column(column)} {direction}")
            return f" ORDER BY {', '.join(parts)}"
        if isinstance(order, (list, tuple)):
            return f" ORDER BY {', '.join(self.escape_column(column) for column in order)}"
        return f" ORDER BY {order}"

    def _group_clause(self, group: Any) -> str:
        if not group:
            return ''
        if isinstance(group, (list, tuple)):
            return f" GROUP BY {', '.join(self.escape_column(column) for column in group)}"
        return f" GROUP BY {group}"

    def _limit_clause(self, limit: Any) -> str:
        if limit is None:
            return ''
        if isinstance(limit, (list, tuple)):
            offset, amount = limit
            return f" LIMIT {int(amount)} OFFSET {int(offset)}"
        if isinstance(limit, int):
            return f" LIMIT {limit}"
        return f" LIMIT {limit}"

    def _write_filter(self, conditions: Any, limit: Any) -> Clause:
        """WHERE and LIMIT of an UPDATE or DELETE"""
        where, params = self._conditions_clause(conditions)
        return where + self._limit_clause(limit), params

    def select(self, conditions: Any = None, columns: Any = COLUMNS_ALL, order: Any = None,
               limit: Any = None, group: Any = None) -> List[Dict[str, Any]]:
        where, params = self._conditions_clause(conditions)
        sql = (
            f"SELECT {self._columns_clause(columns)} FROM {self.get_name()}"
            f"{where}{self._group_clause(group)}{self._order_clause(order)}{self._limit_clause(limit)}"
        )
        return self.database.fetch_all(sql, params)

    def insert(self, values: Union[Dict[str, Any], List[Any]]) -> int:
        """Insert one row given as a mapping or as positional values for every column"""
        if not values:
            raise EmptyValues(f"Cannot insert into {self.name} without values")

        placeholders = ', '.join([self.database.placeholder] * len(values))
        if isinstance(values, dict):
            names = ', '.join(self.escape_column(name) for name in values)
            sql = f"INSERT INTO {self.get_name()} ({names}) VALUES ({placeholders})"
            params = list(values.values())
        else:
            sql = f"INSERT INTO {self.get_name()} VALUES ({placeholders})"
            params = list(values)
        return self.database.execute(sql, params)

    def update(self, values: Dict[str, Any], conditions: Any = None, limit: Any = None) -> int:
        if not values:
            raise EmptyValues(f"Cannot update {self.name} without values")

        assignments = ', '.join(
            f"{self.escape_column(name)} = {self.database.placeholder}" for name in values
        )
        where, params = self._write_filter(conditions, limit)
        sql = f"UPDATE {self.get_name()} SET {assignments}{where}"
        return self.database.execute(sql, list(values.values()) + params)

    def delete(self, conditions: Any = None, limit: Any = None) -> int:
        where, params = self._write_filter(conditions, limit)
        return self.database.execute(f"DELETE FROM {self.get_name()}{where}", params)

    def exists(self, conditions: Any) -> bool:
        """Check whether a row matches, no conditions never match"""
        if self._is_empty(conditions):
            return False
        where, params = self._conditions_clause(conditions)
        sql = f"SELECT EXISTS(SELECT 1 FROM {self.get_name()}{where} LIMIT 1) AS found"
        return bool(self.database.fetch_value(sql, params))

    def count_rows(self, conditions: Any = None, columns: Any = COLUMNS_ALL, group: Any = None) -> int:
        where, params = self._conditions_clause(conditions)
        if isinstance(columns, str) and columns != COLUMNS_ALL:
            counted = f"COUNT({self.escape_column(columns)})"
        else:
            counted = "COUNT(*)"

        if group:
            sql = (
                f"SELECT COUNT(*) AS total FROM (SELECT 1 AS grouped FROM {self.get_name()}"
                f"{where}{self._group_clause(group)}) AS groups_list"
            )
        else:
            sql = f"SELECT {counted} AS total FROM {self.get_name()}{where}"
        return int(self.database.fetch_value(sql, params) or 0)

    def get(self, query: Query) -> Union[Dict[str, Any], List[Dict[str, Any]], None]:
        """
        Read rows matching the query

        Returns:
            Single row (or None) when the query limit is 1, otherwise a list of rows
        """
        rows = self.select(query.conditions, query.columns, query.order, query.limit, query.group)
        formatted = [self.format(row, defaults=query.selects_all()) for row in rows]
        if query.limit == 1:
            return formatted[0] if formatted else None
        return formatted

    def set(self, query: Query, value: Union[Dict[str, Any], List[Any]]) -> int:
        """Update the rows matching the query, or insert when none exists"""
        values = self._combine(query, value)
        if self.isset(query):
            return self.update(values, query.conditions, query.limit)

        if isinstance(query.conditions, dict):
            for key, key_value in query.conditions.items():
                if isinstance(key, str) and not isinstance(key_value, (list, tuple, set, dict)):
                    values.setdefault(key, key_value)
        return self.insert(values)

    def _combine(self, query: Query, value: Union[Dict[str, Any], List[Any]]) -> Dict[str, Any]:
        if isinstance(value, dict):
            return dict(value)
        if query.selects_all():
            names = self.get_column_names()
        elif isinstance(query.columns, (list, tuple)):
            names = list(query.columns)
        else:
            names = [query.columns]
        if len(names) != len(value):
            raise ValueError(
                f"Got {len(value)} values for {len(names)} columns of table {self.name}"
            )
        return dict(zip(names, value))

    def isset(self, query: Query) -> bool:
        return self.exists(query.conditions)

    def unset(self, query: Query) -> int:
        return self.delete(query.conditions, query.limit)

    def count(self, query: Query) -> int:
        return self.count_rows(query.conditions, COLUMNS_ALL, query.group)
