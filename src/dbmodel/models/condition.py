"""
Driver independent condition builder
"""
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from dbmodel.core.exceptions import EmptyOperand

EscapeFunction = Callable[[Any], str]

SCALAR_TYPES = (str, int, float, bool, Decimal, date, datetime)


class PartType(Enum):
    """Kinds of parts a condition is built from"""
    COLUMN = "column"
    VALUE = "value"
    EXPRESSION = "expression"
    CONDITION = "condition"


class Wildcard(Enum):
    """Where LIKE appends the % wildcard"""
    LEFT = "left"
    RIGHT = "right"
    BOTH = "both"


def serialize_value(value: Any) -> str:
    """Turn an object into a string usable in an equality check"""
    if type(value).__str__ is not object.__str__:
        return str(value)
    return json.dumps(value, default=vars, sort_keys=True)


def _default_value_escape(value: Any) -> str:
    if value is None:
        return 'NULL'
    if isinstance(value, bool):
        return '1' if value else '0'
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    text = str(value).replace("'", "''")
    return f"'{text}'"


def _default_column_escape(column: str) -> str:
    return str(column).strip()


class Condition:
    """
    Ordered list of typed parts rendered to SQL on demand.

    Rendering is deferred: the owning table supplies its column escape and
    either a value escape (literal SQL) or a placeholder (parameterized SQL),
    so one condition can be reused across drivers.
    """

    def __init__(self, value_escape: Optional[EscapeFunction] = None,
                 column_escape: Optional[EscapeFunction] = None):
        self.parts: List[Tuple[PartType, Any]] = []
        self.set_value_escape_function(value_escape)
        self.set_column_escape_function(column_escape)

    def __str__(self) -> str:
        return self.parse()

    def __repr__(self) -> str:
        return f"Condition({self.parse()!r})"

    def set_value_escape_function(self, function: Optional[EscapeFunction]) -> "Condition":
        self.value_escape = function or _default_value_escape
        return self

    def set_column_escape_function(self, function: Optional[EscapeFunction]) -> "Condition":
        self.column_escape = function or _default_column_escape
        return self

    def _add(self, part_type: PartType, value: Any) -> "Condition":
        self.parts.append((part_type, value))
        return self

    def parse(self) -> str:
        """Render with the stored escape functions, values inlined"""
        sql, _ = self._render(self.column_escape, self.value_escape, None)
        return sql

    def to_sql(self, column_escape: Optional[EscapeFunction] = None,
               placeholder: str = '?') -> Tuple[str, List[Any]]:
        """
        Render as parameterized SQL

        Args:
            column_escape: Identifier escape of the executing driver
            placeholder: Driver placeholder token (? or %s)

        Returns:
            Tuple of SQL text and the values bound to its placeholders, in order
        """
        params: List[Any] = []
        sql, _ = self._render(column_escape or self.column_escape, None, placeholder, params)
        return sql, params

    def _render(self, column_escape: EscapeFunction, value_escape: Optional[EscapeFunction],
                placeholder: Optional[str], params: Optional[List[Any]] = None):
        if params is None:
            params = []
        pieces = []
        for part_type, value in self.parts:
            if part_type is PartType.COLUMN:
                pieces.append(column_escape(value))
            elif part_type is PartType.VALUE:
                if placeholder is None:
                    pieces.append(value_escape(value))
                else:
                    params.append(value)
                    pieces.append(placeholder)
            elif part_type is PartType.CONDITION:
                nested, _ = value._render(column_escape, value_escape, placeholder, params)
                pieces.append(f"({nested})")
            else:
                pieces.append(str(value))
        return ' '.join(pieces), params

    def column(self, name: str) -> "Condition":
        return self._add(PartType.COLUMN, name)

    def condition(self, condition: "Condition") -> "Condition":
        return self._add(PartType.CONDITION, condition)

    def expression(self, expression: Any) -> "Condition":
        return self._add(PartType.EXPRESSION, expression)

    def value(self, value: Any) -> "Condition":
        return self._add(PartType.VALUE, value)

    def and_(self) -> "Condition":
        return self.expression('AND')

    def or_(self) -> "Condition":
        return self.expression('OR')

    def between(self, value1: Any, value2: Any) -> "Condition":
        return self.expression('BETWEEN').value(value1).expression('AND').value(value2)

    def _list(self, keyword: str, values) -> "Condition":
        values = list(values)
        if not values:
            raise EmptyOperand(f"{keyword} requires at least one value")
        self.expression(f"{keyword} (")
        for index, item in enumerate(values):
            if index:
                self.expression(',')
            self.value(item)
        return self.expression(')')

    def in_(self, values) -> "Condition":
        return self._list('IN', values)

    def not_in(self, values) -> "Condition":
        return self._list('NOT IN', values)

    def is_null(self) -> "Condition":
        return self.expression('IS NULL')

    def is_not_null(self) -> "Condition":
        return self.expression('IS NOT NULL')

    def equal(self, value: Any) -> "Condition":
        return self.expression('=').value(value)

    def not_equal(self, value: Any) -> "Condition":
        return self.expression('<>').value(value)

    def gt(self, value: Any) -> "Condition":
        return self.expression('>').value(value)

    def gte(self, value: Any) -> "Condition":
        return self.expression('>=').value(value)

    def lt(self, value: Any) -> "Condition":
        return self.expression('<').value(value)

    def lte(self, value: Any) -> "Condition":
        return self.expression('<=').value(value)

    eq = equal
    ne = not_equal

    @staticmethod
    def _wildcard(value: Any, wildcard) -> Any:
        if wildcard is None:
            return value
        wildcard = Wildcard(wildcard)
        if wildcard is Wildcard.LEFT:
            return f"%{value}"
        if wildcard is Wildcard.RIGHT:
            return f"{value}%"
        return f"%{value}%"

    def like(self, value: Any, wildcard=None) -> "Condition":
        return self.expression('LIKE').value(self._wildcard(value, wildcard))

    def not_like(self, value: Any, wildcard=None) -> "Condition":
        return self.expression('NOT LIKE').value(self._wildcard(value, wildcard))


class Cond:
    """Shorthand constructors for common conditions"""

    @staticmethod
    def _join(keyword: str, conditions) -> Condition:
        result = Condition()
        for index, condition in enumerate(conditions):
            if index:
                result.expression(keyword)
            result.condition(condition)
        return result

    @staticmethod
    def and_x(*conditions: Condition) -> Condition:
        return Cond._join('AND', conditions)

    @staticmethod
    def or_x(*conditions: Condition) -> Condition:
        return Cond._join('OR', conditions)

    @staticmethod
    def nest(condition: Condition) -> Condition:
        return Condition().condition(condition)

    @staticmethod
    def expr(expression: Any) -> Condition:
        return Condition().expression(expression)

    @staticmethod
    def lt(column: str, value: Any, equal: bool = False) -> Condition:
        condition = Condition().column(column)
        return condition.lte(value) if equal else condition.lt(value)

    @staticmethod
    def gt(column: str, value: Any, equal: bool = False) -> Condition:
        condition = Condition().column(column)
        return condition.gte(value) if equal else condition.gt(value)

    @staticmethod
    def eq(column: str, value: Any, negate: bool = False) -> Condition:
        condition = Condition().column(column)
        return condition.not_equal(value) if negate else condition.equal(value)

    @staticmethod
    def null(column: str, negate: bool = False) -> Condition:
        condition = Condition().column(column)
        return condition.is_not_null() if negate else condition.is_null()

    @staticmethod
    def like(column: str, value: Any, wildcard=None, negate: bool = False) -> Condition:
        condition = Condition().column(column)
        return condition.not_like(value, wildcard) if negate else condition.like(value, wildcard)

    @staticmethod
    def between(column: str, value1: Any, value2: Any) -> Condition:
        return Condition().column(column).between(value1, value2)

    @staticmethod
    def in_(column: str, *values) -> Condition:
        if len(values) == 1 and isinstance(values[0], (list, tuple, set)):
            values = values[0]
        return Condition().column(column).in_(values)

    @staticmethod
    def from_dict(conditions: Dict[Any, Any]) -> Condition:
        """
        Build a condition from the mapping shorthand

        Integer key with string value is a raw expression, a string key maps to
        equality (scalar), IN (list), IS NULL (None) or equality of the
        serialized object.
        """
        parts = []
        for column, value in conditions.items():
            if isinstance(column, int) and isinstance(value, str):
                parts.append(Cond.expr(value))
            elif isinstance(column, str):
                if value is None:
                    parts.append(Cond.null(column))
                elif isinstance(value, SCALAR_TYPES):
                    parts.append(Cond.eq(column, value))
                elif isinstance(value, (list, tuple, set)):
                    parts.append(Cond.in_(column, list(value)))
                else:
                    parts.append(Cond.eq(column, serialize_value(value)))
        return Cond.and_x(*parts)
