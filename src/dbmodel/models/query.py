"""
Query value object passed to storage
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Union

from dbmodel.models.condition import Condition

COLUMNS_ALL = '*'

Conditions = Union[Dict[Any, Any], str, Condition]
Columns = Union[str, List[str], Dict[str, str]]
Limit = Union[int, str, List[int], tuple]


@dataclass(frozen=True)
class Query:
    """Conditions, columns, limit, order and group of a storage call"""
    conditions: Conditions = field(default_factory=dict)
    columns: Columns = COLUMNS_ALL
    limit: Optional[Limit] = None
    order: Optional[Union[str, List[str], Dict[str, Any]]] = None
    group: Optional[Union[str, List[str]]] = None

    def with_limit(self, limit: Optional[Limit]) -> "Query":
        return replace(self, limit=limit)

    def with_columns(self, columns: Columns) -> "Query":
        return replace(self, columns=columns)

    def with_conditions(self, conditions: Conditions) -> "Query":
        return replace(self, conditions=conditions)

    def selects_all(self) -> bool:
        return self.columns == COLUMNS_ALL
