"""
Paginated list of models built from a query
"""
import copy
import logging
import math
from typing import Any, Callable, List, Optional, Tuple, Union

from dbmodel.core.model import Model
from dbmodel.models.query import Query
from dbmodel.tables.base import AbstractTable

logger = logging.getLogger(__name__)

Prototype = Union[Model, Callable[..., Model], Tuple[Callable[..., Model], tuple]]


class ModelsList:
    """
    Models of every row matching a query, one page at a time.

    The prototype is a model to copy, a factory callable, or a tuple of a
    callable and its arguments. Out of range pages clamp to the nearest valid
    page instead of returning nothing.
    """

    def __init__(self, prototype: Prototype, query: Optional[Query] = None,
                 storage: Optional[AbstractTable] = None):
        self.prototype = prototype
        self.query = query or Query()
        self.storage = storage or self._instantiate().storage
        self.reset()

    def reset(self) -> "ModelsList":
        self.page = 1
        self.on_page: Optional[int] = None
        self.total = 0
        self.elements: List[Model] = []
        return self

    def __iter__(self):
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def __getitem__(self, index: int) -> Model:
        return self.elements[index]

    def set_query(self, query: Query) -> "ModelsList":
        self.query = query
        return self

    def _instantiate(self) -> Model:
        if isinstance(self.prototype, Model):
            return copy.copy(self.prototype)
        if isinstance(self.prototype, tuple):
            factory, arguments = self.prototype
            return factory(*arguments)
        if callable(self.prototype):
            return self.prototype()
        raise TypeError(f"Unsupported model prototype: {type(self.prototype).__name__}")

    def get_data(self, page: int = 1, on_page: Optional[int] = None) -> "ModelsList":
        """
        Load one page of models

        Args:
            page: Requested page, clamped to the valid range
            on_page: Page size, None loads every row

        Returns:
            This list, with page, on_page, total and elements updated
        """
        self.reset()
        query = self.query

        if on_page is None:
            rows = self.storage.get(query.with_limit(None))
            self.page = page
            self.total = len(rows)
        else:
            on_page = max(1, int(on_page))
            self.total = self.storage.count(query)
            last_page = max(1, math.ceil(self.total / on_page))
            self.page = min(max(1, int(page)), last_page)
            self.on_page = on_page
            rows = self.storage.get(query.with_limit([(self.page - 1) * on_page, on_page]))

        self.elements = [self._instantiate().init_from_data(row) for row in rows]
        logger.debug(
            f"Loaded {len(self.elements)} of {self.total} rows from {self.storage.name} (page {self.page})"
        )
        return self
