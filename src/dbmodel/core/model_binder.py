"""
Join table row binding several models together
"""
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from dbmodel.core.exceptions import MissingId
from dbmodel.core.model import Model, ModelState
from dbmodel.operations.dispatcher import EventDispatcher
from dbmodel.tables.base import AbstractTable

logger = logging.getLogger(__name__)


@runtime_checkable
class Bindable(Protocol):
    def get_id(self) -> Any: ...

    def get_binding_field_name(self) -> str: ...


class ModelBinder(Model):
    """
    Model of a join table whose key is made of the ids of other models.

    Key columns are named <table>_<pk> after each bound model, repeated names
    get a _1, _2, ... suffix in the order the models are given.
    """

    def __init__(self, storage: AbstractTable, models: Sequence[Bindable], buffering: bool = True,
                 event_dispatcher: Optional[EventDispatcher] = None, strict_revert: bool = False):
        self.models: List[Bindable] = list(models)
        super().__init__(storage, self.get_model_binder_id(self.models), buffering,
                         event_dispatcher, strict_revert)

    @staticmethod
    def get_model_binder_id(models: Sequence[Bindable]) -> Dict[str, Any]:
        """
        Build the join row key from the bound models

        Raises:
            UnbindableModel: A model has a composite primary key
            MissingId: A model has no id yet
        """
        names = []
        for model in models:
            if not isinstance(model, Bindable):
                raise TypeError(f"{type(model).__name__} cannot be bound")
            names.append(model.get_binding_field_name())

        totals = Counter(names)
        seen: Counter = Counter()
        binder_id = {}
        for model, name in zip(models, names):
            if totals[name] > 1:
                seen[name] += 1
                name = f"{name}_{seen[name]}"

            model_id = model.get_id()
            if model_id is None:
                raise MissingId(f"Cannot bind {model!r} without an id")
            binder_id[name] = model_id
        return binder_id

    def get_id(self) -> Any:
        """A pending create is flushed before the id is handed out"""
        if self.state is ModelState.CREATE and self.require_action():
            self.execute_actions()
        return super().get_id()
