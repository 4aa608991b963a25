"""
Model: cached row data with dirty tracking and buffered writes
"""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from dbmodel.core.config import ModelConfig
from dbmodel.core.exceptions import MissingId, QueryError, UnbindableModel
from dbmodel.models.identity import CompositeId, Id, SingleId, make_id
from dbmodel.models.query import Query
from dbmodel.operations.dispatcher import EventDispatcher, connect_listeners
from dbmodel.operations.operation import Operation, Read
from dbmodel.operations.queue import OperationQueue
from dbmodel.tables.base import AbstractTable
from dbmodel.validation.errors import ErrorsStorage
from dbmodel.validation.validator import Validator

logger = logging.getLogger(__name__)


class ModelState(Enum):
    """Pending write of a model"""
    EMPTY = "empty"
    CREATE = "create"
    UPDATE = "update"
    NOP = "nop"


class Model:
    """
    Row of a table identified by its primary key.

    Field values are cached and only the fields missing from the cache are
    read from storage. create() and update() stage a write which is flushed by
    execute_actions(), immediately when buffering is off, otherwise when an id
    is needed or when the model is released.

    Subclasses hook CRUD by defining before_<verb>/after_<verb> methods, they
    are connected to the model's event dispatcher on construction.
    """

    def __init__(self, storage: AbstractTable, id: Any = None, buffering: bool = True,
                 event_dispatcher: Optional[EventDispatcher] = None, strict_revert: bool = False):
        self.storage = storage
        self.buffering = buffering
        self.strict_revert = strict_revert
        self.event_dispatcher = event_dispatcher or EventDispatcher()
        self.errors = ErrorsStorage()
        self.operations = OperationQueue(self, prepare=self._prepare_operation, weak_target=True)
        self.state = ModelState.EMPTY
        self._id: Optional[Id] = None
        self._data: Optional[Dict[str, Any]] = None
        self._changed: List[str] = []
        self._exists: Optional[bool] = None

        self.set_id(id)
        connect_listeners(self, self.event_dispatcher)

    @classmethod
    def from_config(cls, storage: AbstractTable, config: ModelConfig, id: Any = None,
                    event_dispatcher: Optional[EventDispatcher] = None) -> "Model":
        return cls(storage, id, buffering=config.buffering, event_dispatcher=event_dispatcher,
                   strict_revert=config.strict_revert)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(table={self.storage.name!r}, id={self._id}, state={self.state.name})"

    def __copy__(self) -> "Model":
        """Copy data and id, with a fresh dispatcher, operation queue and errors"""
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone._data = dict(self._data) if self._data is not None else None
        clone._changed = list(self._changed)
        clone.event_dispatcher = type(self.event_dispatcher)()
        clone.errors = ErrorsStorage()
        clone.operations = OperationQueue(clone, prepare=clone._prepare_operation, weak_target=True)
        connect_listeners(clone, clone.event_dispatcher)
        return clone

    def __enter__(self) -> "Model":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __del__(self):
        try:
            if getattr(self, 'state', None) is not None and self.require_action():
                self.execute_actions()
        except Exception as e:
            logger.error(f"Failed to flush {type(self).__name__} on release: {e}")

    def close(self) -> None:
        """Flush any pending write"""
        if self.require_action():
            self.execute_actions()

    def _prepare_operation(self, operation: Operation) -> None:
        operation.event_dispatcher = self.event_dispatcher
        if operation.strict_revert is None:
            operation.strict_revert = self.strict_revert

    # Identity

    def _format_id(self, model_id: Id) -> Id:
        pk_fields = self.storage.get_pk_fields()
        if isinstance(model_id, SingleId):
            if not pk_fields:
                return model_id
            pk = pk_fields[0]
            return SingleId(self.storage.format({pk: model_id.value})[pk])
        formatted = self.storage.format(dict(model_id.items))
        return CompositeId(tuple((name, formatted[name]) for name, _ in model_id.items))

    def set_id(self, id: Any) -> "Model":
        """
        Set the id, a scalar or a mapping of primary key columns

        A None id means the row does not exist, any other id makes existence
        unknown until the next exists() call.
        """
        model_id = make_id(id, self.storage.get_pk_fields())
        if model_id is None:
            self._id = None
            self._exists = False
            return self

        self._id = self._format_id(model_id)
        self._exists = None
        return self

    def get_id(self) -> Union[Any, Dict[str, Any], None]:
        """Current id, flushing a pending create first when the id must be generated"""
        if self._id is None and self.state is ModelState.CREATE and self._data:
            self.execute_actions()
        return self._id.public() if self._id is not None else None

    @property
    def id(self) -> Optional[Id]:
        return self._id

    def _normalize(self, model_id: Optional[Id]) -> Dict[str, Any]:
        if model_id is None:
            return {}
        return model_id.normalize(self.storage.get_pk_fields())

    def get_normalized_id(self) -> Dict[str, Any]:
        """Id as a mapping of primary key column to value"""
        self.get_id()
        return self._normalize(self._id)

    def _id_conditions(self) -> Dict[str, Any]:
        conditions = self.get_normalized_id()
        if not conditions:
            raise MissingId(f"Model of table {self.storage.name} has no usable id")
        return conditions

    def get_binding_field_name(self) -> str:
        """Column name referencing this model in a join table"""
        pk = self.storage.get_pk_field()
        if pk is None or isinstance(pk, list):
            raise UnbindableModel(
                f"Model of table {self.storage.name} has primary key {pk} and cannot be bound"
            )
        return f"{self.storage.get_name(escaped=False)}_{pk}"

    # State

    def set_state(self, state: ModelState) -> "Model":
        """A pending create is never downgraded to an update"""
        if state is ModelState.UPDATE and self.state is ModelState.CREATE:
            return self
        self.state = state
        return self

    def get_state(self) -> ModelState:
        return self.state

    def require_action(self) -> bool:
        if self.state is ModelState.CREATE:
            return bool(self._changed) or self._id is not None
        if self.state is ModelState.UPDATE:
            return bool(self._changed)
        return False

    def get_changed_fields(self) -> List[str]:
        return list(self._changed)

    def _mark_changed(self, fields: List[str]) -> None:
        for name in fields:
            if name not in self._changed:
                self._changed.append(name)

    def _filter_fields(self, data: Dict[str, Any]) -> Dict[str, Any]:
        fields = self.storage.get_fields()
        return {key: value for key, value in data.items() if key in fields}

    def reset(self) -> "Model":
        self._id = None
        self._data = None
        self._changed = []
        self._exists = None
        self.state = ModelState.EMPTY
        return self

    # Data

    def set_data(self, data: Dict[str, Any], merge: bool = True) -> "Model":
        if merge and self._data is not None:
            self._data.update(data)
        else:
            self._data = dict(data)
        if self.state is ModelState.EMPTY and self._data:
            self.state = ModelState.NOP
        return self

    def get_data(self, filter: Union[str, List[str], None] = None) -> Any:
        """
        Get cached field values, reading the missing ones from storage

        Args:
            filter: Field name, list of field names, or None for every field

        Returns:
            Single value for a field name, otherwise a dict of values
        """
        model_id = self.get_id()
        if model_id is None and not self._data:
            logger.debug(f"Model of table {self.storage.name} has neither id nor data")
            return None if isinstance(filter, str) else {}

        fields = self.storage.get_fields()
        if filter is None:
            wanted = fields
        elif isinstance(filter, str):
            wanted = [filter]
        else:
            wanted = list(filter)

        cached = self._data or {}
        missing = [name for name in wanted if name not in cached]
        if missing and model_id is not None:
            to_read = [name for name in fields if name in missing]
            if to_read:
                self.execute(Read(), to_read)

        data = self._data or {}
        if filter is None:
            return dict(data)
        if isinstance(filter, str):
            return data.get(filter)
        return {name: data[name] for name in wanted if name in data}

    def exists(self) -> bool:
        """Whether the row is stored, looked up once per id"""
        if self.get_id() is None:
            self._exists = False
        elif self._exists is None:
            try:
                self._exists = self.storage.isset(Query(self._id_conditions()))
            except (QueryError, MissingId) as e:
                logger.error(f"Cannot check existence of {self!r}: {e}")
                return False
        return self._exists

    def get_errors(self) -> ErrorsStorage:
        return self.errors

    # CRUD targets of operations

    def create(self, data: Optional[Dict[str, Any]] = None) -> bool:
        """Stage an insert replacing the cached data, key columns set the id"""
        data = dict(data or {})
        ids = {name: data[name] for name in self.storage.get_pk_fields() if name in data}
        data = self._filter_fields(data)
        if ids:
            self.set_id(ids)

        self.set_state(ModelState.CREATE)
        self._changed = []
        self._mark_changed(list(data))
        self.set_data(data, merge=False)

        if not self.buffering:
            return self.execute_actions()
        return True

    def read(self, filter: Union[str, List[str], None] = None) -> Dict[str, Any]:
        """Read fields from storage into the cache"""
        if filter is None:
            columns = self.storage.get_fields()
        elif isinstance(filter, str):
            columns = [filter]
        else:
            columns = list(filter)
        if not columns:
            return {}

        row = self.storage.get(Query(self._id_conditions(), columns, 1))
        if not row:
            return {}

        cached = self._data or {}
        for key, value in row.items():
            if key in self._changed and key in cached and str(cached[key]) == str(value):
                self._changed.remove(key)
        self.set_data(row)
        return row

    def update(self, data: Dict[str, Any]) -> bool:
        """Stage an update marking only the fields whose value changed"""
        data = self._filter_fields(data)
        cached = self._data or {}
        changed = [key for key, value in data.items() if key not in cached or cached[key] != value]

        self.set_state(ModelState.UPDATE)
        self._mark_changed(changed)
        self.set_data(data)

        if not self.buffering:
            return self.execute_actions()
        return True

    def delete(self) -> bool:
        """
        Delete the stored row if any and reset the model

        Returns:
            True once the model is reset, also when no row was stored,
            False when the storage refused the delete
        """
        if self.exists():
            try:
                self.storage.unset(Query(self._id_conditions()))
            except QueryError as e:
                logger.error(f"Failed to delete {self!r}: {e}")
                return False
        self.reset()
        return True

    # Persistence

    def execute_actions(self) -> bool:
        """Flush the staged create or update to storage"""
        if self.state is ModelState.CREATE:
            result = self._flush_create()
        elif self.state is ModelState.UPDATE:
            result = self._flush_update()
        else:
            return True

        if result:
            self._changed = []
            self.state = ModelState.NOP
        return result

    def _changed_values(self) -> Dict[str, Any]:
        data = self._data or {}
        return {name: data[name] for name in self._changed if name in data}

    def _flush_create(self) -> bool:
        values = self._changed_values()
        id_values = self._normalize(self._id)
        values.update(id_values)

        try:
            self.storage.set(Query({}), values)
        except QueryError as e:
            logger.error(f"Failed to insert {self!r}: {e}")
            return False

        if not id_values:
            new_id = self.storage.database.last_insert_id()
            if new_id is None:
                logger.warning(f"No id received after insert into {self.storage.name}")
            else:
                self.set_id(new_id)
        self._exists = True
        return True

    def _flush_update(self) -> bool:
        values = self._changed_values()
        if not values:
            return True

        try:
            self.storage.set(Query(self._id_conditions()), values)
        except QueryError as e:
            logger.error(f"Failed to update {self!r}: {e}")
            return False
        self._exists = True
        return True

    def init_from_data(self, data: Dict[str, Any]) -> "Model":
        """Load a stored row: key columns become the id, the rest the cached data"""
        pk_fields = self.storage.get_pk_fields()
        ids = {name: data[name] for name in pk_fields if name in data}
        self.reset()
        self.set_id(ids or None)
        self.set_data({key: value for key, value in data.items() if key not in pk_fields}, merge=False)
        self.state = ModelState.NOP
        return self

    def init_from_storage(self, query: Query) -> "Model":
        row = self.storage.get(query.with_limit(1))
        if not row:
            logger.debug(f"No row of {self.storage.name} matches {query}")
            return self
        self.init_from_data(row)
        self._exists = True
        return self

    # Operations

    def execute(self, operation: Operation, *arguments: Any,
                validator: Optional[Validator] = None) -> Any:
        """
        Execute an operation against this model

        Args:
            operation: Operation to run
            arguments: Arguments passed to the operation
            validator: Optional validator run on the arguments first

        Returns:
            Operation result, or False when validation failed
        """
        if validator is not None:
            validator.set_context(self)
            if not validator.validate(*arguments).is_valid():
                self.errors.merge(validator.get_errors())
                logger.debug(f"Validation failed for {operation.name} on {self!r}")
                return False
        return self.operations.execute(operation, list(arguments))

    def validate_then_execute(self, operation: Operation, validator: Validator, *arguments: Any) -> Any:
        return self.execute(operation, *arguments, validator=validator)
