"""
Interceptable CRUD operations
"""
import logging
from typing import TYPE_CHECKING, Any, List, Optional, Protocol, Sequence, runtime_checkable

from dbmodel.core.exceptions import OperationNotRevertible
from dbmodel.models.operation_event import (
    OperationEvent, OperationType, after_event_name, before_event_name
)
from dbmodel.operations.dispatcher import EventDispatcher

if TYPE_CHECKING:
    from dbmodel.operations.queue import OperationQueue

logger = logging.getLogger(__name__)


@runtime_checkable
class Creatable(Protocol):
    def create(self, *args: Any) -> Any: ...


@runtime_checkable
class Readable(Protocol):
    def read(self, *args: Any) -> Any: ...


@runtime_checkable
class Updatable(Protocol):
    def update(self, *args: Any) -> Any: ...


@runtime_checkable
class Deletable(Protocol):
    def delete(self, *args: Any) -> Any: ...


@runtime_checkable
class DataSource(Protocol):
    def get_data(self, filter: Any = None) -> Any: ...


class Operation:
    """
    Named unit of work wrapped by before/after events.

    Subclasses implement invoke(); listeners of before_<name> may change the
    arguments or provide the result themselves, which skips invoke().
    """

    def __init__(self, name: str, can_queue: bool = True, can_revert: bool = False,
                 event_dispatcher: Optional[EventDispatcher] = None,
                 strict_revert: Optional[bool] = None):
        self.name = name
        self.can_queue = can_queue
        self.can_revert = can_revert
        self.event_dispatcher = event_dispatcher or EventDispatcher()
        self.strict_revert = strict_revert
        self.result = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, can_revert={self.can_revert})"

    def get_name(self) -> str:
        return self.name

    def execute(self, target: Any, arguments: Sequence[Any] = ()) -> Any:
        """
        Run the operation against a target

        Args:
            target: Object the operation acts on
            arguments: Positional arguments of the operation

        Returns:
            Result provided by a listener or by invoke()
        """
        self.result = None

        event_before = OperationEvent(name=before_event_name(self.name), arguments=list(arguments))
        self.event_dispatcher.dispatch(event_before)
        if event_before.has_result():
            self.result = event_before.result

        arguments = event_before.arguments
        if self.result is None:
            self.result = self.invoke(target, arguments)

        event_after = OperationEvent(name=after_event_name(self.name), arguments=arguments)
        self.event_dispatcher.dispatch(event_after)
        if event_after.has_result():
            self.result = event_after.result

        return self.result

    def invoke(self, target: Any, arguments: List[Any]) -> Any:
        """Perform the operation itself"""
        return None

    def revert(self, executor: "OperationQueue", arguments: List[Any]) -> Any:
        """Undo the operation through the executor of its target"""
        return False


class CrudOperation(Operation):
    """Operation bound to one of the CRUD capabilities"""

    operation_type: OperationType = None
    default_can_revert = False

    def __init__(self, can_queue: bool = True, can_revert: Optional[bool] = None,
                 event_dispatcher: Optional[EventDispatcher] = None,
                 strict_revert: Optional[bool] = None):
        super().__init__(
            self.operation_type.value,
            can_queue,
            self.default_can_revert if can_revert is None else can_revert,
            event_dispatcher,
            strict_revert
        )

    def invoke(self, target: Any, arguments: List[Any]) -> Any:
        verb = self.operation_type
        if verb is OperationType.CREATE and isinstance(target, Creatable):
            return target.create(*arguments)
        if verb is OperationType.READ and isinstance(target, Readable):
            return target.read(*arguments)
        if verb is OperationType.UPDATE and isinstance(target, Updatable):
            return target.update(*arguments)
        if verb is OperationType.DELETE and isinstance(target, Deletable):
            return target.delete(*arguments)

        logger.warning(f"{type(target).__name__} does not support the {verb.value} operation")
        return None


class Create(CrudOperation):
    operation_type = OperationType.CREATE
    default_can_revert = True

    def revert(self, executor: "OperationQueue", arguments: List[Any]) -> Any:
        if not isinstance(executor.target, Deletable):
            return False
        return executor.execute(Delete(event_dispatcher=self.event_dispatcher), [])


class Read(CrudOperation):
    operation_type = OperationType.READ


class Update(CrudOperation):
    """Update that can snapshot the fields it changes to be reverted later"""

    operation_type = OperationType.UPDATE

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.previous_data = None

    def execute(self, target: Any, arguments: Sequence[Any] = ()) -> Any:
        if self.can_revert:
            data = arguments[0] if arguments else None
            if isinstance(target, DataSource) and isinstance(data, dict):
                self.previous_data = target.get_data(list(data.keys()))
            elif self.strict_revert:
                raise OperationNotRevertible(
                    f"Cannot snapshot {type(target).__name__} for update with {type(data).__name__} data"
                )
            else:
                logger.debug(f"Update on {type(target).__name__} cannot be reverted, disabling revert")
                self.can_revert = False
        return super().execute(target, arguments)

    def revert(self, executor: "OperationQueue", arguments: List[Any]) -> Any:
        if not self.can_revert or self.previous_data is None:
            return False
        arguments = list(arguments)
        if arguments:
            arguments[0] = self.previous_data
        else:
            arguments.append(self.previous_data)
        return executor.execute(Update(event_dispatcher=self.event_dispatcher), arguments)


class Delete(CrudOperation):
    operation_type = OperationType.DELETE
