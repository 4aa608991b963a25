"""
Operation history, queue and revert queue held by a target
"""
import inspect
import logging
import weakref
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from dbmodel.operations.operation import Operation

logger = logging.getLogger(__name__)


@dataclass
class QueuedOperation:
    """Operation waiting in a queue with its arguments"""
    operation: Operation
    arguments: List[Any] = field(default_factory=list)
    executed: bool = False
    result: Any = None

    def set_result(self, result: Any) -> "QueuedOperation":
        self.result = result
        self.executed = True
        return self


class OperationQueue:
    """
    Executes operations against one target and keeps their history

    Args:
        target: Object the operations act on
        prepare: Optional callback run on each operation before it executes
        weak_target: Hold the target (and prepare when it is one of its
            methods) through weak references, for a queue owned by its target
    """

    def __init__(self, target: Any, prepare: Optional[Callable[[Operation], None]] = None,
                 weak_target: bool = False):
        if weak_target:
            self._target = weakref.ref(target)
            self._prepare = weakref.WeakMethod(prepare) if inspect.ismethod(prepare) else lambda: prepare
        else:
            self._target = lambda: target
            self._prepare = lambda: prepare
        self.history: List[Operation] = []
        self.queue: List[QueuedOperation] = []
        self.revert_queue_items: List[QueuedOperation] = []

    @property
    def target(self) -> Any:
        return self._target()

    def execute(self, operation: Operation, arguments: Optional[List[Any]] = None) -> Any:
        prepare = self._prepare()
        if prepare is not None:
            prepare(operation)
        result = operation.execute(self.target, list(arguments or []))
        self.history.append(operation)
        return result

    def add(self, operation: Operation, arguments: Optional[List[Any]] = None) -> "OperationQueue":
        if not operation.can_queue:
            raise ValueError(f"Operation {operation.name} cannot be queued")
        self.queue.append(QueuedOperation(operation, list(arguments or [])))
        return self

    def add_to_revert_queue(self, operation: Operation,
                            arguments: Optional[List[Any]] = None) -> "OperationQueue":
        """Revert queue runs last added first"""
        self.revert_queue_items.insert(0, QueuedOperation(operation, list(arguments or [])))
        return self

    def execute_queue(self, clear: bool = False) -> List[QueuedOperation]:
        """
        Execute every queued operation in order

        Revertible operations are pushed to the front of the revert queue.
        """
        for item in self.queue:
            item.set_result(self.execute(item.operation, item.arguments))
            if item.operation.can_revert:
                self.revert_queue_items.insert(0, item)

        executed = list(self.queue)
        if clear:
            self.queue = []
        return executed

    def revert_queue(self, clear: bool = False) -> List[QueuedOperation]:
        for item in self.revert_queue_items:
            if item.operation.can_revert:
                item.set_result(item.operation.revert(self, item.arguments))
            else:
                logger.debug(f"Skipping revert of {item.operation.name}, operation is not revertible")

        reverted = list(self.revert_queue_items)
        if clear:
            self.revert_queue_items = []
        return reverted
