"""
Operation types and the event passed to before/after listeners
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class OperationType(Enum):
    """CRUD verbs an operation can perform"""
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


BEFORE_PREFIX = "before"
AFTER_PREFIX = "after"


def before_event_name(verb: str) -> str:
    return f"{BEFORE_PREFIX}_{verb}"


def after_event_name(verb: str) -> str:
    return f"{AFTER_PREFIX}_{verb}"


@dataclass
class Event:
    """Named event, inactive events stop propagating"""
    name: str
    active: bool = True

    def stop(self) -> None:
        self.active = False

    def is_active(self) -> bool:
        return self.active


@dataclass
class OperationEvent(Event):
    """Event carrying the arguments and result of an operation"""
    arguments: List[Any] = field(default_factory=list)
    result: Optional[Any] = None

    def get_arguments(self) -> List[Any]:
        return self.arguments

    def set_arguments(self, arguments: List[Any], merge: bool = False) -> "OperationEvent":
        if merge:
            merged = list(self.arguments)
            for index, value in enumerate(arguments):
                if index < len(merged):
                    merged[index] = value
                else:
                    merged.append(value)
            self.arguments = merged
        else:
            self.arguments = list(arguments)
        return self

    def get_arg(self, index: int = 0, default: Any = None) -> Any:
        if index < len(self.arguments):
            return self.arguments[index]
        return default

    def set_arg(self, value: Any, index: int = 0) -> "OperationEvent":
        while len(self.arguments) <= index:
            self.arguments.append(None)
        self.arguments[index] = value
        return self

    def has_result(self) -> bool:
        return self.result is not None

    def set_result(self, result: Any) -> "OperationEvent":
        self.result = result
        return self

    def is_active(self) -> bool:
        """A listener providing a result ends propagation"""
        return self.active and not self.has_result()
