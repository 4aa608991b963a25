"""
Event dispatcher and listener wiring
"""
import inspect
import logging
import weakref
from typing import Any, Callable, Dict, List, Optional, Union

from dbmodel.models.operation_event import AFTER_PREFIX, BEFORE_PREFIX, Event

logger = logging.getLogger(__name__)

Listener = Callable[[Event], Any]


class WeakListener:
    """Bound method listener that does not keep its object alive"""

    def __init__(self, method: Listener):
        self._method = weakref.WeakMethod(method)

    def __repr__(self) -> str:
        return f"WeakListener({self._method()!r})"

    def resolve(self) -> Optional[Listener]:
        """The bound method, or None once its object is gone"""
        return self._method()


def _resolve(listener: Union[Listener, WeakListener]) -> Optional[Listener]:
    return listener.resolve() if isinstance(listener, WeakListener) else listener


class EventDispatcher:
    """Dispatches events to listeners ordered by ascending priority"""

    def __init__(self):
        self._listeners: Dict[str, Dict[int, List[Union[Listener, WeakListener]]]] = {}

    def add_listener(self, name: str, listener: Union[Listener, WeakListener],
                     priority: int = 0) -> "EventDispatcher":
        self._listeners.setdefault(name, {}).setdefault(priority, []).append(listener)
        return self

    def remove_listener(self, name: str, listener: Listener = None) -> "EventDispatcher":
        """Remove one listener, or every listener of the event when none is given"""
        if name not in self._listeners:
            return self
        if listener is None:
            del self._listeners[name]
            return self

        for priority in list(self._listeners[name]):
            remaining = [
                item for item in self._listeners[name][priority]
                if item is not listener and _resolve(item) != listener
            ]
            if remaining:
                self._listeners[name][priority] = remaining
            else:
                del self._listeners[name][priority]
        if not self._listeners[name]:
            del self._listeners[name]
        return self

    def has_listeners(self, name: str) -> bool:
        return bool(self.get_listeners(name))

    def get_listeners(self, name: str) -> List[Listener]:
        """Live listeners of an event, weak listeners whose object is gone are skipped"""
        by_priority = self._listeners.get(name, {})
        listeners = (_resolve(item) for priority in sorted(by_priority) for item in by_priority[priority])
        return [listener for listener in listeners if listener is not None]

    def dispatch(self, event: Event) -> Event:
        for listener in self.get_listeners(event.name):
            if not event.is_active():
                break
            logger.debug(f"Dispatching '{event.name}' to {getattr(listener, '__qualname__', listener)}")
            listener(event)
        return event

    def reset(self) -> "EventDispatcher":
        self._listeners = {}
        return self


def _hook_methods(target: Any):
    prefixes = (f"{BEFORE_PREFIX}_", f"{AFTER_PREFIX}_")
    for name in dir(type(target)):
        # Properties are never evaluated, only plain methods are hooks
        if name.startswith(prefixes) and callable(getattr(type(target), name, None)):
            method = getattr(target, name)
            if inspect.ismethod(method):
                yield name, method


def connect_listeners(target: Any, dispatcher: EventDispatcher, priority: int = 0,
                      weak: bool = True) -> List[str]:
    """
    Register the before_*/after_* methods of a target as listeners

    Args:
        target: Object whose hook methods should receive events
        dispatcher: Dispatcher to register with
        priority: Priority of every registered hook
        weak: Register the hooks as WeakListener, so a dispatcher owned by
            the target does not keep it alive

    Returns:
        Names of the events the target now listens to
    """
    connected = []
    for name, method in _hook_methods(target):
        dispatcher.add_listener(name, WeakListener(method) if weak else method, priority)
        connected.append(name)
    return connected


def disconnect_listeners(target: Any, dispatcher: EventDispatcher) -> None:
    for name, method in _hook_methods(target):
        dispatcher.remove_listener(name, method)
