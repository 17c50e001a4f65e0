"""
Hook dispatcher delivering connection events to listeners.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Dict, List, Type, Union

from ..events import ConnectionEvent
from ..utils import get_logger


HookHandler = Callable[[ConnectionEvent], None]
EventKey = Union[str, Type[ConnectionEvent]]


def _event_name(event: EventKey) -> str:
    return event if isinstance(event, str) else event.name


class HookDispatcher:
    """
    Maintains handlers keyed by event name.

    Events are plain notifications: handler return values are ignored and a
    dispatcher without listeners is valid.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[HookHandler]] = defaultdict(list)
        self.logger = get_logger("hooks.dispatcher")

    def register(self, event: EventKey, handler: HookHandler) -> None:
        self._handlers[_event_name(event)].append(handler)

    def unregister(self, event: EventKey, handler: HookHandler) -> None:
        name = _event_name(event)
        handlers = self._handlers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(name, None)

    def has_listeners(self, event: EventKey) -> bool:
        return bool(self._handlers.get(_event_name(event)))

    def fire(self, event: ConnectionEvent) -> None:
        handlers = list(self._handlers.get(event.name, []))
        if handlers:
            self.logger.debug("Dispatching %s to %d handler(s)", event.name, len(handlers))
        for handler in handlers:
            handler(event)

    def clear(self) -> None:
        self._handlers.clear()


hooks = HookDispatcher()
