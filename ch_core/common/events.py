# ch_core/common/events.py
from collections import defaultdict
from typing import Any, Callable, Dict, List


from ch_core.common.logging import get_logger

Handler = Callable[[Dict[str, Any]], None]

_registry: Dict[str, List[Handler]] = defaultdict(list)

log = get_logger(__name__)


def subscribe(event_name: str):
    """
    Decorator to register an event handler.
    Usage:
        @subscribe("audit.completion.completed")
        def handler(payload): ...
    """
    def _decorator(fn: Handler) -> Handler:
        if fn not in _registry[event_name]:
            _registry[event_name].append(fn)
        return fn
    return _decorator


def publish(event_name: str, payload: Dict[str, Any]) -> None:
    """
    Publish an event to in-process subscribers.
    Keep payloads ID-based to avoid cross-app imports.
    """
    handlers = _registry.get(event_name, [])
    log.debug("publish {} to {} handler(s)", event_name, len(handlers))
    for handler in handlers:
        handler(payload)
