"""
Lifecycle event sinks.

The engine announces lifecycle events (currently ``authority.initialized``)
to an optional sink. Anything with a ``fire(event_name, payload)`` method
works as a sink; plain functions are wrapped in ``CallableEventSink``.
"""

from typing import Any, Callable, Dict, Optional, Protocol

from shared.errors import ConfigurationError
from shared.logging import get_logger


class EventSink(Protocol):
    def fire(self, event_name: str, payload: Dict[str, Any]) -> Any:
        ...


class CallableEventSink:
    """Adapts ``func(event_name, payload)`` to the sink interface."""

    def __init__(self, func: Callable[[str, Dict[str, Any]], Any]):
        self.func = func

    def fire(self, event_name: str, payload: Dict[str, Any]) -> Any:
        return self.func(event_name, payload)


class LoggingEventSink:
    """Writes every event to the structured log."""

    def __init__(self, logger_name: str = "authority.events"):
        self.logger = get_logger(logger_name)
        self.events_fired = 0

    def fire(self, event_name: str, payload: Dict[str, Any]) -> None:
        self.events_fired += 1
        self.logger.info("Authority event", event_name=event_name, payload_keys=sorted(payload))


def as_event_sink(dispatcher: Any) -> Optional[EventSink]:
    """Normalize a dispatcher argument into a sink (or None)."""
    if dispatcher is None:
        return None
    if isinstance(dispatcher, type):
        raise ConfigurationError(
            "Event dispatcher must be an instance, not a class",
            details={"dispatcher": dispatcher.__name__}
        )
    if callable(getattr(dispatcher, "fire", None)):
        return dispatcher
    if callable(dispatcher):
        return CallableEventSink(dispatcher)
    raise ConfigurationError(
        "Event dispatcher must define fire(event_name, payload) or be callable",
        details={"dispatcher": type(dispatcher).__name__}
    )
