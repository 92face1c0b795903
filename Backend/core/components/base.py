"""
Component variants that can be registered with the component service.

A regular component is invoked directly with the execution context and a
completion callback. An event-handler component instead exposes async
handlers keyed by entity resolution event name.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

DoneCallback = Callable[..., None]
InvokeFunc = Callable[[Any, DoneCallback], Any]
EventHandlerFunc = Callable[[dict, Any, Any], Awaitable[Any]]


class ComponentMetadata(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    supported_actions: List[str] = Field(default_factory=list, alias="supportedActions")
    event_handler: bool = Field(default=False, alias="eventHandler")

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


class Component:
    """Common base: every component describes itself through `metadata()`."""

    def __init__(self, metadata: Dict[str, Any]) -> None:
        self._metadata = ComponentMetadata.model_validate(metadata)

    @property
    def name(self) -> str:
        return self._metadata.name

    @property
    def is_event_handler(self) -> bool:
        return self._metadata.event_handler

    def metadata(self) -> dict:
        return self._metadata.to_dict()


class RegularComponent(Component):
    def __init__(self, metadata: Dict[str, Any], invoke: InvokeFunc) -> None:
        super().__init__({**metadata, "eventHandler": False})
        self._invoke = invoke

    def invoke(self, context, done: DoneCallback) -> Any:
        return self._invoke(context, done)


class EventHandlerComponent(Component):
    def __init__(self, metadata: Dict[str, Any], handlers: Optional[Dict[str, EventHandlerFunc]] = None) -> None:
        super().__init__({**metadata, "eventHandler": True})
        self._handlers: Dict[str, EventHandlerFunc] = {}
        for event_name, handler in (handlers or {}).items():
            self.add_handler(event_name, handler)

    def add_handler(self, event_name: str, handler: EventHandlerFunc) -> None:
        if event_name == "metadata":
            raise ValueError("'metadata' is reserved and cannot be used as an event name")
        if not callable(handler):
            raise TypeError(f"Handler for event '{event_name}' must be callable")
        self._handlers[event_name] = handler

    def on(self, event_name: str) -> Callable[[EventHandlerFunc], EventHandlerFunc]:
        """Decorator form of `add_handler`."""
        def wrap(handler: EventHandlerFunc) -> EventHandlerFunc:
            self.add_handler(event_name, handler)
            return handler

        return wrap

    def handler(self, event_name: str) -> Optional[EventHandlerFunc]:
        return self._handlers.get(event_name)

    def events(self) -> List[str]:
        return list(self._handlers)
