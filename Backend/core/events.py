"""
Routing of entity resolution events to event-handler components.
"""
from __future__ import annotations

import inspect
import json
import logging
from enum import Enum
from typing import Any, Callable, Optional

from core.components.base import EventHandlerComponent
from core.entity_model import EntityModel, ResolutionStatus

logger = logging.getLogger("event_router")

Callback = Callable[..., None]


class EventKind(str, Enum):
    """How the result of an event handler is interpreted.

    Handler authors opt into the boolean contract through the event name:
    `should...` events answer a yes/no question, and a missing
    `shouldPrompt...` handler means "prompt".
    """

    SHOULD_PROMPT = "shouldPrompt"
    SHOULD = "should"
    PLAIN = "plain"

    @classmethod
    def of(cls, event_name: str) -> "EventKind":
        if event_name.startswith(cls.SHOULD_PROMPT.value):
            return cls.SHOULD_PROMPT
        if event_name.startswith(cls.SHOULD.value):
            return cls.SHOULD
        return cls.PLAIN

    @property
    def returns_flag(self) -> bool:
        return self is not EventKind.PLAIN

    @property
    def default_flag(self) -> Optional[bool]:
        """Value for `promptForValue` when no handler exists, None to leave it unset."""
        return True if self is EventKind.SHOULD_PROMPT else None


def status_variable(state: Optional[str]) -> str:
    return f"system.state.{state}.entityResolutionStatus"


class EventRouter:
    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.logger = log or logger

    async def route(self, component: EventHandlerComponent, context, callback: Callback) -> None:
        raw_status = context.variable(status_variable(context.state()))
        if not raw_status or not raw_status.get("event"):
            self.logger.debug("Cannot determine event handler to be called")
            callback(None, context.response())
            return

        status = ResolutionStatus(raw_status)
        entity = context.variable(status.variable_name)
        entity_model = EntityModel(entity, status, context)
        event = status.event
        event_name = event["name"]
        kind = EventKind.of(event_name)

        handler = component.handler(event_name)
        if handler is None:
            self.logger.debug(f"No handler found for event: {event_name}")
            if kind.default_flag is not None:
                status.prompt_for_value = kind.default_flag
                self.logger.debug(f"Defaulting return value for missing {event_name} to {kind.default_flag}")
            callback(None, context.response())
            return

        self.logger.debug(f"Invoking event handler {event_name} with event: {json.dumps(event, default=str)}")
        pending = handler(event, entity_model, context)
        if not inspect.isawaitable(pending):
            raise TypeError(f"Event handler {event_name} must be async (return an awaitable)")
        try:
            return_value: Any = await pending
        except Exception as err:
            self.logger.error(f"Event handler {event_name} failed: {err}")
            callback(err, None)
            return

        if kind.returns_flag:
            should_prompt = True if return_value is None else return_value
            status.prompt_for_value = should_prompt
            self.logger.debug(f"{event_name} returned {should_prompt}")
        callback(None, context.response())
