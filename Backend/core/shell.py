"""
Component invocation shell: metadata listing and invocation by name.
"""
from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Union

from core.components.base import EventHandlerComponent
from core.errors import InvocationError
from core.events import EventRouter
from core.invocation import ComponentInvocation

logger = logging.getLogger("component_shell")

Callback = Callable[..., None]


@dataclass(frozen=True)
class Success:
    pass


@dataclass(frozen=True)
class Failure:
    error: Any


InvocationOutcome = Union[Success, Failure]


def outcome_from_done(err: Any, context: ComponentInvocation) -> InvocationOutcome:
    # done(context) is the legacy way of signalling success
    if err is None or err is context:
        return Success()
    return Failure(err)


class _CallOnce:
    def __init__(self, callback: Callback, log: logging.Logger) -> None:
        self._callback = callback
        self._logger = log
        self.called = False

    def __call__(self, err: Any = None, result: Any = None) -> None:
        if self.called:
            self._logger.warning("Invocation callback already called; ignoring further result")
            return
        self.called = True
        self._callback(err, result)


class ComponentShell:
    def __init__(self, config: Optional[Dict[str, Any]], registry) -> None:
        self.logger: logging.Logger = (config or {}).get("logger") or logger
        self.version: str = (config or {}).get("version") or ComponentInvocation.sdk_version()
        if registry is None or not isinstance(getattr(registry, "components", None), Mapping):
            raise ValueError("Invalid component registry")
        self.registry = registry
        self.event_router = EventRouter(self.logger)

    def list_metadata(self) -> Dict[str, Any]:
        all_components = []
        for component in self.registry.components.values():
            metadata = dict(component.metadata())
            # event handlers are advertised through the metadata
            if isinstance(component, EventHandlerComponent):
                metadata["events"] = component.events()
            all_components.append(metadata)
        all_metadata = {"version": self.version, "components": all_components}
        self.logger.debug("Component service metadata:\n" + json.dumps(all_metadata))
        return all_metadata

    async def invoke_component_by_name(
        self,
        component_name: str,
        request_body: Optional[dict],
        sdk_mixin: Optional[Dict[str, Any]],
        callback: Callback,
    ) -> None:
        """Invoke the named component; `callback(err, response)` is called exactly once.

        sdk_mixin: attributes set on the execution context before invocation, so the
        hosting environment can expose extra functionality to components.
        Errors delivered to the callback carry a `name`: 'unknownComponent' for
        unregistered names; component errors are passed through unchanged.
        """
        if not callable(callback):
            raise TypeError("Invocation callback is required")
        done = _CallOnce(callback, self.logger)

        component = self.registry.components.get(component_name)
        if component is None:
            self.logger.error(f"Unknown component: {component_name}")
            done(InvocationError.unknown_component(component_name))
            return

        try:
            context = ComponentInvocation(request_body)
            for key, value in (sdk_mixin or {}).items():
                setattr(context, key, value)
        except Exception as err:
            self.logger.error(f"Invocation construct error: {err}")
            done(err)
            return

        try:
            if isinstance(component, EventHandlerComponent):
                await self.event_router.route(component, context, done)
            else:
                await self._invoke_regular(component, context, done)
        except Exception as err:
            self.logger.error(f"Invocation error: {err}")
            if done.called:
                self.logger.exception("Error raised after invocation callback")
            else:
                done(err)

    async def _invoke_regular(self, component, context: ComponentInvocation, done: _CallOnce) -> None:
        def on_done(err: Any = None) -> None:
            outcome = outcome_from_done(err, context)
            if isinstance(outcome, Success):
                done(None, context.response())
            else:
                done(outcome.error, None)

        result = component.invoke(context, on_done)
        if inspect.isawaitable(result):
            await result
