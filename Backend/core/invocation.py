"""
Per-invocation execution context handed to components.

A ComponentInvocation wraps one validated request body and the response being
built for it. Components read conversation variables through it, mutate the
response, and signal whether the bot keeps the turn.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

from schemas import InvocationRequest

SDK_VERSION = "2.1.0"

_MISSING = object()


class ComponentInvocation:
    def __init__(self, request_body: Optional[dict]) -> None:
        if request_body is None:
            raise ValueError("Invocation request body is required")
        # Raises pydantic.ValidationError on malformed bodies
        self._request_model = InvocationRequest.model_validate(request_body)
        self._request: Dict[str, Any] = copy.deepcopy(request_body)
        self._request.setdefault("context", {}).setdefault("variables", {})
        self._response: Dict[str, Any] = {
            "platformVersion": self._request_model.platform_version,
            "context": copy.deepcopy(self._request["context"]),
            "action": None,
            "keepTurn": True,
            "transition": False,
            "error": False,
            "modifyContext": False,
        }

    @staticmethod
    def sdk_version() -> str:
        return SDK_VERSION

    def request(self) -> Dict[str, Any]:
        return self._request

    def response(self) -> Dict[str, Any]:
        return self._response

    def state(self) -> Optional[str]:
        return self._request_model.state

    def properties(self) -> Dict[str, Any]:
        return self._request.get("properties") or {}

    def variable(self, name: str, value: Any = _MISSING) -> Any:
        """Read a context variable's value, or write it when `value` is given."""
        variables = self._response["context"].setdefault("variables", {})
        if value is _MISSING:
            entry = variables.get(name)
            return entry.get("value") if isinstance(entry, dict) else None
        entry = variables.get(name)
        if entry is None:
            entry = variables[name] = {"entity": False, "type": "string"}
        entry["value"] = value
        self._response["modifyContext"] = True
        return value

    def keep_turn(self, keep: bool = True) -> "ComponentInvocation":
        self._response["keepTurn"] = bool(keep)
        return self

    def transition(self, action: Optional[str] = None) -> "ComponentInvocation":
        self._response["transition"] = True
        if action is not None:
            self._response["action"] = action
        return self

    def messages(self) -> List[Dict[str, Any]]:
        return self._response.setdefault("messages", [])

    def reply(self, payload: Any) -> "ComponentInvocation":
        """Append an outbound message envelope addressed to the inbound conversation."""
        message = self._request.get("message") or {}
        if isinstance(payload, str):
            payload = {"type": "text", "text": payload}
        self.messages().append({
            "tenantId": message.get("tenantId"),
            "channelConversation": message.get("channelConversation"),
            "messagePayload": payload,
        })
        self._response["keepTurn"] = False
        return self
