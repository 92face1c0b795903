from __future__ import annotations

from typing import Optional

UNKNOWN_COMPONENT = "unknownComponent"
BAD_REQUEST = "badRequest"


class InvocationError(Exception):
    """Error delivered through the invocation callback, tagged with a `name`."""

    def __init__(self, name: str, message: str, component: Optional[str] = None) -> None:
        super().__init__(message)
        self.name = name
        self.component = component

    @classmethod
    def unknown_component(cls, component: str) -> "InvocationError":
        return cls(UNKNOWN_COMPONENT, f"Unknown component {component}", component=component)

    @classmethod
    def bad_request(cls, message: str, component: Optional[str] = None) -> "InvocationError":
        return cls(BAD_REQUEST, message, component=component)
