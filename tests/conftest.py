"""
Pytest configuration and shared fixtures.
"""

import copy
from typing import Any, Dict, Optional

import pytest

from core.component_registry import ComponentRegistry
from core.events import status_variable
from core.invocation import ComponentInvocation

BAG_VARIABLE = "pizza"
STATE = "resolvePizza"

PIZZA_BAG_ITEMS = [
    {"name": "size"},
    {"name": "topping"},
    {"name": "color"},
    {"name": "price", "entityName": "CURRENCY"},
    {"name": "deliveryDate", "entityName": "DATE"},
]


def build_request(
    status: Optional[Dict[str, Any]] = None,
    entity: Optional[Dict[str, Any]] = None,
    properties: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Invocation request body for a turn resolving the `pizza` composite bag."""
    variables: Dict[str, Any] = {
        BAG_VARIABLE: {
            "entity": True,
            "type": {"name": "PizzaBag", "compositeBagItems": copy.deepcopy(PIZZA_BAG_ITEMS)},
            "value": entity,
        },
    }
    if status is not None:
        variables[status_variable(STATE)] = {"entity": False, "type": "map", "value": status}
    return {
        "botId": "bot-1",
        "platformVersion": "1.1",
        "state": STATE,
        "context": {"variables": variables},
        "properties": properties or {},
        "message": {
            "tenantId": "tenant-1",
            "channelConversation": {"channelId": "web", "type": "test"},
            "messagePayload": {"type": "text", "text": "large pizza please"},
        },
    }


def resolution_status(**overrides: Any) -> Dict[str, Any]:
    status: Dict[str, Any] = {
        "variableName": BAG_VARIABLE,
        "skippedItems": [],
        "disambiguationValues": {},
        "entityQueue": [],
        "resolvedEntities": [],
        "validationErrors": {},
        "updatedEntities": [],
        "outOfOrderMatches": [],
    }
    status.update(overrides)
    return status


class CallbackRecorder:
    """Error-first callback that records every call it receives."""

    def __init__(self):
        self.calls = []

    def __call__(self, err=None, result=None):
        self.calls.append((err, result))

    @property
    def err(self):
        return self.calls[-1][0]

    @property
    def result(self):
        return self.calls[-1][1]


@pytest.fixture
def callback() -> CallbackRecorder:
    return CallbackRecorder()


@pytest.fixture
def registry() -> ComponentRegistry:
    return ComponentRegistry()


@pytest.fixture
def context_factory():
    def make(status=None, entity=None, properties=None) -> ComponentInvocation:
        return ComponentInvocation(build_request(status=status, entity=entity, properties=properties))

    return make
