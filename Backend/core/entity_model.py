"""
Entity resolution state machine for composite bag entities.

EntityModel queries and changes the composite bag entity being resolved in the
current turn together with its entity resolution status. The status record is
owned by the conversation context; ResolutionStatus is a live view over it, so
every change is visible to the rest of the turn immediately.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger("entity_model")


class ResolutionStatus:
    """Mutable view over the raw `entityResolutionStatus` record."""

    def __init__(self, raw: Dict[str, Any]) -> None:
        self.raw = raw
        raw.setdefault("skippedItems", [])
        raw.setdefault("disambiguationValues", {})
        raw.setdefault("entityQueue", [])
        raw.setdefault("resolvedEntities", [])
        raw.setdefault("validationErrors", {})
        raw.setdefault("updatedEntities", [])
        raw.setdefault("outOfOrderMatches", [])

    @property
    def variable_name(self) -> Optional[str]:
        return self.raw.get("variableName")

    @property
    def event(self) -> Optional[Dict[str, Any]]:
        return self.raw.get("event")

    @property
    def resolving_field(self) -> Optional[str]:
        return self.raw.get("resolvingField")

    @resolving_field.setter
    def resolving_field(self, value: Optional[str]) -> None:
        if value is None:
            self.raw.pop("resolvingField", None)
        else:
            self.raw["resolvingField"] = value

    @property
    def skipped_items(self) -> List[str]:
        return self.raw["skippedItems"]

    @skipped_items.setter
    def skipped_items(self, value: List[str]) -> None:
        self.raw["skippedItems"] = value

    @property
    def disambiguation_values(self) -> Dict[str, List[Any]]:
        return self.raw["disambiguationValues"]

    @disambiguation_values.setter
    def disambiguation_values(self, value: Dict[str, List[Any]]) -> None:
        self.raw["disambiguationValues"] = value

    @property
    def entity_queue(self) -> List[Dict[str, Any]]:
        return self.raw["entityQueue"]

    @property
    def resolved_entities(self) -> List[Dict[str, Any]]:
        return self.raw["resolvedEntities"]

    @property
    def validation_errors(self) -> Dict[str, str]:
        return self.raw["validationErrors"]

    @property
    def prompt_for_value(self) -> Optional[bool]:
        return self.raw.get("promptForValue")

    @prompt_for_value.setter
    def prompt_for_value(self, value: bool) -> None:
        self.raw["promptForValue"] = value


@dataclass
class DisplayDescriptor:
    properties: List[str]
    function: Optional[Callable[[Any], Any]] = None


def _to_datetime(value: Any) -> Any:
    # System DATE entities carry epoch milliseconds
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        # fromisoformat only accepts a trailing Z from Python 3.11
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    return value


def system_entity_display_properties() -> Dict[str, DisplayDescriptor]:
    return {
        "DATE": DisplayDescriptor(["date"], _to_datetime),
        "CURRENCY": DisplayDescriptor(["amount", "currency"]),
        "NUMBER": DisplayDescriptor(["number"]),
        "YES_NO": DisplayDescriptor(["yesno"]),
    }


class EntityModel:
    def __init__(self, entity: Optional[Dict[str, Any]], status: Union[Dict[str, Any], ResolutionStatus], context) -> None:
        self._entity = entity
        self._status = status if isinstance(status, ResolutionStatus) else ResolutionStatus(status)
        self._context = context
        self._display = system_entity_display_properties()

    @property
    def status(self) -> ResolutionStatus:
        return self._status

    def entity(self) -> Optional[Dict[str, Any]]:
        return self._entity

    # ---- item values -----------------------------------------------------

    def get_item_value(self, name: str) -> Any:
        return (self._entity or {}).get(name)

    def set_item_value(self, name: str, value: Any) -> None:
        if self._entity is None:
            self._entity = {}
            self._variable()["value"] = self._entity
        self._entity[name] = value

    def clear_item_value(self, name: str) -> None:
        if self._entity is not None:
            self._entity.pop(name, None)

    def add_validation_error(self, item_name: str, error: str) -> None:
        self._status.validation_errors[item_name] = error

    def disambiguation_values(self, item_name: str) -> List[Any]:
        return self._status.disambiguation_values.get(item_name) or []

    def clear_disambiguation_values(self, item_name: str) -> None:
        self._status.disambiguation_values.pop(item_name, None)

    def user_input(self) -> Optional[str]:
        return self._status.raw.get("userInput")

    # ---- prompting -------------------------------------------------------

    def solicit_input(self, item_name: Optional[str] = None) -> None:
        """Keep the turn and prompt for `item_name`.

        Leaving item_name unset lets the resolving component choose the next item.
        """
        logger.debug(f"Solicit input for {item_name}")
        if item_name:
            self._status.resolving_field = item_name
            self.unskip_item(item_name)
        else:
            self._status.resolving_field = None
        self._context.keep_turn(True)

    def skip_item(self, name: str) -> None:
        logger.debug(f"Skip item {name}")
        if name not in self._status.skipped_items:
            self._status.skipped_items.append(name)
        if name == self._status.resolving_field:
            self._status.resolving_field = None

    def unskip_item(self, name: str) -> None:
        logger.debug(f"Unskip item {name}")
        self._status.skipped_items = [item for item in self._status.skipped_items if item != name]

    def candidate_message(self) -> Any:
        return self._status.raw.get("candidateMessage")

    def add_candidate_message(self) -> None:
        """Send the bot message prepared by the resolving component and release the turn.

        The candidate is a message payload rather than plain text; it may be a card.
        """
        logger.debug("Using candidate bot message")
        message = self._context.request().get("message") or {}
        self._context.messages().append({
            "tenantId": message.get("tenantId"),
            "channelConversation": message.get("channelConversation"),
            "messagePayload": self.candidate_message(),
        })
        self._context.keep_turn(False)

    def items_updated(self) -> List[str]:
        return [ent["name"] for ent in self._status.raw["updatedEntities"]]

    def items_matched_out_of_order(self) -> List[str]:
        return [ent["name"] for ent in self._status.raw["outOfOrderMatches"]]

    # ---- display values --------------------------------------------------

    def set_system_entity_display_properties(self, entity_name: str, properties: List[str]) -> None:
        descriptor = self._display.get(entity_name)
        if descriptor is None:
            self._display[entity_name] = DisplayDescriptor(list(properties))
        else:
            descriptor.properties = list(properties)

    def set_system_entity_display_function(self, entity_name: str, function: Callable[[Any], Any]) -> None:
        descriptor = self._display.get(entity_name)
        if descriptor is None:
            raise KeyError(f"No display properties registered for {entity_name}")
        descriptor.function = function

    def get_display_value(self, entity_name: str, raw_value: Any) -> Any:
        descriptor = self._display.get(entity_name)
        if descriptor is None or not isinstance(raw_value, dict):
            return raw_value
        if descriptor.function is not None:
            return descriptor.function(raw_value.get(descriptor.properties[0]))
        return " ".join("" if raw_value.get(p) is None else str(raw_value.get(p)) for p in descriptor.properties)

    def _variable(self) -> Dict[str, Any]:
        return self._context.response()["context"]["variables"][self._status.variable_name]

    def composite_bag_items(self) -> List[Dict[str, Any]]:
        return self._variable()["type"]["compositeBagItems"]

    def entity_name(self) -> str:
        return self._variable()["type"]["name"]

    def _item_display_value(self, item: Dict[str, Any], raw_value: Any) -> Any:
        if item.get("entityName"):
            return self.get_display_value(item["entityName"], raw_value)
        return raw_value

    def display_value(self, item_name: str) -> Any:
        value = self.get_item_value(item_name)
        for item in self.composite_bag_items():
            if item["name"] == item_name:
                value = self._item_display_value(item, value)
        return value

    def display_values(self) -> List[Dict[str, Any]]:
        entity = self._entity or {}
        values = []
        for item in self.composite_bag_items():
            if item["name"] in entity:
                values.append({"name": item["name"], "value": self._item_display_value(item, entity[item["name"]])})
        return values

    # ---- entity queue ----------------------------------------------------

    def queue_entities(self, item_name: str) -> Optional[Dict[str, Any]]:
        """Queue one entity per disambiguation value of `item_name` and make the first current.

        Other bag items with several disambiguation values are paired by position:
        the i-th queued entity receives the i-th value of every such item.
        """
        candidates = self.disambiguation_values(item_name)
        if not candidates:
            return self.peek_entity_queue()
        items = self.composite_bag_items()
        for i in range(len(candidates)):
            if i == 0 and self._entity is not None:
                ent = self._entity
            else:
                ent = {"entityName": self.entity_name()}
            for item in items:
                values = self.disambiguation_values(item["name"])
                if len(values) > i:
                    ent[item["name"]] = values[i]
            self.queue_entity(ent)
        logger.debug(f"Queued {len(candidates)} entities for {item_name}")
        self._status.disambiguation_values = {}
        ent = self.peek_entity_queue()
        if ent is not None:
            self.set_current_entity(ent)
        return ent

    def queue_entity(self, entity: Dict[str, Any]) -> None:
        self._status.entity_queue.append(entity)

    def entity_queue(self) -> List[Dict[str, Any]]:
        return self._status.entity_queue

    def pop_entity_queue(self) -> None:
        if self._status.entity_queue:
            self._status.entity_queue.pop(0)

    def peek_entity_queue(self) -> Optional[Dict[str, Any]]:
        if self._status.entity_queue:
            return self._status.entity_queue[0]
        return None

    def add_resolved_entity(self, entity: Dict[str, Any]) -> None:
        self._status.resolved_entities.append(entity)
        self.pop_entity_queue()

    def resolved_entities(self) -> List[Dict[str, Any]]:
        return self._status.resolved_entities

    def set_current_entity(self, entity: Dict[str, Any]) -> None:
        self._entity = entity
        self._status.resolving_field = None
        self._variable()["value"] = entity
