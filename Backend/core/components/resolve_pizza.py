"""
Entity event handlers for the PizzaBag composite bag.
"""
from __future__ import annotations

import logging

from core.components.base import EventHandlerComponent

logger = logging.getLogger("resolve_pizza")

SIZES = ("small", "medium", "large")

component = EventHandlerComponent({"name": "resolve.pizza"})


@component.on("validateSize")
async def validate_size(event, entity_model, context):
    size = (event.get("newValue") or "").lower()
    if size not in SIZES:
        entity_model.add_validation_error("size", f"We only bake {', '.join(SIZES)} pizzas")
        return False
    return True


@component.on("shouldPromptTopping")
async def should_prompt_topping(event, entity_model, context):
    # no toppings for kids' pizzas unless asked for
    return entity_model.get_item_value("size") != "small"


@component.on("disambiguateSize")
async def disambiguate_size(event, entity_model, context):
    entity_model.queue_entities("size")
    entity_model.solicit_input("topping")


@component.on("publishMessage")
async def publish_message(event, entity_model, context):
    entity_model.add_candidate_message()


@component.on("resolved")
async def resolved(event, entity_model, context):
    current = entity_model.entity()
    logger.info(f"Resolved pizza: {entity_model.display_values()}")
    entity_model.add_resolved_entity(current)
    upcoming = entity_model.peek_entity_queue()
    if upcoming is not None:
        entity_model.set_current_entity(upcoming)
        entity_model.solicit_input()
