from __future__ import annotations

from core.components.base import RegularComponent


def invoke(context, done) -> None:
    human = context.properties().get("human") or "Human"
    context.reply(f"Greetings {human}")
    context.transition()
    done()


component = RegularComponent(
    {
        "name": "hello.world",
        "properties": {"human": {"required": True, "type": "string"}},
        "supportedActions": [],
    },
    invoke,
)
