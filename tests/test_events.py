"""
Tests for entity event routing through the component shell.
"""

import pytest

from conftest import BAG_VARIABLE, STATE, build_request, resolution_status
from core.components.base import EventHandlerComponent
from core.events import EventKind, status_variable
from core.shell import ComponentShell


def status_of(response):
    return response["context"]["variables"][status_variable(STATE)]["value"]


def bag_of(response):
    return response["context"]["variables"][BAG_VARIABLE]["value"]


@pytest.fixture
def shell_for(registry):
    def make(handlers):
        registry.register(EventHandlerComponent({"name": "resolve.pizza"}, handlers))
        return ComponentShell(None, registry)

    return make


class TestEventKind:
    @pytest.mark.parametrize("name,kind", [
        ("shouldPromptSize", EventKind.SHOULD_PROMPT),
        ("shouldPrompt", EventKind.SHOULD_PROMPT),
        ("shouldConfirm", EventKind.SHOULD),
        ("validateSize", EventKind.PLAIN),
        ("publishMessage", EventKind.PLAIN),
    ])
    def test_classification(self, name, kind):
        assert EventKind.of(name) is kind

    def test_default_flags(self):
        assert EventKind.SHOULD_PROMPT.default_flag is True
        assert EventKind.SHOULD.default_flag is None
        assert EventKind.PLAIN.default_flag is None


class TestEventRouting:
    @pytest.mark.asyncio
    async def test_no_status_is_a_no_op(self, shell_for, callback):
        shell = shell_for({})

        await shell.invoke_component_by_name("resolve.pizza", build_request(), None, callback)

        assert len(callback.calls) == 1
        assert callback.err is None
        assert status_variable(STATE) not in callback.result["context"]["variables"]

    @pytest.mark.asyncio
    async def test_status_without_event_is_a_no_op(self, shell_for, callback):
        calls = []

        async def validate(event, model, ctx):
            calls.append(event)

        shell = shell_for({"validateSize": validate})
        body = build_request(status=resolution_status(), entity={})

        await shell.invoke_component_by_name("resolve.pizza", body, None, callback)

        assert callback.err is None
        assert calls == []

    @pytest.mark.asyncio
    async def test_handler_receives_event_model_and_context(self, shell_for, callback):
        seen = {}

        async def validate(event, model, ctx):
            seen["event"] = event
            seen["size"] = model.get_item_value("size")
            seen["tenant"] = ctx.request()["message"]["tenantId"]
            model.add_validation_error("size", "Too large")
            return False

        shell = shell_for({"validateSize": validate})
        event = {"name": "validateSize", "newValue": "huge"}
        body = build_request(status=resolution_status(event=event), entity={"size": "huge"})

        await shell.invoke_component_by_name("resolve.pizza", body, None, callback)

        assert callback.err is None
        assert seen == {"event": event, "size": "huge", "tenant": "tenant-1"}
        status = status_of(callback.result)
        assert status["validationErrors"] == {"size": "Too large"}
        # plain events do not touch promptForValue
        assert "promptForValue" not in status

    @pytest.mark.asyncio
    async def test_should_event_result_sets_prompt_flag(self, shell_for, callback):
        async def should_prompt(event, model, ctx):
            return False

        shell = shell_for({"shouldPromptSize": should_prompt})
        body = build_request(status=resolution_status(event={"name": "shouldPromptSize"}), entity={})

        await shell.invoke_component_by_name("resolve.pizza", body, None, callback)

        assert status_of(callback.result)["promptForValue"] is False

    @pytest.mark.asyncio
    async def test_should_event_returning_none_defaults_to_true(self, shell_for, callback):
        async def should_confirm(event, model, ctx):
            return None

        shell = shell_for({"shouldConfirm": should_confirm})
        body = build_request(status=resolution_status(event={"name": "shouldConfirm"}), entity={})

        await shell.invoke_component_by_name("resolve.pizza", body, None, callback)

        assert status_of(callback.result)["promptForValue"] is True

    @pytest.mark.asyncio
    async def test_missing_should_prompt_handler_defaults_to_true(self, shell_for, callback):
        shell = shell_for({})
        body = build_request(status=resolution_status(event={"name": "shouldPromptTopping"}), entity={})

        await shell.invoke_component_by_name("resolve.pizza", body, None, callback)

        assert callback.err is None
        assert status_of(callback.result)["promptForValue"] is True

    @pytest.mark.asyncio
    async def test_missing_plain_handler_leaves_status_untouched(self, shell_for, callback):
        shell = shell_for({})
        body = build_request(status=resolution_status(event={"name": "shouldConfirm"}), entity={})

        await shell.invoke_component_by_name("resolve.pizza", body, None, callback)

        assert "promptForValue" not in status_of(callback.result)

    @pytest.mark.asyncio
    async def test_handler_failure_is_delivered(self, shell_for, callback):
        async def validate(event, model, ctx):
            raise RuntimeError("validation service down")

        shell = shell_for({"validateSize": validate})
        body = build_request(status=resolution_status(event={"name": "validateSize"}), entity={})

        await shell.invoke_component_by_name("resolve.pizza", body, None, callback)

        assert len(callback.calls) == 1
        assert isinstance(callback.err, RuntimeError)
        assert callback.result is None

    @pytest.mark.asyncio
    async def test_sync_handler_is_rejected(self, shell_for, callback):
        def validate(event, model, ctx):
            return True

        shell = shell_for({"validateSize": validate})
        body = build_request(status=resolution_status(event={"name": "validateSize"}), entity={})

        await shell.invoke_component_by_name("resolve.pizza", body, None, callback)

        assert len(callback.calls) == 1
        assert isinstance(callback.err, TypeError)

    @pytest.mark.asyncio
    async def test_queue_entities_from_handler(self, shell_for, callback):
        async def disambiguate(event, model, ctx):
            model.queue_entities("color")
            model.solicit_input("topping")

        shell = shell_for({"disambiguateColor": disambiguate})
        status = resolution_status(
            event={"name": "disambiguateColor"},
            disambiguationValues={"color": ["red", "blue"]},
        )
        body = build_request(status=status, entity={})

        await shell.invoke_component_by_name("resolve.pizza", body, None, callback)

        result_status = status_of(callback.result)
        assert result_status["disambiguationValues"] == {}
        assert result_status["entityQueue"] == [{"color": "red"}, {"entityName": "PizzaBag", "color": "blue"}]
        assert result_status["resolvingField"] == "topping"
        assert bag_of(callback.result) == {"color": "red"}
        assert callback.result["keepTurn"] is True


class TestResolvePizzaComponent:
    @pytest.fixture
    def shell(self, registry):
        from core.components.resolve_pizza import component

        registry.register(component)
        return ComponentShell(None, registry)

    @pytest.mark.asyncio
    async def test_invalid_size(self, shell, callback):
        status = resolution_status(event={"name": "validateSize", "newValue": "jumbo"})
        await shell.invoke_component_by_name("resolve.pizza", build_request(status=status, entity={}), None, callback)

        assert "size" in status_of(callback.result)["validationErrors"]

    @pytest.mark.asyncio
    async def test_no_topping_prompt_for_small(self, shell, callback):
        status = resolution_status(event={"name": "shouldPromptTopping"})
        body = build_request(status=status, entity={"size": "small"})

        await shell.invoke_component_by_name("resolve.pizza", body, None, callback)

        assert status_of(callback.result)["promptForValue"] is False

    @pytest.mark.asyncio
    async def test_publish_message(self, shell, callback):
        payload = {"type": "text", "text": "Which size?"}
        status = resolution_status(event={"name": "publishMessage"}, candidateMessage=payload)

        await shell.invoke_component_by_name("resolve.pizza", build_request(status=status, entity={}), None, callback)

        assert callback.result["messages"][0]["messagePayload"] == payload
        assert callback.result["keepTurn"] is False

    @pytest.mark.asyncio
    async def test_resolved_moves_to_next_queued_entity(self, shell, callback):
        first = {"size": "small"}
        second = {"entityName": "PizzaBag", "size": "large"}
        status = resolution_status(event={"name": "resolved"}, entityQueue=[first, second])

        await shell.invoke_component_by_name("resolve.pizza", build_request(status=status, entity=first), None, callback)

        result_status = status_of(callback.result)
        assert result_status["resolvedEntities"] == [first]
        assert result_status["entityQueue"] == [second]
        assert bag_of(callback.result) == second
