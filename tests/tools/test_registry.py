from typing import Optional

import pytest
from pydantic import Field

from shopmata.exceptions import ToolNotFoundError, ToolRegistrationError
from shopmata.tools import BUILTIN_TOOLS, ChatTool, NoParams, ToolParams, ToolRegistry, create_default_registry
from shopmata.tools.base import params_schema


class ExplodingTool(ChatTool):
    name = "exploding"
    description = "Always fails"
    params_model = NoParams

    def run(self, params, store_id):
        raise RuntimeError("boom")


class EchoTool(ChatTool):
    name = "echo"
    description = "Returns the store it ran for"
    status_message = "Echoing..."

    def run(self, params, store_id):
        return {"store_id": store_id}


@pytest.fixture
def registry(session_factory, clock, events):
    return create_default_registry(session_factory, clock=clock, event_logger=events)


def test_default_registry_has_every_builtin_tool(registry):
    assert len(registry) == len(BUILTIN_TOOLS) + 1
    assert registry.names()[-1] == "send_report"
    assert {
        "get_sales_summary",
        "get_sales_report",
        "get_top_products",
        "get_customer_insights",
        "get_customer_intelligence",
        "get_inventory_alerts",
        "calculate_metal_value",
        "get_negotiation_advice",
        "get_end_of_day_report",
        "get_morning_briefing",
        "channel_performance",
    } <= set(registry.names())


def test_definitions_advertise_parameter_schemas(registry):
    definitions = {d["name"]: d for d in registry.definitions()}

    report = definitions["get_sales_report"]["input_schema"]
    assert report["type"] == "object"
    assert report["required"] == ["period"]
    assert report["properties"]["period"]["type"] == "string"
    assert "this_week" in report["properties"]["period"]["enum"]
    assert "title" not in report["properties"]["period"]

    metal = definitions["calculate_metal_value"]["input_schema"]["properties"]["metal_type"]
    assert "anyOf" not in metal
    assert "gold_14k" in metal["enum"]

    briefing = definitions["get_morning_briefing"]["input_schema"]
    assert briefing == {"type": "object", "properties": {}}


def test_openai_definitions_match_anthropic_ones(registry):
    for anthropic_def, openai_def in zip(registry.definitions(), registry.openai_definitions()):
        assert openai_def["type"] == "function"
        assert openai_def["function"]["name"] == anthropic_def["name"]
        assert openai_def["function"]["parameters"] == anthropic_def["input_schema"]


def test_unknown_tool(registry, events, store):
    assert registry.execute("get_payroll", {}, store.id) == {"error": "Unknown tool: get_payroll"}
    assert events.names() == ["tool.unknown"]


def test_tool_exception_becomes_error_result(session_factory, events):
    registry = ToolRegistry(event_logger=events)
    registry.register(ExplodingTool(session_factory))

    result = registry.execute("exploding", {}, 1)

    assert result == {"error": "Tool exploding failed: boom"}
    assert events.names() == ["tool.started", "tool.failed"]
    assert events.events[-1]["data"]["error"] == "boom"


def test_successful_execution_is_logged(session_factory, events):
    registry = ToolRegistry(event_logger=events)
    registry.register(EchoTool(session_factory))

    assert registry.execute("echo", None, 42) == {"store_id": 42}
    assert events.names() == ["tool.started", "tool.completed"]
    assert events.events[0]["message"] == "Echoing..."
    assert events.events[-1]["data"]["store_id"] == 42


def test_duplicate_and_nameless_registration(session_factory):
    registry = ToolRegistry()
    registry.register(EchoTool(session_factory))

    with pytest.raises(ToolRegistrationError):
        registry.register(EchoTool(session_factory))

    class Nameless(EchoTool):
        name = ""

    with pytest.raises(ToolRegistrationError):
        registry.register(Nameless(session_factory))


def test_get_and_description(registry):
    assert registry.get("get_sales_summary").name == "get_sales_summary"
    assert registry.description("get_sales_summary") == "Looking up sales data..."
    assert registry.description("nope") == "Processing..."
    with pytest.raises(ToolNotFoundError):
        registry.get("nope")


def test_invalid_parameter_types_report_an_error(session_factory):
    class StrictParams(ToolParams):
        count: int = Field(..., description="Required count")

    class StrictTool(EchoTool):
        name = "strict"
        params_model = StrictParams

    tool = StrictTool(session_factory)

    assert tool.execute({"count": "many"}, 1) == {"error": "Invalid parameters: 1 validation error(s)"}
    assert tool.execute({"count": "3", "extra": True}, 1) == {"store_id": 1}


class TitledParams(ToolParams):
    title: str = Field(description="Listing title")
    limit: Optional[int] = Field(default=None, description="How many to return")


def test_params_schema_keeps_a_field_named_title():
    schema = params_schema(TitledParams, required=("title",))

    assert schema == {
        "type": "object",
        "properties": {
            "title": {"type": "string", "description": "Listing title"},
            "limit": {"type": "integer", "description": "How many to return"},
        },
        "required": ["title"],
    }


def test_every_advertised_property_is_clean(registry):
    for definition in registry.definitions():
        for name, prop in definition["input_schema"]["properties"].items():
            assert "title" not in prop, f"{definition['name']}.{name}"
            assert "anyOf" not in prop, f"{definition['name']}.{name}"
            assert prop.get("default", "unset") is not None, f"{definition['name']}.{name}"
