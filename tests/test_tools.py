"""Tests for the tool registry"""

import inspect
from unittest.mock import AsyncMock

import pytest

from ado_mcp.models import ToolDescriptor
from ado_mcp.services import Services
from ado_mcp.tools import STRING, ToolRegistry, build_registry


@pytest.fixture
def registry(client):
    return build_registry(Services.from_client(client))


class TestToolRegistry:
    """Registration rules and read-only behavior"""

    def test_register_builds_schema(self):
        registry = ToolRegistry()
        entry = registry.register(
            "echo",
            "Echo a message",
            AsyncMock(),
            {"message": STRING, "count": {"type": "number"}},
            ("message",),
        )

        assert entry.name == "echo"
        assert entry.arguments == ("message", "count")
        assert entry.descriptor.input_schema == {
            "type": "object",
            "properties": {"message": STRING, "count": {"type": "number"}},
            "required": ["message"],
        }

    def test_no_required_key_when_nothing_required(self):
        registry = ToolRegistry()
        entry = registry.register("ping", "Ping", AsyncMock())
        assert entry.descriptor.input_schema == {"type": "object", "properties": {}}

    def test_duplicate_name_rejected(self):
        registry = ToolRegistry()
        registry.register("echo", "Echo", AsyncMock())
        with pytest.raises(ValueError, match="already registered"):
            registry.register("echo", "Echo again", AsyncMock())

    def test_required_must_be_declared(self):
        registry = ToolRegistry()
        with pytest.raises(ValueError, match="unknown properties"):
            registry.register("echo", "Echo", AsyncMock(), {"a": STRING}, ("b",))

    def test_frozen_registry_rejects_registration(self):
        registry = ToolRegistry()
        registry.freeze()
        with pytest.raises(RuntimeError, match="frozen"):
            registry.register("echo", "Echo", AsyncMock())

    def test_bind_follows_declaration_order(self):
        registry = ToolRegistry()
        entry = registry.register(
            "pair", "Pair", AsyncMock(), {"first": STRING, "second": STRING}
        )

        assert entry.bind({"second": "b", "first": "a"}) == ["a", "b"]
        assert entry.bind({"first": "a"}) == ["a", None]
        assert entry.bind({}) == [None, None]

    def test_listing_preserves_insertion_order(self):
        registry = ToolRegistry()
        for name in ("zeta", "alpha", "mid"):
            registry.register(name, name.title(), AsyncMock())

        assert [d.name for d in registry.list_tools()] == ["zeta", "alpha", "mid"]
        assert list(registry) == ["zeta", "alpha", "mid"]
        assert len(registry) == 3
        assert "alpha" in registry
        assert registry.get("missing") is None


class TestCatalogRegistry:
    """The full catalog built at startup"""

    def test_registry_is_frozen(self, registry):
        with pytest.raises(RuntimeError):
            registry.register("extra", "Extra", AsyncMock())

    def test_names_unique_and_listed(self, registry):
        names = [d.name for d in registry.list_tools()]
        assert len(names) == len(set(names)) == len(registry)

    def test_descriptors_round_trip(self, registry):
        for descriptor in registry.list_tools():
            assert isinstance(descriptor, ToolDescriptor)
            assert descriptor.description.strip(), descriptor.name

            schema = descriptor.input_schema
            assert schema["type"] == "object"
            required = set(schema.get("required", []))
            assert required <= set(schema["properties"]), descriptor.name

    def test_arguments_fit_handler_signature(self, registry):
        for name, entry in registry.items():
            parameters = inspect.signature(entry.handler).parameters.values()
            positional = [p for p in parameters if p.kind is p.POSITIONAL_OR_KEYWORD]
            mandatory = [p for p in positional if p.default is p.empty]

            assert len(entry.arguments) == len(positional), name
            assert len(mandatory) <= len(entry.arguments), name

    def test_required_arguments_cover_mandatory_parameters(self, registry):
        for name, entry in registry.items():
            parameters = list(inspect.signature(entry.handler).parameters.values())
            required = set(entry.descriptor.input_schema.get("required", []))
            for argument, parameter in zip(entry.arguments, parameters):
                if parameter.default is parameter.empty:
                    assert argument in required, f"{name}.{argument}"

    @pytest.mark.parametrize(
        "name",
        [
            "list_projects",
            "query_work_items",
            "get_work_items_by_ids",
            "create_work_item",
            "list_repositories",
            "get_pull_request",
            "create_pull_request",
            "get_builds",
            "run_pipeline",
            "search_code",
            "get_wiki_page",
            "list_test_plans",
            "get_advanced_security_alerts",
        ],
    )
    def test_core_tools_present(self, registry, name):
        assert name in registry

    def test_descriptor_serializes_with_wire_names(self, registry):
        dumped = registry["query_work_items"].descriptor.model_dump(by_alias=True)
        assert set(dumped) == {"name", "description", "inputSchema"}
        assert list(dumped["inputSchema"]["properties"]) == ["wiql", "project"]
