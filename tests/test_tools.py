"""Tests for tool dispatch and the HTTP transport."""

import json

import pytest
from starlette.testclient import TestClient

from memory_graph.http_server import create_app
from memory_graph.tools import TOOLS, dispatch, list_tool_specs


def call(manager, name, arguments=None):
    return json.loads(dispatch(manager, name, arguments))


class TestToolCatalogue:
    def test_all_operations_exposed(self):
        assert {t.name for t in list_tool_specs()} == {
            "create_entities", "create_relations", "add_observations",
            "delete_entities", "delete_observations", "delete_relations",
            "read_graph", "search_nodes", "open_nodes", "search_by_date_range",
            "get_graph_stats", "add_tags", "remove_tags", "set_importance", "export_graph",
        }
        assert len(TOOLS) == 15

    def test_schemas_use_wire_names(self):
        specs = {t.name: t for t in list_tool_specs()}
        relation_props = specs["create_relations"].inputSchema["$defs"]["RelationInput"]["properties"]
        assert set(relation_props) == {"from", "to", "relationType"}
        assert "minImportance" in specs["search_nodes"].inputSchema["properties"]
        assert specs["search_nodes"].inputSchema["required"] == ["query"]


class TestDispatch:
    def test_create_then_search(self, manager):
        created = call(manager, "create_entities", {"entities": [
            {"name": "Proj", "entityType": "project", "observations": ["o1"], "tags": ["Work"]},
        ]})
        assert created[0]["tags"] == ["work"]

        result = call(manager, "search_nodes", {"query": "proj", "tags": ["work"], "minImportance": 5})
        assert result == {"entities": [], "relations": []}

        call(manager, "set_importance", {"entityName": "Proj", "importance": 6})
        result = call(manager, "search_nodes", {"query": "proj", "tags": ["work"], "minImportance": 5})
        assert [e["name"] for e in result["entities"]] == ["Proj"]

    def test_relations_use_from_alias(self, manager):
        created = call(manager, "create_relations", {"relations": [
            {"from": "A", "to": "B", "relationType": "knows"},
        ]})
        assert created[0]["from"] == "A"
        assert call(manager, "delete_relations", {"relations": [
            {"from": "A", "to": "B", "relationType": "knows"},
        ]}) == {"deletedRelations": [{"from": "A", "to": "B", "relationType": "knows"}]}

    def test_read_graph_without_arguments(self, manager):
        assert call(manager, "read_graph") == {"entities": [], "relations": []}
        assert call(manager, "get_graph_stats")["totalEntities"] == 0

    def test_not_found_reported_as_error(self, manager):
        assert call(manager, "add_observations", {"observations": [
            {"entityName": "ghost", "contents": ["x"]},
        ]}) == {"error": "Entity with name ghost not found"}

    def test_validation_error_reported(self, manager):
        result = call(manager, "set_importance", {"entityName": "A", "importance": 11})
        assert result == {"error": "Importance must be between 0 and 10, got 11"}

    def test_bad_arguments_reported(self, manager):
        result = call(manager, "open_nodes", {"names": "not-a-list"})
        assert result["error"].startswith("Invalid arguments for open_nodes")

    @pytest.mark.parametrize("name,arguments", [
        ("create_entities", {"entities": [
            {"name": "A", "entityType": "x", "observations": [], "importance": float("nan")},
        ]}),
        ("set_importance", {"entityName": "A", "importance": float("inf")}),
        ("search_nodes", {"query": "a", "minImportance": float("nan")}),
    ])
    def test_non_finite_importance_rejected(self, manager, memory_path, name, arguments):
        result = call(manager, name, arguments)
        assert result["error"].startswith(f"Invalid arguments for {name}")
        assert not memory_path.exists()

    def test_unexpected_fields_rejected(self, manager):
        result = call(manager, "read_graph", {"surprise": True})
        assert "error" in result

    def test_unknown_tool(self, manager):
        assert call(manager, "frobnicate") == {"error": "Unknown tool: frobnicate"}

    def test_export_returns_raw_text(self, manager):
        call(manager, "create_entities", {"entities": [
            {"name": "A", "entityType": "x", "observations": ["a, b"]},
        ]})
        text = dispatch(manager, "export_graph", {"format": "csv"})
        assert text.startswith("# ENTITIES\n")
        assert '"a, b"' in text

    def test_export_with_filter(self, manager):
        call(manager, "create_entities", {"entities": [
            {"name": "A", "entityType": "x", "observations": []},
            {"name": "B", "entityType": "y", "observations": []},
        ]})
        text = dispatch(manager, "export_graph", {"format": "json", "filter": {"entityType": "y"}})
        assert [e["name"] for e in json.loads(text)["entities"]] == ["B"]

    def test_unsupported_export_format(self, manager):
        assert call(manager, "export_graph", {"format": "yaml"}) == {
            "error": "Unsupported export format: yaml"
        }

    @pytest.mark.parametrize("name,arguments,expected", [
        ("add_tags", {"entityName": "A", "tags": ["X", "x"]}, {"entityName": "A", "addedTags": ["x"]}),
        ("remove_tags", {"entityName": "A", "tags": ["X"]}, {"entityName": "A", "removedTags": ["x"]}),
    ])
    def test_tag_tools(self, manager, name, arguments, expected):
        call(manager, "create_entities", {"entities": [
            {"name": "A", "entityType": "x", "observations": [], "tags": ["x"] if name == "remove_tags" else []},
        ]})
        assert call(manager, name, arguments) == expected


class TestHttpHealth:
    def test_health_reports_counts(self, manager, memory_path):
        manager.create_entities([{"name": "A", "entityType": "x", "observations": []}])
        client = TestClient(create_app(manager))

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["entities"] == 1
        assert body["relations"] == 0
        assert body["memory_path"] == str(memory_path)
