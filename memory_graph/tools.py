"""Tool catalogue and dispatch shared by the stdio and HTTP transports."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

import pydantic
from mcp.types import Tool

from .exceptions import KGError
from .manager import KnowledgeGraphManager
from .requests import (
    AddObservationsRequest,
    CreateEntitiesRequest,
    CreateRelationsRequest,
    DateRangeRequest,
    DeleteEntitiesRequest,
    DeleteObservationsRequest,
    DeleteRelationsRequest,
    EmptyRequest,
    ExportGraphRequest,
    OpenNodesRequest,
    RequestModel,
    SearchNodesRequest,
    SetImportanceRequest,
    TagsRequest,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDef:
    description: str
    request: type[RequestModel]
    handler: Callable[[KnowledgeGraphManager, Any], Any]


def _export(manager: KnowledgeGraphManager, req: ExportGraphRequest) -> str:
    return manager.export_graph(req.format, req.filter.to_store() if req.filter else None)


TOOLS: dict[str, ToolDef] = {
    "create_entities": ToolDef(
        "Create multiple new entities in the knowledge graph",
        CreateEntitiesRequest,
        lambda m, req: m.create_entities([e.to_store() for e in req.entities]),
    ),
    "create_relations": ToolDef(
        "Create multiple new relations between entities in the knowledge graph. "
        "Relations should be in active voice",
        CreateRelationsRequest,
        lambda m, req: m.create_relations([r.to_store() for r in req.relations]),
    ),
    "add_observations": ToolDef(
        "Add new observations to existing entities in the knowledge graph",
        AddObservationsRequest,
        lambda m, req: m.add_observations([o.to_store() for o in req.observations]),
    ),
    "delete_entities": ToolDef(
        "Delete multiple entities and their associated relations from the knowledge graph",
        DeleteEntitiesRequest,
        lambda m, req: m.delete_entities(req.entity_names),
    ),
    "delete_observations": ToolDef(
        "Delete specific observations from entities in the knowledge graph",
        DeleteObservationsRequest,
        lambda m, req: m.delete_observations([d.to_store() for d in req.deletions]),
    ),
    "delete_relations": ToolDef(
        "Delete multiple relations from the knowledge graph",
        DeleteRelationsRequest,
        lambda m, req: m.delete_relations([r.to_store() for r in req.relations]),
    ),
    "read_graph": ToolDef(
        "Read the entire knowledge graph",
        EmptyRequest,
        lambda m, req: m.read_graph(),
    ),
    "search_nodes": ToolDef(
        "Search for nodes in the knowledge graph based on a query, "
        "with optional filters for tags and importance",
        SearchNodesRequest,
        lambda m, req: m.search_nodes(req.query, req.tags, req.min_importance, req.max_importance),
    ),
    "open_nodes": ToolDef(
        "Open specific nodes in the knowledge graph by their names",
        OpenNodesRequest,
        lambda m, req: m.open_nodes(req.names),
    ),
    "search_by_date_range": ToolDef(
        "Search for entities and relations within a date range, optionally filtered "
        "by entity type and tags. Uses lastModified, falling back to createdAt.",
        DateRangeRequest,
        lambda m, req: m.search_by_date_range(req.start_date, req.end_date, req.entity_type, req.tags),
    ),
    "get_graph_stats": ToolDef(
        "Get statistics about the knowledge graph including counts, types, and date ranges",
        EmptyRequest,
        lambda m, req: m.get_graph_stats(),
    ),
    "add_tags": ToolDef(
        "Add tags to an existing entity. Tags are stored lowercase for case-insensitive matching.",
        TagsRequest,
        lambda m, req: m.add_tags(req.entity_name, req.tags),
    ),
    "remove_tags": ToolDef(
        "Remove tags from an existing entity in the knowledge graph",
        TagsRequest,
        lambda m, req: m.remove_tags(req.entity_name, req.tags),
    ),
    "set_importance": ToolDef(
        "Set the importance level for an entity. Importance must be a number between 0 and 10.",
        SetImportanceRequest,
        lambda m, req: m.set_importance(req.entity_name, req.importance),
    ),
    "export_graph": ToolDef(
        "Export the knowledge graph as JSON, CSV, or GraphML with optional filtering. "
        "GraphML is readable by graph tools like Gephi and Cytoscape.",
        ExportGraphRequest,
        _export,
    ),
}


def list_tool_specs() -> list[Tool]:
    """MCP tool descriptions, with input schemas generated from the request models."""
    return [
        Tool(
            name=name,
            description=tool.description,
            inputSchema=tool.request.model_json_schema(by_alias=True),
        )
        for name, tool in TOOLS.items()
    ]


def _error(message: str) -> str:
    return json.dumps({"error": message})


def dispatch(manager: KnowledgeGraphManager, name: str, arguments: dict | None) -> str:
    """Run one tool call and return its text payload. Errors are reported, never raised."""
    tool = TOOLS.get(name)
    if tool is None:
        return _error(f"Unknown tool: {name}")

    try:
        request = tool.request.model_validate(arguments or {})
        result = tool.handler(manager, request)
    except pydantic.ValidationError as e:
        logger.warning(f"Invalid arguments for {name}: {e}")
        return _error(f"Invalid arguments for {name}: {e}")
    except KGError as e:
        # Structured error response for known errors
        logger.warning(f"KG error in {name}: {e}")
        return _error(str(e))
    except Exception as e:
        logger.error(f"Unexpected error in {name}: {e}", exc_info=True)
        return _error(f"Internal error: {str(e)}")

    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False)
