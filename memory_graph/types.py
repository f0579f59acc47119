"""Type definitions for the memory graph."""

from typing import TypedDict, NotRequired

# 'from' is a keyword, so Relation uses the functional TypedDict syntax.
Relation = TypedDict("Relation", {
    "from": str,
    "to": str,
    "relationType": str,
    "createdAt": NotRequired[str],
    "lastModified": NotRequired[str],
})


class Entity(TypedDict):
    """Node in the memory graph."""
    name: str
    entityType: str
    observations: list[str]
    createdAt: NotRequired[str]
    lastModified: NotRequired[str]
    tags: NotRequired[list[str]]
    importance: NotRequired[float]


class Graph(TypedDict):
    """Complete graph structure, in file order."""
    entities: list[Entity]
    relations: list[Relation]


class ObservationAddition(TypedDict):
    entityName: str
    contents: list[str]


class ObservationDeletion(TypedDict):
    entityName: str
    observations: list[str]


class ExportFilter(TypedDict, total=False):
    startDate: str
    endDate: str
    entityType: str
    tags: list[str]


def empty_graph() -> Graph:
    return {"entities": [], "relations": []}
