"""Read-only projections over a loaded graph."""

from datetime import datetime

from .types import Entity, Graph, Relation
from .utils import format_timestamp, matches_tags, parse_bound, parse_timestamp


def _restrict(entities: list[Entity], relations: list[Relation]) -> Graph:
    """Keep only relations whose endpoints are both among the given entities."""
    names = {e["name"] for e in entities}
    return {
        "entities": entities,
        "relations": [r for r in relations if r["from"] in names and r["to"] in names],
    }


def _matches_query(entity: Entity, query: str) -> bool:
    needle = query.lower()
    return (
        needle in entity["name"].lower()
        or needle in entity["entityType"].lower()
        or any(needle in o.lower() for o in entity["observations"])
    )


def _within_importance(entity: Entity, low: float | None, high: float | None) -> bool:
    importance = entity.get("importance")
    if low is not None and (importance is None or importance < low):
        return False
    if high is not None and (importance is None or importance > high):
        return False
    return True


def search_nodes(graph: Graph, query: str, tags: list[str] | None = None,
                 min_importance: float | None = None,
                 max_importance: float | None = None) -> Graph:
    """Case-insensitive substring search over name, type and observations, narrowed by tags and importance."""
    entities = [
        e for e in graph["entities"]
        if _matches_query(e, query)
        and matches_tags(e, tags)
        and _within_importance(e, min_importance, max_importance)
    ]
    return _restrict(entities, graph["relations"])


def open_nodes(graph: Graph, names: list[str]) -> Graph:
    wanted = set(names)
    return _restrict([e for e in graph["entities"] if e["name"] in wanted], graph["relations"])


def _effective_date(record: dict) -> datetime | None:
    return parse_timestamp(record.get("lastModified") or record.get("createdAt"))


def _in_range(date: datetime | None, start: datetime | None, end: datetime | None) -> bool:
    # Unparseable stored dates never fail a bound
    if date is None:
        return True
    if start is not None and date < start:
        return False
    if end is not None and date > end:
        return False
    return True


def search_by_date_range(graph: Graph, start_date: str | None = None,
                         end_date: str | None = None,
                         entity_type: str | None = None,
                         tags: list[str] | None = None) -> Graph:
    """
    Filter by lastModified (falling back to createdAt) within inclusive bounds.

    Entities may additionally be filtered by exact type and tag overlap.
    Relations must connect two surviving entities and fall in range themselves.
    """
    start = parse_bound(start_date)
    end = parse_bound(end_date)

    entities = [
        e for e in graph["entities"]
        if (not entity_type or e["entityType"] == entity_type)
        and matches_tags(e, tags)
        and _in_range(_effective_date(e), start, end)
    ]
    restricted = _restrict(entities, graph["relations"])
    restricted["relations"] = [
        r for r in restricted["relations"] if _in_range(_effective_date(r), start, end)
    ]
    return restricted


def _extremes(records: list[dict]) -> tuple[dict, dict] | None:
    """Oldest and newest record by createdAt; the first encountered wins ties."""
    oldest = newest = None
    oldest_date = newest_date = None
    for record in records:
        date = parse_timestamp(record.get("createdAt"))
        if date is None:
            continue
        if oldest_date is None or date < oldest_date:
            oldest, oldest_date = record, date
        if newest_date is None or date > newest_date:
            newest, newest_date = record, date
    if oldest is None:
        return None
    return (oldest, oldest_date), (newest, newest_date)


def _count_by(records: list[dict], key: str) -> dict[str, int]:
    counts: dict[str, int] = {}
    for record in records:
        counts[record[key]] = counts.get(record[key], 0) + 1
    return counts


def graph_stats(graph: Graph) -> dict:
    entities, relations = graph["entities"], graph["relations"]
    stats = {
        "totalEntities": len(entities),
        "totalRelations": len(relations),
        "entityTypesCounts": _count_by(entities, "entityType"),
        "relationTypesCounts": _count_by(relations, "relationType"),
    }

    entity_extremes = _extremes(entities)
    if entity_extremes:
        (oldest, earliest), (newest, latest) = entity_extremes
        stats["oldestEntity"] = {"name": oldest["name"], "date": oldest["createdAt"]}
        stats["newestEntity"] = {"name": newest["name"], "date": newest["createdAt"]}
        stats["entityDateRange"] = {
            "earliest": format_timestamp(earliest),
            "latest": format_timestamp(latest),
        }

    relation_extremes = _extremes(relations)
    if relation_extremes:
        (oldest, earliest), (newest, latest) = relation_extremes
        stats["oldestRelation"] = {
            "from": oldest["from"], "to": oldest["to"],
            "relationType": oldest["relationType"], "date": oldest["createdAt"],
        }
        stats["newestRelation"] = {
            "from": newest["from"], "to": newest["to"],
            "relationType": newest["relationType"], "date": newest["createdAt"],
        }
        stats["relationDateRange"] = {
            "earliest": format_timestamp(earliest),
            "latest": format_timestamp(latest),
        }

    return stats
