"""Knowledge graph manager: every operation is one load -> transform -> save cycle."""

import logging
import threading
from datetime import datetime
from typing import Callable

from . import exporters, queries
from .config import MemoryConfig, ensure_memory_path
from .exceptions import EntityNotFoundError, ValidationError
from .persistence import GraphPersistence
from .types import (
    Entity,
    ExportFilter,
    Graph,
    ObservationAddition,
    ObservationDeletion,
    Relation,
)
from .utils import (
    format_timestamp,
    normalize_tags,
    parse_timestamp,
    relation_key,
    utc_now,
    validate_importance,
)

logger = logging.getLogger(__name__)


def _find_entity(graph: Graph, name: str) -> Entity | None:
    return next((e for e in graph["entities"] if e["name"] == name), None)


def _require_entity(graph: Graph, name: str) -> Entity:
    entity = _find_entity(graph, name)
    if entity is None:
        raise EntityNotFoundError(name)
    return entity


def _touch(entity: Entity, timestamp: str):
    """Stamp lastModified, never earlier than the entity's createdAt."""
    created = parse_timestamp(entity.get("createdAt"))
    if created is not None and created > parse_timestamp(timestamp):
        timestamp = entity["createdAt"]
    entity["lastModified"] = timestamp


def _initial_timestamps(candidate: dict, timestamp: str) -> tuple[str, str]:
    """
    Resolve (createdAt, lastModified) for a new record.
    Caller-supplied values win; lastModified never precedes createdAt.
    """
    created_at = candidate.get("createdAt") or timestamp
    created = parse_timestamp(created_at)
    last_modified = candidate.get("lastModified")

    if not last_modified:
        now = parse_timestamp(timestamp)
        if created is not None and created > now:
            return created_at, created_at
        return created_at, timestamp

    modified = parse_timestamp(last_modified)
    if created is not None and modified is not None and modified < created:
        raise ValidationError(
            f"lastModified {last_modified} is earlier than createdAt {created_at}"
        )
    return created_at, last_modified


class KnowledgeGraphManager:
    """
    Owns the operations over one backing file.

    Nothing is cached between calls: each operation reloads the file, and
    mutations rewrite it once, after every in-memory change has succeeded.
    The lock serializes load/save windows for transports that dispatch
    concurrently.
    """

    def __init__(self, persistence: GraphPersistence,
                 clock: Callable[[], datetime] | None = None,
                 stamp_requested_endpoints: bool = False):
        self.persistence = persistence
        self.clock = clock or utc_now
        self.stamp_requested_endpoints = stamp_requested_endpoints
        self.lock = threading.RLock()

    @classmethod
    def from_config(cls, config: MemoryConfig) -> "KnowledgeGraphManager":
        """Build a manager for the configured backing file, migrating a legacy file first."""
        persistence = GraphPersistence(
            ensure_memory_path(config),
            retries=config.io_retries,
            retry_delay=config.io_retry_delay,
        )
        logger.info(f"Memory graph backed by {persistence.path}")
        return cls(persistence, stamp_requested_endpoints=config.stamp_requested_endpoints)

    def _timestamp(self) -> str:
        return format_timestamp(self.clock())

    # ========================================================================
    # Creation
    # ========================================================================

    def _new_entity(self, candidate: Entity, timestamp: str) -> Entity:
        entity: Entity = {
            "name": candidate["name"],
            "entityType": candidate["entityType"],
            "observations": list(dict.fromkeys(candidate.get("observations") or [])),
        }

        entity["createdAt"], entity["lastModified"] = _initial_timestamps(candidate, timestamp)

        tags = normalize_tags(candidate.get("tags") or [])
        if tags:
            entity["tags"] = tags
        if candidate.get("importance") is not None:
            validate_importance(candidate["importance"])
            entity["importance"] = candidate["importance"]
        return entity

    def create_entities(self, entities: list[Entity]) -> list[Entity]:
        """Insert entities whose names are new. Returns only the inserted ones."""
        with self.lock:
            graph = self.persistence.load()
            timestamp = self._timestamp()
            seen = {e["name"] for e in graph["entities"]}

            created = []
            for candidate in entities:
                if candidate["name"] in seen:
                    continue
                seen.add(candidate["name"])
                created.append(self._new_entity(candidate, timestamp))

            graph["entities"].extend(created)
            self.persistence.save(graph)

            logger.info(f"Created {len(created)} of {len(entities)} entities")
            return created

    def create_relations(self, relations: list[Relation]) -> list[Relation]:
        """Insert relations whose (from, to, relationType) triple is new."""
        with self.lock:
            graph = self.persistence.load()
            timestamp = self._timestamp()
            seen = {relation_key(r) for r in graph["relations"]}

            created = []
            for candidate in relations:
                key = relation_key(candidate)
                if key in seen:
                    continue
                seen.add(key)
                created_at, last_modified = _initial_timestamps(candidate, timestamp)
                created.append({
                    "from": candidate["from"],
                    "to": candidate["to"],
                    "relationType": candidate["relationType"],
                    "createdAt": created_at,
                    "lastModified": last_modified,
                })

            graph["relations"].extend(created)
            self.persistence.save(graph)

            logger.info(f"Created {len(created)} of {len(relations)} relations")
            return created

    # ========================================================================
    # Observations
    # ========================================================================

    def add_observations(self, observations: list[ObservationAddition]) -> list[dict]:
        """Append new observation strings. Every named entity must exist."""
        with self.lock:
            graph = self.persistence.load()
            timestamp = self._timestamp()

            results = []
            for item in observations:
                entity = _require_entity(graph, item["entityName"])
                existing = set(entity["observations"])
                added = [c for c in dict.fromkeys(item["contents"]) if c not in existing]
                entity["observations"].extend(added)
                if added:
                    _touch(entity, timestamp)
                results.append({"entityName": item["entityName"], "addedObservations": added})

            self.persistence.save(graph)
            logger.info(f"Added observations to {len(results)} entities")
            return results

    def delete_observations(self, deletions: list[ObservationDeletion]) -> list[dict]:
        """Remove listed observations where present. Missing entities are skipped."""
        with self.lock:
            graph = self.persistence.load()
            timestamp = self._timestamp()

            results = []
            for item in deletions:
                entity = _find_entity(graph, item["entityName"])
                if entity is None:
                    continue
                doomed = set(item["observations"])
                removed = [o for o in entity["observations"] if o in doomed]
                if removed:
                    entity["observations"] = [o for o in entity["observations"] if o not in doomed]
                    _touch(entity, timestamp)
                    results.append({"entityName": entity["name"], "deletedObservations": removed})

            self.persistence.save(graph)
            logger.info(f"Deleted observations from {len(results)} entities")
            return results

    # ========================================================================
    # Deletion
    # ========================================================================

    def delete_entities(self, entity_names: list[str]) -> dict:
        """Delete entities and every relation touching them. Unknown names are ignored."""
        with self.lock:
            graph = self.persistence.load()
            names = set(entity_names)

            entities = [e for e in graph["entities"] if e["name"] not in names]
            relations = [
                r for r in graph["relations"]
                if r["from"] not in names and r["to"] not in names
            ]
            result = {
                "deletedEntities": len(graph["entities"]) - len(entities),
                "deletedRelations": len(graph["relations"]) - len(relations),
            }
            graph["entities"] = entities
            graph["relations"] = relations

            self.persistence.save(graph)
            logger.info(
                f"Deleted {result['deletedEntities']} entities and "
                f"{result['deletedRelations']} connected relations"
            )
            return result

    def delete_relations(self, relations: list[Relation]) -> dict:
        """Delete relations by triple and stamp the endpoints they connected."""
        with self.lock:
            graph = self.persistence.load()
            timestamp = self._timestamp()
            doomed = {relation_key(r) for r in relations}

            kept, removed = [], []
            for relation in graph["relations"]:
                (removed if relation_key(relation) in doomed else kept).append(relation)
            graph["relations"] = kept

            if self.stamp_requested_endpoints:
                touched = {name for r in relations for name in (r["from"], r["to"])}
            else:
                touched = {name for r in removed for name in (r["from"], r["to"])}
            for entity in graph["entities"]:
                if entity["name"] in touched:
                    _touch(entity, timestamp)

            self.persistence.save(graph)
            logger.info(f"Deleted {len(removed)} of {len(relations)} requested relations")
            return {
                "deletedRelations": [
                    {"from": r["from"], "to": r["to"], "relationType": r["relationType"]}
                    for r in removed
                ]
            }

    # ========================================================================
    # Tags and importance
    # ========================================================================

    def add_tags(self, entity_name: str, tags: list[str]) -> dict:
        with self.lock:
            graph = self.persistence.load()
            entity = _require_entity(graph, entity_name)

            current = entity.get("tags") or []
            present = {tag.lower() for tag in current}
            added = [tag for tag in normalize_tags(tags) if tag not in present]
            if added:
                entity["tags"] = current + added
                _touch(entity, self._timestamp())

            self.persistence.save(graph)
            logger.info(f"Added {len(added)} tags to entity '{entity_name}'")
            return {"entityName": entity_name, "addedTags": added}

    def remove_tags(self, entity_name: str, tags: list[str]) -> dict:
        with self.lock:
            graph = self.persistence.load()
            entity = _require_entity(graph, entity_name)

            current = entity.get("tags") or []
            present = {tag.lower() for tag in current}
            removed = [tag for tag in normalize_tags(tags) if tag in present]
            if removed:
                remaining = [tag for tag in current if tag.lower() not in removed]
                if remaining:
                    entity["tags"] = remaining
                else:
                    del entity["tags"]
                _touch(entity, self._timestamp())

            self.persistence.save(graph)
            logger.info(f"Removed {len(removed)} tags from entity '{entity_name}'")
            return {"entityName": entity_name, "removedTags": removed}

    def set_importance(self, entity_name: str, importance: float) -> dict:
        validate_importance(importance)
        with self.lock:
            graph = self.persistence.load()
            entity = _require_entity(graph, entity_name)

            # Always a change, even when the value is the same
            entity["importance"] = importance
            _touch(entity, self._timestamp())

            self.persistence.save(graph)
            logger.info(f"Set importance of entity '{entity_name}' to {importance}")
            return {"entityName": entity_name, "importance": importance}

    # ========================================================================
    # Queries
    # ========================================================================

    def read_graph(self) -> Graph:
        with self.lock:
            return self.persistence.load()

    def search_nodes(self, query: str, tags: list[str] | None = None,
                     min_importance: float | None = None,
                     max_importance: float | None = None) -> Graph:
        return queries.search_nodes(self.read_graph(), query, tags, min_importance, max_importance)

    def open_nodes(self, names: list[str]) -> Graph:
        return queries.open_nodes(self.read_graph(), names)

    def search_by_date_range(self, start_date: str | None = None, end_date: str | None = None,
                             entity_type: str | None = None,
                             tags: list[str] | None = None) -> Graph:
        return queries.search_by_date_range(self.read_graph(), start_date, end_date, entity_type, tags)

    def get_graph_stats(self) -> dict:
        return queries.graph_stats(self.read_graph())

    def export_graph(self, format: str, filter: ExportFilter | None = None) -> str:
        """Serialize the whole graph, or the date/type/tag-filtered subset, as json, csv or graphml."""
        exporter = exporters.get_exporter(format)
        if filter is not None:
            graph = self.search_by_date_range(
                filter.get("startDate"),
                filter.get("endDate"),
                filter.get("entityType"),
                filter.get("tags"),
            )
        else:
            graph = self.read_graph()
        return exporter(graph)
