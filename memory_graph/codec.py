"""Line codec for the JSONL backing store.

Each non-empty line of the store is one JSON object tagged with a ``type`` of
``"entity"`` or ``"relation"``. Records written before timestamps existed are
completed on decode; the filled values only reach disk on the next rewrite.
"""

import json
import logging

from .constants import ENTITY_RECORD, RELATION_RECORD
from .types import Entity, Relation

logger = logging.getLogger(__name__)

ENTITY_FIELDS = ("name", "entityType", "observations", "createdAt", "lastModified")
OPTIONAL_ENTITY_FIELDS = ("tags", "importance")
RELATION_FIELDS = ("from", "to", "relationType", "createdAt", "lastModified")


def _dumps(data: dict) -> str:
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def _fill_timestamps(record: dict, now: str):
    if not record.get("createdAt"):
        record["createdAt"] = now
    if not record.get("lastModified"):
        record["lastModified"] = record["createdAt"]


def decode_entity(item: dict, now: str) -> Entity:
    entity = {
        "name": item["name"],
        "entityType": item.get("entityType", ""),
        "observations": list(item.get("observations") or []),
        "createdAt": item.get("createdAt"),
        "lastModified": item.get("lastModified"),
    }
    _fill_timestamps(entity, now)
    for key in OPTIONAL_ENTITY_FIELDS:
        value = item.get(key)
        # An empty tag list is the same as no tags
        if value is None or value == []:
            continue
        entity[key] = value
    return entity


def decode_relation(item: dict, now: str) -> Relation:
    relation = {
        "from": item["from"],
        "to": item["to"],
        "relationType": item["relationType"],
        "createdAt": item.get("createdAt"),
        "lastModified": item.get("lastModified"),
    }
    _fill_timestamps(relation, now)
    return relation


def decode_record(line: str, now: str) -> tuple[str, dict] | None:
    """
    Decode one store line.
    Returns (record_type, record), or None for an unrecognized record type.
    Raises ValueError if the line is not a JSON object or lacks required fields.
    """
    item = json.loads(line)
    if not isinstance(item, dict):
        raise ValueError("record is not a JSON object")

    record_type = item.get("type")
    try:
        if record_type == ENTITY_RECORD:
            return ENTITY_RECORD, decode_entity(item, now)
        if record_type == RELATION_RECORD:
            return RELATION_RECORD, decode_relation(item, now)
    except KeyError as e:
        raise ValueError(f"{record_type} record missing field {e}") from e

    logger.debug(f"Ignoring record with unknown type {record_type!r}")
    return None


def encode_entity(entity: Entity) -> str:
    data = {"type": ENTITY_RECORD}
    for key in ENTITY_FIELDS:
        data[key] = entity.get(key)
    # Optional fields only when present, so older records round-trip unchanged
    for key in OPTIONAL_ENTITY_FIELDS:
        if entity.get(key) is not None:
            data[key] = entity[key]
    return _dumps(data)


def encode_relation(relation: Relation) -> str:
    data = {"type": RELATION_RECORD}
    for key in RELATION_FIELDS:
        data[key] = relation.get(key)
    return _dumps(data)
