"""Export codecs: JSON, CSV and GraphML renderings of a graph."""

import json
from typing import Callable
from xml.sax.saxutils import escape

from .constants import LIST_SEPARATOR
from .exceptions import UnsupportedFormatError
from .types import Graph
from .utils import format_number

ENTITY_COLUMNS = ("name", "entityType", "observations", "createdAt", "lastModified", "tags", "importance")
RELATION_COLUMNS = ("from", "to", "relationType", "createdAt", "lastModified")

GRAPHML_HEADER = [
    '<?xml version="1.0" encoding="UTF-8"?>',
    '<graphml xmlns="http://graphml.graphdrawing.org/xmlns"',
    '         xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"',
    '         xsi:schemaLocation="http://graphml.graphdrawing.org/xmlns',
    '         http://graphml.graphdrawing.org/xmlns/1.0/graphml.xsd">',
    '  <!-- Node attributes -->',
    '  <key id="d0" for="node" attr.name="entityType" attr.type="string"/>',
    '  <key id="d1" for="node" attr.name="observations" attr.type="string"/>',
    '  <key id="d2" for="node" attr.name="createdAt" attr.type="string"/>',
    '  <key id="d3" for="node" attr.name="lastModified" attr.type="string"/>',
    '  <key id="d4" for="node" attr.name="tags" attr.type="string"/>',
    '  <key id="d5" for="node" attr.name="importance" attr.type="double"/>',
    '  <!-- Edge attributes -->',
    '  <key id="e0" for="edge" attr.name="relationType" attr.type="string"/>',
    '  <key id="e1" for="edge" attr.name="createdAt" attr.type="string"/>',
    '  <key id="e2" for="edge" attr.name="lastModified" attr.type="string"/>',
]

XML_QUOTES = {'"': "&quot;", "'": "&apos;"}


def export_json(graph: Graph) -> str:
    return json.dumps(
        {"entities": graph["entities"], "relations": graph["relations"]},
        indent=2,
        ensure_ascii=False,
    )


def escape_csv_field(value) -> str:
    """Quote a field only if it holds a comma, a double quote or a newline."""
    if value is None:
        return ""
    text = str(value)
    if "," in text or '"' in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def _csv_row(values) -> str:
    return ",".join(escape_csv_field(v) for v in values)


def export_csv(graph: Graph) -> str:
    lines = ["# ENTITIES", ",".join(ENTITY_COLUMNS)]
    for entity in graph["entities"]:
        importance = entity.get("importance")
        lines.append(_csv_row([
            entity["name"],
            entity["entityType"],
            LIST_SEPARATOR.join(entity["observations"]),
            entity.get("createdAt"),
            entity.get("lastModified"),
            LIST_SEPARATOR.join(entity.get("tags") or []),
            format_number(importance) if importance is not None else "",
        ]))

    lines.extend(["", "# RELATIONS", ",".join(RELATION_COLUMNS)])
    for relation in graph["relations"]:
        lines.append(_csv_row([relation.get(column) for column in RELATION_COLUMNS]))

    return "\n".join(lines)


def escape_xml(value) -> str:
    if value is None:
        return ""
    return escape(str(value), XML_QUOTES)


def _data(key: str, value) -> str:
    return f'<data key="{key}">{escape_xml(value)}</data>'


def export_graphml(graph: Graph) -> str:
    lines = list(GRAPHML_HEADER)
    lines.append('  <graph id="G" edgedefault="directed">')

    for entity in graph["entities"]:
        lines.append(f'    <node id="{escape_xml(entity["name"])}">')
        lines.append("      " + _data("d0", entity["entityType"]))
        lines.append("      " + _data("d1", LIST_SEPARATOR.join(entity["observations"])))
        if entity.get("createdAt"):
            lines.append("      " + _data("d2", entity["createdAt"]))
        if entity.get("lastModified"):
            lines.append("      " + _data("d3", entity["lastModified"]))
        if entity.get("tags"):
            lines.append("      " + _data("d4", LIST_SEPARATOR.join(entity["tags"])))
        if entity.get("importance") is not None:
            lines.append("      " + _data("d5", format_number(entity["importance"])))
        lines.append("    </node>")

    for edge_id, relation in enumerate(graph["relations"]):
        lines.append(
            f'    <edge id="e{edge_id}" source="{escape_xml(relation["from"])}" '
            f'target="{escape_xml(relation["to"])}">'
        )
        lines.append("      " + _data("e0", relation["relationType"]))
        if relation.get("createdAt"):
            lines.append("      " + _data("e1", relation["createdAt"]))
        if relation.get("lastModified"):
            lines.append("      " + _data("e2", relation["lastModified"]))
        lines.append("    </edge>")

    lines.append("  </graph>")
    lines.append("</graphml>")
    return "\n".join(lines)


EXPORTERS: dict[str, Callable[[Graph], str]] = {
    "json": export_json,
    "csv": export_csv,
    "graphml": export_graphml,
}


def get_exporter(format: str) -> Callable[[Graph], str]:
    """Look up an exporter by case-insensitive name. Raises UnsupportedFormatError."""
    exporter = EXPORTERS.get((format or "").lower())
    if exporter is None:
        raise UnsupportedFormatError(format)
    return exporter
