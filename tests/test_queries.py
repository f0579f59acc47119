"""Tests for read-only graph projections."""

import pytest

from memory_graph import queries
from memory_graph.exceptions import ValidationError


def _entity(name, entity_type="project", observations=(), created="2024-01-01T00:00:00.000Z",
            modified=None, **extra):
    data = {
        "name": name,
        "entityType": entity_type,
        "observations": list(observations),
        "createdAt": created,
        "lastModified": modified or created,
    }
    data.update(extra)
    return data


def _relation(source, target, relation_type="knows", created="2024-01-01T00:00:00.000Z", modified=None):
    return {
        "from": source, "to": target, "relationType": relation_type,
        "createdAt": created, "lastModified": modified or created,
    }


@pytest.fixture
def graph():
    return {
        "entities": [
            _entity("Project Apollo", tags=["work"], importance=8),
            _entity("Side proj", tags=["work", "fun"]),
            _entity("Garden", "hobby", ["water the PROJECTed beds"], tags=["home"], importance=3),
            _entity("Alice", "person", ["met at conference"]),
        ],
        "relations": [
            _relation("Project Apollo", "Side proj"),
            _relation("Alice", "Project Apollo"),
            _relation("Garden", "Project Apollo", "inspires"),
        ],
    }


def _names(result):
    return [e["name"] for e in result["entities"]]


class TestSearchNodes:
    def test_matches_name_type_and_observations_case_insensitively(self, graph):
        result = queries.search_nodes(graph, "PROJ")
        assert _names(result) == ["Project Apollo", "Side proj", "Garden"]

    def test_relations_restricted_to_matched_entities(self, graph):
        result = queries.search_nodes(graph, "proj")
        assert [(r["from"], r["to"]) for r in result["relations"]] == [
            ("Project Apollo", "Side proj"),
            ("Garden", "Project Apollo"),
        ]

    def test_tag_filter_requires_overlap(self, graph):
        assert _names(queries.search_nodes(graph, "proj", tags=["FUN"])) == ["Side proj"]
        assert _names(queries.search_nodes(graph, "", tags=["nothing"])) == []

    def test_untagged_entity_never_matches_tag_filter(self, graph):
        assert "Alice" not in _names(queries.search_nodes(graph, "", tags=["work"]))

    def test_empty_tag_filter_is_no_filter(self, graph):
        assert len(queries.search_nodes(graph, "", tags=[])["entities"]) == 4

    def test_min_importance_excludes_entities_without_importance(self, graph):
        result = queries.search_nodes(graph, "proj", tags=["work"], min_importance=5)
        assert _names(result) == ["Project Apollo"]

    def test_importance_range(self, graph):
        assert _names(queries.search_nodes(graph, "", min_importance=3, max_importance=3)) == ["Garden"]
        assert _names(queries.search_nodes(graph, "", max_importance=5)) == ["Garden"]


class TestOpenNodes:
    def test_returns_requested_in_store_order(self, graph):
        result = queries.open_nodes(graph, ["Alice", "Project Apollo", "ghost"])
        assert _names(result) == ["Project Apollo", "Alice"]
        assert [(r["from"], r["to"]) for r in result["relations"]] == [("Alice", "Project Apollo")]

    def test_no_match_is_empty(self, graph):
        assert queries.open_nodes(graph, ["ghost"]) == {"entities": [], "relations": []}


class TestSearchByDateRange:
    @pytest.fixture
    def dated(self):
        return {
            "entities": [
                _entity("old", "note", created="2023-01-01T00:00:00.000Z"),
                _entity("touched", "note", created="2023-01-01T00:00:00.000Z",
                        modified="2024-03-01T00:00:00.000Z", tags=["work"]),
                _entity("new", "task", created="2024-06-01T00:00:00.000Z"),
            ],
            "relations": [
                _relation("touched", "new", created="2024-06-02T00:00:00.000Z"),
                _relation("touched", "new", "blocks", created="2022-01-01T00:00:00.000Z"),
                _relation("old", "new"),
            ],
        }

    def test_uses_last_modified(self, dated):
        result = queries.search_by_date_range(dated, start_date="2024-01-01T00:00:00Z")
        assert _names(result) == ["touched", "new"]

    def test_bounds_are_inclusive(self, dated):
        result = queries.search_by_date_range(
            dated, start_date="2024-03-01T00:00:00.000Z", end_date="2024-03-01T00:00:00.000Z"
        )
        assert _names(result) == ["touched"]

    def test_date_only_bounds(self, dated):
        assert _names(queries.search_by_date_range(dated, end_date="2023-12-31")) == ["old"]

    def test_relations_need_both_endpoints_and_own_date_in_range(self, dated):
        result = queries.search_by_date_range(dated, start_date="2024-01-01")
        assert [r["relationType"] for r in result["relations"]] == ["knows"]

    def test_entity_type_and_tags(self, dated):
        assert _names(queries.search_by_date_range(dated, entity_type="task")) == ["new"]
        assert _names(queries.search_by_date_range(dated, entity_type="note", tags=["WORK"])) == ["touched"]

    def test_no_bounds_returns_everything(self, dated):
        result = queries.search_by_date_range(dated)
        assert len(result["entities"]) == 3
        assert len(result["relations"]) == 3

    def test_invalid_bound_rejected(self, dated):
        with pytest.raises(ValidationError):
            queries.search_by_date_range(dated, start_date="last tuesday")


class TestGraphStats:
    def test_empty_graph_omits_optional_fields(self):
        stats = queries.graph_stats({"entities": [], "relations": []})
        assert stats == {
            "totalEntities": 0,
            "totalRelations": 0,
            "entityTypesCounts": {},
            "relationTypesCounts": {},
        }

    def test_counts_and_extremes(self, graph):
        graph["entities"][1]["createdAt"] = "2023-05-01T00:00:00.000Z"
        graph["entities"][3]["createdAt"] = "2024-02-01T12:30:00+02:00"
        stats = queries.graph_stats(graph)

        assert stats["totalEntities"] == 4
        assert stats["totalRelations"] == 3
        assert stats["entityTypesCounts"] == {"project": 2, "hobby": 1, "person": 1}
        assert stats["relationTypesCounts"] == {"knows": 2, "inspires": 1}
        assert stats["oldestEntity"] == {"name": "Side proj", "date": "2023-05-01T00:00:00.000Z"}
        assert stats["newestEntity"] == {"name": "Alice", "date": "2024-02-01T12:30:00+02:00"}
        assert stats["entityDateRange"] == {
            "earliest": "2023-05-01T00:00:00.000Z",
            "latest": "2024-02-01T10:30:00.000Z",
        }

    def test_ties_keep_first_encountered(self, graph):
        stats = queries.graph_stats(graph)
        assert stats["oldestRelation"]["from"] == "Project Apollo"
        assert stats["newestRelation"]["from"] == "Project Apollo"
        assert stats["oldestRelation"]["relationType"] == "knows"
        assert stats["relationDateRange"] == {
            "earliest": "2024-01-01T00:00:00.000Z",
            "latest": "2024-01-01T00:00:00.000Z",
        }
