"""Request models for tool arguments.

Arguments arrive as untyped JSON; these models validate them before any store
call. Field names are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat
from pydantic.alias_generators import to_camel

from .constants import EXPORT_FORMATS


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def to_store(self) -> dict:
        """Wire-shaped dict without unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class EntityInput(RequestModel):
    """Entity to create."""
    name: str = Field(..., description="The name of the entity")
    entity_type: str = Field(..., description="The type of the entity")
    observations: list[str] = Field(
        ..., description="An array of observation contents associated with the entity"
    )
    tags: list[str] | None = Field(None, description="Optional tags (stored lowercase)")
    importance: int | FiniteFloat | None = Field(None, description="Optional importance level (0-10)")


class RelationInput(RequestModel):
    """Relation identified by its (from, to, relationType) triple."""
    from_: str = Field(..., alias="from", description="The name of the entity where the relation starts")
    to: str = Field(..., description="The name of the entity where the relation ends")
    relation_type: str = Field(..., description="The type of the relation")


class ObservationAdditionInput(RequestModel):
    entity_name: str = Field(..., description="The name of the entity to add the observations to")
    contents: list[str] = Field(..., description="An array of observation contents to add")


class ObservationDeletionInput(RequestModel):
    entity_name: str = Field(..., description="The name of the entity containing the observations")
    observations: list[str] = Field(..., description="An array of observations to delete")


class EmptyRequest(RequestModel):
    pass


class CreateEntitiesRequest(RequestModel):
    entities: list[EntityInput]


class CreateRelationsRequest(RequestModel):
    relations: list[RelationInput]


class AddObservationsRequest(RequestModel):
    observations: list[ObservationAdditionInput]


class DeleteEntitiesRequest(RequestModel):
    entity_names: list[str] = Field(..., description="An array of entity names to delete")


class DeleteObservationsRequest(RequestModel):
    deletions: list[ObservationDeletionInput]


class DeleteRelationsRequest(RequestModel):
    relations: list[RelationInput] = Field(..., description="An array of relations to delete")


class SearchNodesRequest(RequestModel):
    query: str = Field(
        ..., description="The search query to match against entity names, types, and observation content"
    )
    tags: list[str] | None = Field(None, description="Optional array of tags to filter by (case-insensitive)")
    min_importance: FiniteFloat | None = Field(None, description="Optional minimum importance level (0-10)")
    max_importance: FiniteFloat | None = Field(None, description="Optional maximum importance level (0-10)")


class OpenNodesRequest(RequestModel):
    names: list[str] = Field(..., description="An array of entity names to retrieve")


class DateRangeRequest(RequestModel):
    start_date: str | None = Field(None, description="ISO 8601 start date; no lower bound if omitted")
    end_date: str | None = Field(None, description="ISO 8601 end date; no upper bound if omitted")
    entity_type: str | None = Field(None, description="Filter by specific entity type")
    tags: list[str] | None = Field(None, description="Filter by tags (case-insensitive)")


class TagsRequest(RequestModel):
    entity_name: str = Field(..., description="The name of the entity")
    tags: list[str] = Field(..., description="An array of tags")


class SetImportanceRequest(RequestModel):
    entity_name: str = Field(..., description="The name of the entity to set importance for")
    importance: int | FiniteFloat = Field(
        ..., description="The importance level (0-10, where 0 is least important and 10 is most important)"
    )


class ExportGraphRequest(RequestModel):
    format: str = Field(..., description=f"Export format, one of: {', '.join(EXPORT_FORMATS)}")
    filter: DateRangeRequest | None = Field(None, description="Optional filter to export a subset of the graph")
