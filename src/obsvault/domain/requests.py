"""Request models for create, search, and list operations.

Only structural checks live here (types, the ``type`` tag, ``title``
presence). Business rules run on the constructed item so that every
violation is reported together.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from obsvault.domain.errors import FieldError, ItemValidationError
from obsvault.domain.items import field_errors_from_pydantic
from obsvault.domain.types import ItemType

_REQUEST_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)


class CreateTaskRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    type: Literal["Task"] = "Task"
    title: str
    status: str | None = None
    due_date: str | None = None
    parent_projects: list[str] = Field(default_factory=list)
    area: str | None = None
    priority: str | None = None
    tags: list[str] = Field(default_factory=list)
    content: str = ""


class CreateEpicRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    type: Literal["Epic"] = "Epic"
    title: str
    status: str | None = None
    due_date: str | None = None
    area: str = ""
    image: str | None = None
    tags: list[str] = Field(default_factory=list)
    content: str = ""


class CreateAreaRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    type: Literal["Area"] = "Area"
    title: str
    status: str | None = None
    maintenance: str | None = None
    pinned: bool = False
    purpose: str = ""
    tags: list[str] = Field(default_factory=list)
    content: str = ""


class CreateResourceRequest(BaseModel):
    model_config = _REQUEST_CONFIG

    type: Literal["Resource"] = "Resource"
    title: str
    status: str | None = None
    pinned: bool = False
    areas: list[str] = Field(default_factory=list)
    purpose: str = ""
    content_overview: str = ""
    key_topics: list[str] = Field(default_factory=list)
    usage_notes: str = ""
    maintenance: str = ""
    tags: list[str] = Field(default_factory=list)
    content: str = ""


CreateItemRequest = Annotated[
    CreateTaskRequest | CreateEpicRequest | CreateAreaRequest | CreateResourceRequest,
    Field(discriminator="type"),
]

CREATE_REQUEST_ADAPTER: TypeAdapter[
    CreateTaskRequest | CreateEpicRequest | CreateAreaRequest | CreateResourceRequest
] = TypeAdapter(CreateItemRequest)


def parse_create_request(
    data: dict[str, Any] | BaseModel,
) -> CreateTaskRequest | CreateEpicRequest | CreateAreaRequest | CreateResourceRequest:
    """Validate a raw create payload into its typed request.

    Raises:
        ItemValidationError: With one entry per structural problem.
    """
    if isinstance(data, (CreateTaskRequest, CreateEpicRequest, CreateAreaRequest, CreateResourceRequest)):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True)
    if data.get("type") not in {str(t) for t in ItemType}:
        raise ItemValidationError(
            [FieldError("type", f"Type must be one of: {', '.join(str(t) for t in ItemType)}")]
        )
    try:
        return CREATE_REQUEST_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise ItemValidationError(_strip_tag(field_errors_from_pydantic(exc))) from exc


def _strip_tag(errors: list[FieldError]) -> list[FieldError]:
    """Drop the union tag prefix pydantic puts on discriminated locations."""
    tags = {str(t) for t in ItemType}
    cleaned: list[FieldError] = []
    for err in errors:
        head, _sep, rest = err.field.partition(".")
        cleaned.append(FieldError(rest, err.message) if head in tags and rest else err)
    return cleaned


class SearchRequest(BaseModel):
    """Fuzzy search query plus post-filters. An empty query matches all."""

    model_config = _REQUEST_CONFIG

    query: str = ""
    type: ItemType | None = None
    limit: int | None = Field(default=None, ge=1)
    area: str | None = None
    status: str | None = None
    tags: list[str] | None = None


SortField = Literal["title", "status", "dueDate", "createdAt", "updatedAt"]


class ListItemsRequest(BaseModel):
    """Filters, sort, and offset/limit pagination over a fresh scan."""

    model_config = _REQUEST_CONFIG

    type: ItemType | None = None
    area: str | None = None
    status: str | None = None
    tags: list[str] | None = None
    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)
    sort_by: SortField = "title"
    sort_order: Literal["asc", "desc"] = "asc"
