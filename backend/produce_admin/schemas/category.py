"""Category schemas.

``CategoryRecord`` mirrors one category as the marketplace backend returns it
(``_id``, camelCase keys, ``parentCategory`` populated as a sub-document or an
id). Descriptive and SEO fields are not modelled: they ride along as extras and
are returned to the shell untouched.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CategoryId = int | str


def _unwrap_ref(value: Any) -> Any:
    """Accept either a raw id or a populated ``{"_id": ...}`` reference."""
    if isinstance(value, dict):
        return value.get("_id", value.get("id"))
    return value


class CategoryRecord(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="allow",
    )

    id: CategoryId = Field(validation_alias=AliasChoices("_id", "id"))
    name: str
    parent_id: CategoryId | None = Field(
        default=None,
        validation_alias=AliasChoices("parentCategory", "parentId", "parent_id"),
        serialization_alias="parentId",
    )
    level: int = Field(default=0, ge=0)
    sort_order: int = Field(default=0, ge=0)
    is_active: bool = True
    is_available: bool = True
    total_products: int = 0
    description: str | None = None

    @field_validator("parent_id", mode="before")
    @classmethod
    def _parent_ref(cls, value: Any) -> Any:
        value = _unwrap_ref(value)
        # Empty strings come back from some list endpoints for root categories
        return value if value not in ("", None) else None

    @field_validator("sort_order", "level", "total_products", mode="before")
    @classmethod
    def _missing_as_zero(cls, value: Any) -> Any:
        return 0 if value is None else value


class CategoryFilters(BaseModel):
    """Query filters for the admin category list endpoint."""

    search: str | None = None
    is_active: bool | None = None
    is_available: bool | None = None
    admin_status: str | None = None
    level: int | None = None
    parent_category: CategoryId | None = None
    has_children: bool | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1)
    sort_by: str = "sortOrder"
    sort_order: str = "asc"

    def to_params(self) -> dict[str, Any]:
        params = {}
        for key, value in self.model_dump(exclude_none=True).items():
            if value == "":
                continue
            if isinstance(value, bool):
                value = "true" if value else "false"
            params[to_camel(key)] = value
        return params


class CategoryPage(BaseModel):
    data: list[CategoryRecord] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    pages: int = 1
    stats: dict[str, Any] | None = None


# ── API payloads ──────────────────────────────────


class DragRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    source_id: CategoryId
    target_id: CategoryId


class MutationResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    kind: str
    category_id: CategoryId
    new_sort_order: int
    new_parent_id: CategoryId | None = None


class DragResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    applied: bool
    mutation: MutationResponse | None = None


class TreeNodeResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: dict[str, Any]
    depth: int
    expanded: bool = False
    in_flight: bool = False
    children: list["TreeNodeResponse"] = Field(default_factory=list)


class FlatCategoryResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: dict[str, Any]
    depth: int
    has_children: bool
    expanded: bool = False
    in_flight: bool = False


class TreeViewResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    view_id: str
    mode: str
    search: str | None = None
    expanded: list[CategoryId] = Field(default_factory=list)
    tree: list[TreeNodeResponse] | None = None
    rows: list[FlatCategoryResponse] | None = None


class CategoryWrite(BaseModel):
    """Create/update payload forwarded from the category edit form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str | None = Field(default=None, min_length=2, max_length=50)
    description: str | None = None
    parent_category: CategoryId | None = None
    is_active: bool | None = None
    sort_order: int | None = Field(default=None, ge=0)
    meta_title: str | None = None
    meta_description: str | None = None
    meta_keywords: list[str] | None = None


class AvailabilityUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    is_available: bool
    flag_reason: str | None = None


class SafeDelete(BaseModel):
    reason: str | None = None
