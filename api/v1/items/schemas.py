from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from api.v1.items.metadata import dump_metadata
from api.v1.items.models import CONTENT_TYPES
from api.v1.items.utils import normalize_tags


def _validate_content_type(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip().lower()
    if v not in CONTENT_TYPES:
        raise ValueError(
            f"Invalid content type: {v}. Must be one of {set(CONTENT_TYPES)}"
        )
    return v


class ItemCreate(BaseModel):
    """Schema for saving a new item."""

    content_type: str = Field(..., description="Content type (article, product, ...)")
    title: str | None = Field(default=None, description="Item title")
    description: str | None = Field(default=None, description="Short summary")
    content: str | None = Field(default=None, description="Free-text content")
    url: str | None = Field(default=None, description="Source URL")
    metadata: dict[str, Any] | None = Field(
        default=None, description="Type-dependent structured metadata"
    )
    tags: list[str] | None = Field(default=None, description="Tags for categorization")
    collection_id: UUID | None = Field(default=None, description="Collection reference")
    is_favorite: bool = Field(default=False, description="Favorite flag")

    @field_validator("content_type")
    @classmethod
    def validate_content_type(cls, v):
        return _validate_content_type(v)

    @field_validator("tags")
    @classmethod
    def normalize_tags_field(cls, v):
        return normalize_tags(v)

    @model_validator(mode="after")
    def validate_metadata_shape(self):
        self.metadata = dump_metadata(self.content_type, self.metadata)
        return self


class ItemUpdate(BaseModel):
    """Schema for updating an existing item."""

    title: str | None = Field(default=None, description="Updated title")
    description: str | None = Field(default=None, description="Updated description")
    content: str | None = Field(default=None, description="Updated content")
    metadata: dict[str, Any] | None = Field(default=None, description="Updated metadata")
    tags: list[str] | None = Field(default=None, description="Updated tags")
    collection_id: UUID | None = Field(default=None, description="Updated collection")
    is_favorite: bool | None = Field(default=None, description="Updated favorite flag")
    is_archived: bool | None = Field(default=None, description="Updated archived flag")

    @field_validator("tags")
    @classmethod
    def normalize_tags_field(cls, v):
        return normalize_tags(v) if v is not None else None

    def touches_text(self) -> bool:
        """Whether the update changes text the embedding is built from."""
        fields = self.model_fields_set
        return bool(fields & {"title", "description", "content", "tags"})


class ItemResponse(BaseModel):
    """Schema for item responses."""

    id: UUID
    user_id: UUID
    title: str | None
    description: str | None
    content: str | None
    content_type: str
    url: str | None
    source_domain: str | None
    metadata: dict[str, Any] = Field(validation_alias="meta")
    tags: list[str]
    collection_id: UUID | None
    is_favorite: bool
    is_archived: bool
    created_at: datetime
    updated_at: datetime
    accessed_at: datetime

    class Config:
        from_attributes = True
        populate_by_name = True


class ItemList(BaseModel):
    """Schema for item list responses."""

    items: list[ItemResponse]
    total: int
    offset: int
    limit: int
    has_more: bool


class ItemFilters(BaseModel):
    """Schema for item listing parameters."""

    content_type: str | None = Field(default=None, description="Filter by content type")
    tags: list[str] | None = Field(
        default=None, description="Filter by tags (ANY match)"
    )
    is_favorite: bool | None = Field(default=None, description="Filter by favorite flag")
    include_archived: bool = Field(default=False, description="Include archived items")
    limit: int = Field(
        default=50, ge=1, le=1000, description="Number of items to return"
    )
    offset: int = Field(default=0, ge=0, description="Number of items to skip")

    @field_validator("tags")
    @classmethod
    def normalize_tags_field(cls, v):
        return normalize_tags(v) if v else None

    @field_validator("content_type")
    @classmethod
    def validate_content_type(cls, v):
        return _validate_content_type(v)
