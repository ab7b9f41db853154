"""
Search filters and their translation into SQL conditions.

Every filter is optional; the conditions produced are ANDed together and
always scoped to one owner.
"""

from calendar import monthrange
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import Numeric, Text, and_, case, cast, column, func, or_, select
from sqlalchemy.dialects.postgresql import JSONB

from api.v1.items.models import CONTENT_TYPES, Item
from api.v1.items.utils import normalize_tags


class PriceRange(BaseModel):
    min: float | None = None
    max: float | None = None


class DateRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_: datetime | None = Field(default=None, alias="from")
    to: datetime | None = None
    period: str | None = Field(
        default=None, description="today, yesterday, last/past week|month|year"
    )


class SearchFilters(BaseModel):
    """Filters accepted by the similarity index (camelCase aliases accepted)."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    content_type: str | None = None
    tags: list[str] | None = None
    is_favorite: bool | None = None
    price: PriceRange | None = None
    date_range: DateRange | None = None
    colors: list[str] | None = None
    author: str | None = None
    keywords: list[str] | None = None
    collection_id: UUID | None = None
    include_archived: bool = False

    @field_validator("content_type")
    @classmethod
    def validate_content_type(cls, v):
        if v is None:
            return v
        v = v.strip().lower()
        if v not in CONTENT_TYPES:
            raise ValueError(f"Invalid content type: {v}")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags_field(cls, v):
        return normalize_tags(v) if v else None

    @field_validator("colors", "keywords")
    @classmethod
    def drop_blank_terms(cls, v):
        if not v:
            return None
        cleaned = [term.strip().lower() for term in v if term and term.strip()]
        return cleaned or None

    def merged_with(self, overrides: "SearchFilters | None") -> "SearchFilters":
        """Return a copy where every field explicitly set on ``overrides`` wins."""
        if overrides is None:
            return self.model_copy()
        updates = {
            name: getattr(overrides, name) for name in overrides.model_fields_set
        }
        return self.model_copy(update=updates)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True, exclude_defaults=True)


def resolve_period(period: str, now: datetime | None = None) -> datetime | None:
    """Resolve a relative period to an absolute lower bound on created_at."""
    now = now or datetime.now(UTC)
    lowered = period.lower()

    if "today" in lowered:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if "yesterday" in lowered:
        start = now - timedelta(days=1)
        return start.replace(hour=0, minute=0, second=0, microsecond=0)
    if "last week" in lowered or "past week" in lowered:
        return now - timedelta(days=7)
    if "last month" in lowered or "past month" in lowered:
        year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
        day = min(now.day, monthrange(year, month)[1])
        return now.replace(year=year, month=month, day=day)
    if "last year" in lowered or "past year" in lowered:
        year = now.year - 1
        day = min(now.day, monthrange(year, now.month)[1])
        return now.replace(year=year, day=day)

    return None


def _contains(term: str) -> str:
    """ILIKE pattern matching ``term`` anywhere, with wildcards escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _object_colors_match(pattern: str):
    objects = (
        func.jsonb_array_elements(Item.meta["objects"])
        .table_valued(column("value", JSONB))
        .alias("obj")
    )
    return (
        select(1)
        .select_from(objects)
        .where(objects.c.value["colors"].astext.ilike(pattern, escape="\\"))
        .exists()
    )


def build_filter_conditions(
    owner_id: UUID, filters: SearchFilters | None, now: datetime | None = None
) -> list[Any]:
    """Translate filters into SQLAlchemy conditions over ``Item``."""
    filters = filters or SearchFilters()
    conditions: list[Any] = [Item.user_id == owner_id]

    if not filters.include_archived:
        conditions.append(Item.is_archived.is_(False))

    if filters.content_type:
        conditions.append(Item.content_type == filters.content_type)

    if filters.tags:
        conditions.append(Item.tags.overlap(filters.tags))

    if filters.is_favorite is not None:
        conditions.append(Item.is_favorite.is_(filters.is_favorite))

    if filters.collection_id:
        conditions.append(Item.collection_id == filters.collection_id)

    if filters.price:
        # free-form metadata may hold a non-numeric price; only JSON numbers compare
        price = case(
            (
                func.jsonb_typeof(Item.meta["price"]) == "number",
                Item.meta["price"].astext.cast(Numeric),
            ),
            else_=None,
        )
        if filters.price.min is not None:
            conditions.append(price >= filters.price.min)
        if filters.price.max is not None:
            conditions.append(price <= filters.price.max)

    if filters.date_range:
        if filters.date_range.from_:
            conditions.append(Item.created_at >= filters.date_range.from_)
        if filters.date_range.to:
            conditions.append(Item.created_at <= filters.date_range.to)
        if filters.date_range.period:
            lower_bound = resolve_period(filters.date_range.period, now)
            if lower_bound:
                conditions.append(Item.created_at >= lower_bound)

    if filters.author:
        pattern = _contains(filters.author)
        conditions.append(
            or_(
                Item.meta["author"].astext.ilike(pattern, escape="\\"),
                Item.content.ilike(pattern, escape="\\"),
                Item.description.ilike(pattern, escape="\\"),
            )
        )

    if filters.keywords:
        # Each keyword must match somewhere; fields are alternatives per keyword
        keyword_conditions = []
        for keyword in filters.keywords:
            pattern = _contains(keyword)
            keyword_conditions.append(
                or_(
                    Item.title.ilike(pattern, escape="\\"),
                    Item.description.ilike(pattern, escape="\\"),
                    Item.content.ilike(pattern, escape="\\"),
                    func.array_to_string(Item.tags, " ").ilike(pattern, escape="\\"),
                )
            )
        conditions.append(and_(*keyword_conditions))

    if filters.colors:
        color_conditions = []
        for color in filters.colors:
            pattern = _contains(color)
            color_conditions.append(
                or_(
                    cast(Item.meta, Text).ilike(pattern, escape="\\"),
                    Item.description.ilike(pattern, escape="\\"),
                    _object_colors_match(pattern),
                )
            )
        conditions.append(or_(*color_conditions))

    return conditions
