"""
Typed item metadata.

The metadata column is JSON whose shape depends on the item's content type.
Each shape is a pydantic model tagged by ``kind``; ``metadata_for`` picks the
variant for a content type and validates the raw dict against it.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class _MetadataBase(BaseModel):
    # Analyzer output often carries fields we do not model; keep them
    model_config = ConfigDict(extra="allow")


class ProductMetadata(_MetadataBase):
    kind: Literal["product"] = "product"
    price: float | None = None
    currency: str | None = None
    brand: str | None = None
    category: str | None = None
    specs: list[str] = Field(default_factory=list)

    @field_validator("price", mode="before")
    @classmethod
    def parse_price(cls, v):
        if isinstance(v, str):
            cleaned = v.replace("$", "").replace(",", "").strip()
            return float(cleaned) if cleaned else None
        return v


class ArticleMetadata(_MetadataBase):
    kind: Literal["article"] = "article"
    author: str | None = None
    publish_date: str | None = None
    site_name: str | None = None
    main_points: list[str] = Field(default_factory=list)


class VideoMetadata(_MetadataBase):
    kind: Literal["video"] = "video"
    channel: str | None = None
    duration_seconds: int | None = None
    category: str | None = None


class DetectedObject(BaseModel):
    name: str
    colors: list[str] = Field(default_factory=list)
    description: str | None = None


class ImageMetadata(_MetadataBase):
    kind: Literal["image"] = "image"
    dominant_colors: list[str] = Field(default_factory=list)
    objects: list[DetectedObject] = Field(default_factory=list)
    extracted_text: str | None = None
    author: str | None = None


class GenericMetadata(_MetadataBase):
    kind: Literal["generic"] = "generic"


ItemMetadata = Annotated[
    ProductMetadata | ArticleMetadata | VideoMetadata | ImageMetadata | GenericMetadata,
    Field(discriminator="kind"),
]

_metadata_adapter: TypeAdapter[Any] = TypeAdapter(ItemMetadata)

METADATA_KIND_BY_CONTENT_TYPE = {
    "product": "product",
    "article": "article",
    "bookmark": "article",
    "document": "article",
    "video": "video",
    "image": "image",
    "screenshot": "image",
}


def metadata_kind(content_type: str) -> str:
    return METADATA_KIND_BY_CONTENT_TYPE.get(content_type, "generic")


def metadata_for(content_type: str, raw: dict[str, Any] | None) -> ItemMetadata:
    """Validate raw metadata against the variant for ``content_type``."""
    data = dict(raw or {})
    data["kind"] = metadata_kind(content_type)
    return _metadata_adapter.validate_python(data)


def dump_metadata(content_type: str, raw: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize metadata into the JSON stored on the item."""
    return metadata_for(content_type, raw).model_dump(mode="json", exclude_none=True)
