from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, TIMESTAMP, UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from api.infra.database import Base

CONTENT_TYPES = (
    "article",
    "product",
    "image",
    "video",
    "note",
    "bookmark",
    "todo-list",
    "receipt",
    "screenshot",
    "document",
)


class TimestampMixin:
    """Mixin for timestamp fields."""

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


class User(Base, TimestampMixin):
    """Owner of saved items."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(PG_UUID, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(Text)

    # Relationships
    items: Mapped[list["Item"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )
    collections: Mapped[list["Collection"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan", passive_deletes=True
    )


class Collection(Base, TimestampMixin):
    """Named grouping of a user's items."""

    __tablename__ = "collections"

    id: Mapped[UUID] = mapped_column(PG_UUID, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    user_id: Mapped[UUID] = mapped_column(
        PG_UUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    owner: Mapped["User"] = relationship(back_populates="collections")
    items: Mapped[list["Item"]] = relationship(back_populates="collection")


class Item(Base, TimestampMixin):
    """A saved piece of content: article, product, image, note, ..."""

    __tablename__ = "items"

    id: Mapped[UUID] = mapped_column(PG_UUID, primary_key=True, default=uuid4)
    title: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    content: Mapped[str | None] = mapped_column(Text)
    content_type: Mapped[str] = mapped_column(String(50), nullable=False)
    url: Mapped[str | None] = mapped_column(Text)
    source_domain: Mapped[str | None] = mapped_column(String(255))
    # Shape depends on content_type, see api.v1.items.metadata
    meta: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSONB, default=dict, server_default="{}"
    )
    tags: Mapped[list[str]] = mapped_column(ARRAY(Text), default=list, server_default="{}")
    is_favorite: Mapped[bool] = mapped_column(default=False, server_default="false")
    is_archived: Mapped[bool] = mapped_column(default=False, server_default="false")
    accessed_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    # Foreign keys
    user_id: Mapped[UUID] = mapped_column(
        PG_UUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    collection_id: Mapped[UUID | None] = mapped_column(
        PG_UUID, ForeignKey("collections.id", ondelete="SET NULL")
    )

    # Relationships
    owner: Mapped["User"] = relationship(back_populates="items")
    collection: Mapped["Collection | None"] = relationship(back_populates="items")
    embeddings: Mapped[list["ItemEmbedding"]] = relationship(
        back_populates="item", cascade="all, delete-orphan", passive_deletes=True
    )

    # Constraints
    __table_args__ = (
        CheckConstraint(
            "content_type IN ({})".format(", ".join(f"'{t}'" for t in CONTENT_TYPES)),
            name="items_content_type_check",
        ),
        Index("items_tags_gin", "tags", postgresql_using="gin"),
        Index("items_user_type_idx", "user_id", "content_type"),
        Index("items_user_created_idx", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, type={self.content_type}, title={self.title!r})>"


# Registers ItemEmbedding with the mapper so the relationship above resolves
from api.v1.search.models import ItemEmbedding  # noqa: E402, F401
