"""
Database models for embeddings.

One row per (item, model) pair so vectors from different models coexist and
every similarity query pins the model it compares against.
"""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from pgvector.sqlalchemy import Vector
from sqlalchemy import ForeignKey, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from api.infra.database import Base


class ItemEmbedding(Base):
    """
    Item embeddings table for vector similarity search.

    The vector column carries no fixed dimension: dimensionality is a
    property of ``model_version`` (384, 768, 1536, 3072 have all been used).
    """

    __tablename__ = "item_embeddings"

    id: Mapped[UUID] = mapped_column(PG_UUID, primary_key=True, default=uuid4)
    item_id: Mapped[UUID] = mapped_column(
        PG_UUID, ForeignKey("items.id", ondelete="CASCADE"), nullable=False
    )

    embedding: Mapped[list[float]] = mapped_column(Vector(), nullable=False)
    model_version: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    # Extensible metadata (renamed to avoid SQLAlchemy conflict)
    meta: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSONB,
        default=dict,
        server_default="{}",
    )

    item: Mapped["Item"] = relationship("Item", back_populates="embeddings")  # noqa: F821

    __table_args__ = (
        UniqueConstraint("item_id", "model_version", name="item_embeddings_item_model_key"),
    )

    def __repr__(self) -> str:
        return f"<ItemEmbedding(item_id={self.item_id}, model={self.model_version})>"
