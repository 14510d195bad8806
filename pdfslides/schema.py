"""
SQLAlchemy database schema for posts and their meta data.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class PostRecord(Base):
    """A stored post: an attachment or a slide."""
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(primary_key=True)
    post_type: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    meta: Mapped[List["PostMetaRecord"]] = relationship(
        "PostMetaRecord", back_populates="post", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<PostRecord(id={self.id}, post_type={self.post_type})>"


class PostMetaRecord(Base):
    """One meta value of a post, stored as JSON text."""
    __tablename__ = "postmeta"
    __table_args__ = (UniqueConstraint("post_id", "meta_key"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id"), nullable=False, index=True)
    meta_key: Mapped[str] = mapped_column(String(255), nullable=False)
    meta_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    post: Mapped["PostRecord"] = relationship("PostRecord", back_populates="meta")

    def __repr__(self) -> str:
        return f"<PostMetaRecord(post_id={self.post_id}, meta_key={self.meta_key})>"
