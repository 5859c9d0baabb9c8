"""
Post model for blog articles.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    slug = Column(String(120), unique=True, nullable=False, index=True)  # room for -N suffixes
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=True)
    status = Column(String(20), default="published", nullable=False, index=True)  # draft, published, archived
    cover_image_url = Column(String(500), nullable=True)
    view_count = Column(Integer, default=0, nullable=False)
    author_id = Column(String(255), nullable=False, index=True)  # subject claim of the identity token
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("idx_posts_status_created", "status", "created_at"),
    )

    # Relationships
    category = relationship("Category", back_populates="posts")
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    likes = relationship("Like", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
