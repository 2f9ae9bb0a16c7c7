from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.core.validation import new_identifier, utcnow

CATEGORY_TYPES = ("income", "expense")


class Category(Base):
    """Transaction category, owned by one user or global when user_id is NULL."""

    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("user_id", "type", "name", name="uq_categories_user_type_name"),
        Index("ix_categories_user_type_active", "user_id", "type", "is_active"),
        # NULL user_id never collides in the constraint above.
        Index(
            "uq_categories_global_type_name",
            "type",
            "name",
            unique=True,
            sqlite_where=text("user_id IS NULL"),
            postgresql_where=text("user_id IS NULL"),
        ),
    )

    id = Column(String(36), primary_key=True, default=new_identifier)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)  # income or expense
    is_default = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="categories")
    transactions = relationship("Transaction", back_populates="category_rel")

    @property
    def is_global(self) -> bool:
        return self.user_id is None
