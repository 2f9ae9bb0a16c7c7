from sqlalchemy import (
    Boolean,
    Column,
    String,
    DateTime,
    Numeric,
    ForeignKey,
    Text,
    Index,
)
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.core.validation import AMOUNT_PRECISION, AMOUNT_SCALE, new_identifier, utcnow

TRANSACTION_STATUSES = ("active", "undone")


class Transaction(Base):
    """Income or expense entry owned by a single user."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
        Index("ix_transactions_user_status", "user_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=new_identifier)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    type = Column(String, nullable=False)  # income, expense
    # Snapshot of the category name at write time; not kept in sync on rename.
    category = Column(String, nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=True)
    amount = Column(Numeric(AMOUNT_PRECISION, AMOUNT_SCALE, asdecimal=True), nullable=False)
    date = Column(DateTime, nullable=False, default=utcnow)
    is_custom_date = Column(Boolean, nullable=False, default=False)
    status = Column(String, nullable=False, default="active")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="transactions")
    category_rel = relationship("Category", back_populates="transactions")
