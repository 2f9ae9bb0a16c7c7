from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.core.config import settings
from app.core.database import Base
from app.core.validation import new_identifier, utcnow


def _default_income_categories() -> list[str]:
    return [settings.DEFAULT_INCOME_CATEGORY]


def _default_expense_categories() -> list[str]:
    return [settings.DEFAULT_EXPENSE_CATEGORY]


class User(Base):
    """Registered user and the per-user category configuration."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_identifier)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=True)
    fname = Column(String, nullable=False)
    lname = Column(String, nullable=False)
    timezone = Column(String, nullable=True)
    currency = Column(String(3), nullable=False, default="USD")
    # Fixed at registration; no API path updates it.
    category_limit = Column(
        Integer, nullable=False, default=lambda: settings.DEFAULT_CATEGORY_LIMIT
    )
    default_income_categories = Column(JSON, nullable=False, default=_default_income_categories)
    default_expense_categories = Column(JSON, nullable=False, default=_default_expense_categories)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    categories = relationship("Category", back_populates="user")
    transactions = relationship("Transaction", back_populates="user")

    @property
    def full_name(self) -> str:
        if self.name:
            return self.name
        return f"{self.fname or ''} {self.lname or ''}".strip()

    def default_category_name(self, category_type: str) -> str | None:
        """Return the configured fallback category name for a type, trimmed."""
        names = (
            self.default_income_categories
            if category_type == "income"
            else self.default_expense_categories
        )
        if not names:
            return None
        first = (names[0] or "").strip()
        return first or None
