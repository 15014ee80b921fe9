"""Category model."""
import uuid

from sqlalchemy import Column, String, DateTime, CheckConstraint
from sqlalchemy.sql import func
from pos.database import Base


class Category(Base):
    """Product Category."""

    __tablename__ = 'category'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(120), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name='ck_category_name_not_empty'),
    )

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"
