"""Store settings model - store identity printed on receipts."""
from sqlalchemy import Column, BigInteger, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from pos.database import Base


class StoreSettings(Base):
    """One row per operator, upserted from the settings screen."""

    __tablename__ = 'settings'

    id = Column(BigInteger().with_variant(Integer, 'sqlite'), primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey('operator.id'), nullable=False, unique=True)
    store_name = Column(String(200), nullable=False)
    store_logo = Column(String(500), nullable=True)
    store_address = Column(Text, nullable=True)
    store_phone = Column(String(50), nullable=True)
    receipt_notes = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<StoreSettings(user_id={self.user_id}, store_name='{self.store_name}')>"
