"""Transaction model - a completed, immutable sale."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, BigInteger, String, DateTime, JSON, ForeignKey
from pos.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Transaction(Base):
    """
    Completed sale (receipt header plus a snapshot of the sold items).

    Items are stored as the cart looked at checkout time so that history and
    receipts do not depend on the mutable catalog.
    """

    __tablename__ = 'transactions'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    timestamp = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    items = Column(JSON, nullable=False)
    total = Column(BigInteger, nullable=False)
    tendered_amount = Column(BigInteger, nullable=False)
    change = Column(BigInteger, nullable=False)
    operator_id = Column(BigInteger, ForeignKey('operator.id'), nullable=True)

    def __repr__(self):
        return f"<Transaction(id={self.id}, total={self.total}, change={self.change})>"
