"""Product model."""
from sqlalchemy import Column, BigInteger, String, DateTime, CheckConstraint
from sqlalchemy.sql import func
from pos.database import Base


class Product(Base):
    """Sellable product. The id doubles as the barcode / scan code."""

    __tablename__ = 'product'

    id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    price = Column(BigInteger, nullable=False)
    purchase_price = Column(BigInteger, nullable=False, default=0, server_default='0')  # Harga beli
    stock = Column(BigInteger, nullable=False, default=0, server_default='0')
    image_url = Column(String(500), nullable=True)
    # Weak reference: no foreign key, a deleted category leaves the id dangling
    category_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('price > 0', name='ck_product_price_positive'),
        CheckConstraint('purchase_price >= 0', name='ck_product_purchase_price_non_negative'),
        CheckConstraint('stock >= 0', name='ck_product_stock_non_negative'),
    )

    def __repr__(self):
        return f"<Product(id='{self.id}', name='{self.name}', stock={self.stock})>"
