"""
Plain records the till works with, detached from the ORM.

Rows are converted with ``from_model`` when the store fetches them and
serialized with ``to_dict`` for JSON responses and transaction snapshots.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace, asdict
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Category:
    id: str
    name: str

    @classmethod
    def from_model(cls, row) -> "Category":
        return cls(id=row.id, name=row.name)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: int
    purchase_price: int
    stock: int
    image_url: Optional[str] = None
    category_id: Optional[str] = None

    @classmethod
    def from_model(cls, row) -> "Product":
        return cls(
            id=row.id,
            name=row.name,
            price=int(row.price),
            purchase_price=int(row.purchase_price or 0),
            stock=int(row.stock or 0),
            image_url=row.image_url,
            category_id=row.category_id,
        )

    def is_low_stock(self, threshold: int) -> bool:
        """Still sellable but running out (shown as STOK TIPIS on the grid)."""
        return 0 < self.stock < threshold

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CartItem:
    """A product line in the open sale; product fields are copied at add time."""
    id: str
    name: str
    price: int
    purchase_price: int
    stock: int
    quantity: int
    image_url: Optional[str] = None
    category_id: Optional[str] = None

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> "CartItem":
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            purchase_price=product.purchase_price,
            stock=product.stock,
            quantity=quantity,
            image_url=product.image_url,
            category_id=product.category_id,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(
            id=str(data['id']),
            name=data.get('name', ''),
            price=int(data.get('price', 0)),
            purchase_price=int(data.get('purchase_price', 0) or 0),
            stock=int(data.get('stock', 0) or 0),
            quantity=int(data.get('quantity', 0)),
            image_url=data.get('image_url'),
            category_id=data.get('category_id'),
        )

    def with_quantity(self, quantity: int) -> "CartItem":
        return replace(self, quantity=quantity)

    @property
    def line_total(self) -> int:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        data = asdict(self)
        data['line_total'] = self.line_total
        return data


@dataclass(frozen=True)
class Transaction:
    id: str
    timestamp: datetime
    items: Tuple[CartItem, ...]
    total: int
    tendered_amount: int
    change: int

    @classmethod
    def from_model(cls, row) -> "Transaction":
        return cls(
            id=row.id,
            timestamp=row.timestamp,
            items=tuple(CartItem.from_dict(item) for item in (row.items or [])),
            total=int(row.total),
            tendered_amount=int(row.tendered_amount),
            change=int(row.change),
        )

    @property
    def items_sold(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> int:
        return sum(item.line_total for item in self.items)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'items': [item.to_dict() for item in self.items],
            'items_sold': self.items_sold,
            'total': self.total,
            'tendered_amount': self.tendered_amount,
            'change': self.change,
        }


@dataclass(frozen=True)
class StoreSettings:
    name: str = "Dyad POS"
    logo: Optional[str] = None
    address: str = ""
    phone: str = ""
    receipt_notes: str = "Terima kasih atas pembelian Anda!"

    def merged_with(self, row) -> "StoreSettings":
        """Overlay a settings row; empty columns keep the current values."""
        if row is None:
            return self
        return StoreSettings(
            name=row.store_name or self.name,
            logo=row.store_logo or self.logo,
            address=row.store_address or self.address,
            phone=row.store_phone or self.phone,
            receipt_notes=row.receipt_notes or self.receipt_notes,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CheckoutTotals:
    subtotal: int
    tax: int
    total: int
    tax_included: bool
    tendered: Optional[int] = None
    change: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Notification:
    """User-visible message produced by a till action."""
    level: str
    message: str
    created_at: datetime = field(default_factory=datetime.now, compare=False)

    def to_dict(self) -> dict:
        return {'level': self.level, 'message': self.message}
