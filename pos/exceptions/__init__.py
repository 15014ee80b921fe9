"""Custom exceptions for the POS application."""

class PosError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(PosError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(PosError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class UnauthorizedError(PosError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Unauthorized access"):
        super().__init__(message, 403)

class EmptyCartError(BusinessLogicError):
    """Raised when checkout is attempted on an empty cart."""
    def __init__(self, message="Keranjang kosong."):
        super().__init__(message, payload={'code': 'cart_empty'})

class InsufficientStockError(BusinessLogicError):
    """Raised when an operation fails due to lack of stock."""
    def __init__(self, product_name, required, available, message=None):
        self.product_name = product_name
        self.required = int(required)
        self.available = int(available)
        message = message or (
            f"Tidak dapat menambahkan lebih dari {self.available} {product_name} ke keranjang."
        )
        super().__init__(message, status_code=409, payload={
            'code': 'insufficient_stock',
            'product_name': product_name,
            'required': self.required,
            'available': self.available,
        })

class InsufficientFundsError(BusinessLogicError):
    """Raised when the tendered amount does not cover the total."""
    def __init__(self, tendered, total, message=None):
        self.tendered = int(tendered)
        self.total = int(total)
        self.shortfall = self.total - self.tendered
        message = message or (
            f"Uang yang diterima ({self.tendered}) kurang dari total pembayaran ({self.total})."
        )
        super().__init__(message, payload={
            'code': 'insufficient_funds',
            'tendered': self.tendered,
            'total': self.total,
            'shortfall': self.shortfall,
        })

class DuplicateProductError(BusinessLogicError):
    """Raised when a product id is already taken."""
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(
            f'ID produk "{product_id}" sudah digunakan.',
            status_code=409,
            payload={'code': 'duplicate_product', 'product_id': product_id},
        )

class RemoteStoreError(PosError):
    """Raised when the backing database rejects or fails an operation."""
    def __init__(self, message="Gagal menghubungi database."):
        super().__init__(message, 502)

class LoginRequiredError(PosError):
    """Raised when a till action arrives without a signed-in operator."""
    def __init__(self, message="Silakan masuk terlebih dahulu."):
        super().__init__(message, 401, payload={'code': 'login_required'})
