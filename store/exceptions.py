"""Exception hierarchy shared by the marketplace components."""


class MarketError(Exception):
    """Base exception for marketplace operations."""
    pass

class DuplicateIdentityError(MarketError):
    """Raised when a wallet address is already registered as an artisan."""
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Wallet address {address} is already registered as an artisan")

class UnknownArtisanError(MarketError):
    """Raised when no artisan is registered for a wallet address."""
    def __init__(self, address: str):
        self.address = address
        super().__init__(f"No artisan registered for wallet address {address}")

class NotFoundError(MarketError):
    """Raised when a product does not exist."""
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")

class UnauthorizedError(MarketError):
    """Raised when the claimed identity does not own the product."""
    def __init__(self, product_id: str, address: str, action: str = "modify"):
        self.product_id = product_id
        self.address = address
        self.action = action
        super().__init__(f"{address} is not authorized to {action} product {product_id}")

class NotAvailableError(MarketError):
    """Raised when a product cannot be purchased."""
    def __init__(self, product_id: str, reason: str = "Product not available or already sold"):
        self.product_id = product_id
        self.reason = reason
        super().__init__(f"{reason}: {product_id}")

class InvalidProductError(MarketError):
    """Raised when product data fails validation."""
    pass

class InvalidProfileError(MarketError):
    """Raised when artisan profile data fails validation."""
    pass

class InvalidAmountError(MarketError):
    """Raised when a purchase amount is not a positive, finite number."""
    def __init__(self, product_id: str, amount: object):
        self.product_id = product_id
        self.amount = amount
        super().__init__(f"Invalid purchase amount {amount!r} for product {product_id}")

class SnapshotError(MarketError):
    """Raised when a state snapshot cannot be read or written."""
    pass
