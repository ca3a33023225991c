from typing import List, Optional


class StoreError(Exception):
    """Base error for the storefront; carries the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    """Malformed request data (empty cart, bad cart line, invalid update)."""

    status_code = 400


class NotFoundError(StoreError):
    status_code = 404


class ConflictError(StoreError):
    status_code = 409


class AuthenticationError(StoreError):
    status_code = 401


class AuthorizationError(StoreError):
    status_code = 403


class PersistenceError(StoreError):
    """Order records could not be written; inventory was not touched."""

    status_code = 500


class InventoryShortfall(StoreError):
    """Raised in strict checkout mode when some line could not be decremented."""

    status_code = 409

    def __init__(self, message: str, shortfalls: Optional[List] = None):
        super().__init__(message)
        self.shortfalls = shortfalls or []
