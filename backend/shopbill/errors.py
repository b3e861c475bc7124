"""
Error taxonomy shared by every service.

Each class maps to one failure kind the callers are expected to tell apart:

- ValidationError   -> malformed input, rejected before any transaction opens (400)
- NotFoundError     -> unknown bill/product/user/customer id (404)
- ConflictError     -> unique/foreign-key constraint would be violated (409)
- TransactionFailure-> the store failed mid-transaction; everything was rolled back (500)
- DecodeError       -> a stored row does not decode into its typed form (500)
"""

from __future__ import annotations


class ShopBillError(Exception):
    """Base class; `details` carries structured context for API responses."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ValidationError(ShopBillError, ValueError):
    """400-level input problem."""


class InvalidInput(ValidationError):
    """A numeric argument is outside its domain (e.g. negative tax rate)."""


class EmptyCartError(ValidationError):
    """A bill cannot be created from a cart with no items."""


class NotFoundError(ShopBillError, LookupError):
    """404-level: the referenced row does not exist."""


class ConflictError(ShopBillError, ValueError):
    """409-level constraint violation (duplicate code, referenced category, ...)."""


class ProtectedUserError(ConflictError):
    """The last super_admin cannot be deleted or demoted."""


class TransactionFailure(ShopBillError):
    """The database failed inside an atomic block; no partial effect persisted."""


class DecodeError(ShopBillError, ValueError):
    """A persisted value could not be decoded into its typed form."""
