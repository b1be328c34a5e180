"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
Product Source failures carry enough type information for the error
classifier to decide whether a call is worth retrying.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ProductNotFoundError(EntityNotFoundError):
    """The Product Source no longer recognizes a product id."""

    def __init__(self, product_id: str) -> None:
        self.product_id = product_id
        super().__init__(f"Product not found: '{product_id}'")


class ProductSourceError(DomainException):
    """A call to the Product Source failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


class SourceUnavailableError(ProductSourceError):
    """The Product Source could not be reached (network failure)."""


class SourceTimeoutError(ProductSourceError):
    """The Product Source did not answer in time."""


class SourceServerError(ProductSourceError):
    """The Product Source answered with a server-side failure."""


class SourcePermissionError(ProductSourceError):
    """The caller is not allowed to read from the Product Source."""
