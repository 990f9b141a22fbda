"""Exception hierarchy for orthobundle."""

from typing import List, Optional


class OrthobundleError(Exception):
    """Base class for all orthobundle errors."""


class ResourceNotFoundError(OrthobundleError, KeyError):
    """
    Requested record, source or version has not been published.

    Subclasses KeyError so lookups behave like mapping access.
    """

    def __str__(self) -> str:
        # KeyError repr-quotes its message
        return str(self.args[0]) if self.args else ""


class CatalogError(OrthobundleError):
    """Catalog could not be read, parsed or fetched."""


class ChecksumError(CatalogError):
    """Downloaded file does not match the checksum recorded in the catalog."""

    def __init__(self, path: str, expected: str, actual: str):
        super().__init__(f"Checksum mismatch for {path}: expected {expected}, got {actual}")
        self.path = path
        self.expected = expected
        self.actual = actual


class BundleValidationError(OrthobundleError, ValueError):
    """
    A bundle violates one or more data-contract invariants.

    Attributes:
        errors: Individual violation messages
    """

    def __init__(self, errors: List[str], context: Optional[str] = None):
        self.errors = list(errors)
        prefix = f"{context}: " if context else ""
        super().__init__(f"{prefix}bundle validation failed: {'; '.join(self.errors)}")
