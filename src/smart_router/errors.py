"""Error types raised by the router, catalog and ledger.

Caller-facing conditions (bad input, missing catalog entries) are raised.
Persistence problems are reported as PersistenceWarning and never raised,
so a broken ledger file cannot block routing or in-memory accounting.
"""

from typing import Any


class SmartRouterError(Exception):
    """Base class for all smart router errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}


class InvalidInput(SmartRouterError, ValueError):
    """Raised for malformed caller input (empty conversation, bad tier, negative usage)."""


class CatalogError(SmartRouterError):
    """Raised when the model catalog cannot satisfy a lookup or is malformed."""


class UnknownModel(SmartRouterError, KeyError):
    """Raised when a model id is not present in the catalog."""

    def __str__(self) -> str:
        # KeyError quotes its message; keep the plain text.
        return str(self.args[0]) if self.args else ""


class UnknownProvider(SmartRouterError, ValueError):
    """Raised when a provider name is not one of the known vendors."""


class ProviderNotConfigured(SmartRouterError):
    """Raised when a known provider has no API key available."""


class PersistenceWarning(UserWarning):
    """Ledger load or save failed; the in-memory state is still used."""
