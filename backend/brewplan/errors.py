# Overview: Domain exception hierarchy shared by the lifecycle services and the API layer.

from __future__ import annotations


class BrewplanError(Exception):
    """
    Base class for every domain error raised by the service layer.

    Carries a human-readable message (safe to show to the end user verbatim),
    an optional details dict for structured context, and the HTTP status the
    API layer should answer with.
    """
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(BrewplanError):
    """400-level input problem (bad quantity, unknown enum value, missing field)."""
    http_status = 400


class NotFoundError(BrewplanError):
    """Referenced row (batch, PO, order, lot, line...) does not exist."""
    http_status = 404


class InvalidTransitionError(BrewplanError):
    """Requested status change is not in the adjacency table for the current status."""
    http_status = 409

    def __init__(self, entity: str, from_status: str, to_status: str):
        super().__init__(
            f'Invalid {entity} transition from "{from_status}" to "{to_status}"',
            details={"from_status": from_status, "to_status": to_status},
        )
        self.from_status = from_status
        self.to_status = to_status


class GuardViolationError(BrewplanError):
    """A transition-specific precondition failed."""
    http_status = 409


class InvalidStateError(GuardViolationError):
    """Operation is not permitted while the document is in its current status."""


class InsufficientStockError(GuardViolationError):
    """Finished goods available quantity cannot cover an order line."""


class OverReceiptError(GuardViolationError):
    """Receiving would push a PO line past its ordered quantity."""

    def __init__(self, message: str, remaining: float):
        super().__init__(message, details={"remaining": remaining})
        self.remaining = remaining


class InvariantViolationError(BrewplanError):
    """A lower-level write would force a quantity negative."""
    http_status = 409


class ConcurrencyConflictError(BrewplanError):
    """The aggregate was modified by another request and retries were exhausted."""
    http_status = 409
