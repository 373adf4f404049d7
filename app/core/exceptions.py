"""
Application exceptions.

Every error surfaced to a caller derives from CampaignServiceError so the
API layer can map it to a status code in one place.
"""
from typing import Optional


class CampaignServiceError(Exception):
    """Base exception for every domain error."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class DatabaseError(CampaignServiceError):
    """Storage (Supabase) failure."""
    pass


class ValidationError(CampaignServiceError):
    """Malformed input: bad rule, missing or too short field."""
    pass


class NotFoundError(CampaignServiceError):
    """Resource not found."""

    def __init__(
        self,
        resource: str,
        identifier: Optional[str] = None
    ):
        message = f"{resource} not found"
        details = {}
        if identifier:
            details["id"] = str(identifier)
        super().__init__(message, details)


class ConflictError(CampaignServiceError):
    """Operation not allowed in the current state (sent campaign, empty audience, ...)."""
    pass


class AggregationError(CampaignServiceError):
    """Derived spend could not be computed for a customer."""

    def __init__(
        self,
        customer_id: str,
        original_error: Optional[Exception] = None
    ):
        super().__init__(
            "Total spend unavailable",
            {"customer_id": str(customer_id)},
            original_error,
        )


class ConfigurationError(CampaignServiceError):
    """Missing or invalid configuration."""
    pass
