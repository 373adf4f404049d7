"""Message personalization and generation."""
from app.services.messaging.personalizer import (
    FALLBACK_NAME,
    PersonalizedMessage,
    display_name,
    personalize,
)

__all__ = ["FALLBACK_NAME", "PersonalizedMessage", "display_name", "personalize"]
