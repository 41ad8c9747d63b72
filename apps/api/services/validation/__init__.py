"""Record validation against field definitions."""

from apps.api.services.validation.engine import validate, validate_field

__all__ = ["validate", "validate_field"]
