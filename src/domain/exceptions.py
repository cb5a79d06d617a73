"""
domain.exceptions - Custom exception hierarchy for the recipe book core.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class ValidationError(DomainError):
    """Raised when a write would violate a field invariant.

    Caller-correctable; never retried automatically.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class NotFound(DomainError):
    """Raised when update/delete targets an id the store does not hold."""

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class StorageError(DomainError):
    """Raised when the underlying database operation fails."""


class Cancelled(DomainError):
    """Raised inside a live view when its recomputation was superseded."""
