"""Custom exception hierarchy for plaza-billing."""


class PlazaError(Exception):
    """Base exception for all plaza-billing errors."""


class ValidationError(PlazaError):
    """Raised when operator input is missing or malformed."""


class EntityNotFoundError(PlazaError):
    """Raised when a referenced entity does not exist."""


class RecordNotFoundError(EntityNotFoundError):
    """Raised when a billing, repair or staff record does not exist."""


class ShopNotFoundError(EntityNotFoundError):
    """Raised when a shop does not exist in the directory."""


class InvalidEntityStateError(PlazaError):
    """Raised when an entity is in an invalid state for the operation."""


class DuplicateRecordError(PlazaError):
    """Raised when a unique document would be inserted twice."""


class PermissionDeniedError(PlazaError):
    """Raised when the current user lacks a required permission."""


class ConfigurationError(PlazaError):
    """Raised when configuration is invalid or missing."""


class StoreError(PlazaError):
    """Raised when a document store or identity provider operation fails."""


class DuplicateCredentialError(StoreError):
    """Raised when the identity provider already holds the credential."""
