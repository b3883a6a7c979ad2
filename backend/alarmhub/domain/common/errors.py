"""Domain error types."""
from typing import Optional


class DomainError(Exception):
    """Base domain error."""
    pass


class NotFoundError(DomainError):
    """Resource not found."""
    def __init__(self, resource: str, identifier: str, message: Optional[str] = None):
        self.resource = resource
        self.identifier = identifier
        self.message = message or f"{resource} with id {identifier} not found"
        super().__init__(self.message)


class ValidationError(DomainError):
    """Validation error."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConflictError(DomainError):
    """Resource conflict error."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigurationError(DomainError):
    """Deployment is missing something the request needs (accounts, provider credentials)."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class PersistenceError(DomainError):
    """A store write or read failed."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UpstreamDeliveryError(DomainError):
    """A single push delivery failed. Aggregated by the fan-out, never propagated."""
    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"Delivery to {token[:10]}... failed: {reason}")


class MalformedPayloadError(ValidationError):
    """Webhook payload carries no device identifier."""
    def __init__(self, message: str = "Device ID is required"):
        super().__init__(message)


class DeviceNotRegisteredError(NotFoundError):
    """Unknown device and auto-adoption is turned off."""
    def __init__(self, device_id: str):
        super().__init__("Device", device_id, message="Device not registered")


class NoAccountsAvailableError(ConfigurationError):
    """Unknown device and no account exists to adopt it."""
    def __init__(self, message: str = "Device not registered and no users available"):
        super().__init__(message)
