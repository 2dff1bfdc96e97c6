"""
Core exception classes for Traffic Breaks.
"""
from typing import Optional


class TrafficBreaksError(Exception):
    """Base exception for all Traffic Breaks errors."""

    def __init__(self, message: str, details: str = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(TrafficBreaksError):
    """Raised when credentials or the instance list are missing or invalid."""
    pass


class ValidationError(TrafficBreaksError):
    """Raised when a single instance config entry is invalid."""
    pass


class ServiceError(TrafficBreaksError):
    """Raised when an Alibaba Cloud API operation fails."""
    pass


class TransportError(ServiceError):
    """Raised on non-2xx HTTP responses or network failures.

    ``status`` is None when no response was received at all.
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        reason: Optional[str] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message, details=body)
        self.status = status
        self.reason = reason
        self.body = body


class ResponseParseError(TransportError):
    """Raised when a response body is not the JSON shape an operation expects."""
    pass


class InstanceNotFoundError(ServiceError):
    """Raised when a describe call matches no instance for an id/region pair."""

    def __init__(self, instance_id: str, region: str):
        super().__init__(
            f"Instance {instance_id} not found in region {region}",
            details="Check that the instance id and region in the configuration belong together",
        )
        self.instance_id = instance_id
        self.region = region
