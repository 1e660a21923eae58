"""Standardized exception hierarchy for the location simulator."""

from typing import Any


class SimulationError(Exception):
    """Base exception for all simulation errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(SimulationError):
    """Errors that may succeed on retry."""

    pass


class NetworkError(TransientError):
    """Network-related transient errors (timeout, connection refused)."""

    pass


class ServiceUnavailableError(TransientError):
    """External service temporarily unavailable (5xx responses)."""

    pass


class SinkError(TransientError):
    """A location backend failed to apply a fix.

    Carries the command line and stderr of the failing tool in ``details``.
    The next fix may well succeed, so the simulation keeps going.
    """

    pass


class PermanentError(SimulationError):
    """Errors that will not succeed on retry."""

    pass


class ValidationError(PermanentError):
    """Invalid input or data format."""

    pass


class EmptyRouteError(ValidationError):
    """Route has fewer than two points, so there is nothing to simulate."""

    pass


class RouteFormatError(ValidationError):
    """Route file content is not a supported shape."""

    pass


class NotFoundError(PermanentError):
    """Requested entity does not exist."""

    pass


class NoBootedSimulatorsError(NotFoundError):
    """No iOS simulators are currently booted."""

    pass


class DeviceDiscoveryError(NotFoundError):
    """Listing simulators or devices failed."""

    pass


class StateError(PermanentError):
    """Invalid state transition."""

    pass


class ClockAlreadyRunningError(StateError):
    """A clock can only drive one simulator at a time."""

    pass


class ConfigurationError(PermanentError):
    """Missing or invalid configuration."""

    pass


class BackendConfigurationError(ConfigurationError):
    """Backend is missing a tool path or device identifier."""

    pass
