"""
Error types for stale-branches.
"""

from typing import Any, Dict
from datetime import datetime, timezone


class StaleBranchesError(Exception):
    """Base exception for stale-branches."""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)


class ConfigurationError(StaleBranchesError):
    """Missing or invalid configuration. Fatal before any branch is touched."""

    def __init__(self, message: str, field: str = None, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details={**(details or {}), "field": field} if field else details,
        )


class ProviderError(StaleBranchesError):
    """Error related to repository host operations."""

    def __init__(self, message: str, provider: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="PROVIDER_ERROR",
            details={**(details or {}), "provider": provider},
        )

    @property
    def status_code(self) -> int | None:
        return self.details.get("status_code")


class ProviderConnectionError(ProviderError):
    """Provider connection error."""

    def __init__(self, provider: str, details: Dict[str, Any] = None):
        super().__init__(
            message=f"Failed to connect to {provider} provider",
            provider=provider,
            details=details,
        )


class ProviderTimeoutError(ProviderError):
    """Provider timeout error."""

    def __init__(self, provider: str, timeout: float = None, details: Dict[str, Any] = None):
        super().__init__(
            message=f"Timeout connecting to {provider} provider after {timeout}s",
            provider=provider,
            details={**(details or {}), "timeout": timeout},
        )


class RateLimitExceededError(StaleBranchesError):
    """API usage crossed the abort threshold."""

    def __init__(self, used: float, threshold: float, minutes_to_reset: int | None = None):
        super().__init__(
            message="Exiting to avoid rate limit violation.",
            error_code="RATE_LIMIT_EXCEEDED",
            details={
                "used": used,
                "threshold": threshold,
                "minutes_to_reset": minutes_to_reset,
            },
        )


def handle_provider_error(provider: str, operation: str, original_error: Exception) -> ProviderError:
    """Wrap a raw transport exception into a ProviderError."""
    error_message = f"Error during {operation} operation"

    if "timeout" in str(original_error).lower() or "timeout" in type(original_error).__name__.lower():
        return ProviderTimeoutError(
            provider=provider,
            details={"operation": operation, "original_error": str(original_error)},
        )
    elif "connect" in str(original_error).lower() or "connect" in type(original_error).__name__.lower():
        return ProviderConnectionError(
            provider=provider,
            details={"operation": operation, "original_error": str(original_error)},
        )
    else:
        return ProviderError(
            message=error_message,
            provider=provider,
            details={"operation": operation, "original_error": str(original_error)},
        )
