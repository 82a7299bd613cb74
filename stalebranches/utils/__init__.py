"""Shared helpers: error types and time arithmetic."""

from .errors import (
    StaleBranchesError,
    ConfigurationError,
    ProviderError,
    ProviderConnectionError,
    ProviderTimeoutError,
    RateLimitExceededError,
)
from .time import days_between, minutes_between

__all__ = [
    "StaleBranchesError",
    "ConfigurationError",
    "ProviderError",
    "ProviderConnectionError",
    "ProviderTimeoutError",
    "RateLimitExceededError",
    "days_between",
    "minutes_between",
]
