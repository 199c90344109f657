"""Crypto Recovery exception hierarchy.

All application-specific exceptions inherit from :class:`RecoveryError`.
The projection engine and position updater never raise for documented
inputs; these types cover the host layer around them.
"""

from __future__ import annotations


class RecoveryError(Exception):
    """Base exception for all Crypto Recovery errors."""


# -- Configuration ----------------------------------------------------------


class ConfigError(RecoveryError):
    """Invalid or missing configuration."""


# -- Price / search service -------------------------------------------------


class PriceServiceError(RecoveryError):
    """Lookup service error (network, HTTP status, unexpected payload)."""


class RateLimitError(PriceServiceError):
    """Lookup service rate limit exceeded (HTTP 429)."""


# -- Data integrity ---------------------------------------------------------


class DataCorruptionError(RecoveryError):
    """Stored position data is corrupted or in an unexpected format."""


# -- Position book ----------------------------------------------------------


class InvalidOperationError(RecoveryError):
    """A position-book operation was refused (unknown id, unaffordable level)."""
