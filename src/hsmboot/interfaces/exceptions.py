"""Exceptions for interface implementations."""

from hsmboot.core.exceptions import HsmBootError


class InterfaceError(HsmBootError):
    """Base exception for all interface-related errors."""


class ProviderError(InterfaceError):
    """Transport or API failure reported by the HSM provider."""
