"""Interface definitions for provider-agnostic cluster bootstrapping."""

from hsmboot.interfaces.exceptions import InterfaceError, ProviderError
from hsmboot.interfaces.hsm_provider import HsmProvider

__all__ = [
    "HsmProvider",
    "InterfaceError",
    "ProviderError",
]
