"""Adapter implementations for external services."""

from hsmboot.adapters.cloudhsm_adapter import CloudHSMAdapter

__all__ = [
    "CloudHSMAdapter",
]
