"""Resolver backends.

Brief: Defines the ResolverBackend interface and the bundled implementations.

Inputs:
  - None

Outputs:
  - None
"""

from __future__ import annotations

from .base import (
    REVERSE_DIRECT,
    REVERSE_NAME_FIRST,
    ResolverBackend,
    backend_aliases,
)
from .registry import get_backend_class, load_backend
from .system import SystemBackend

__all__ = [
    "REVERSE_DIRECT",
    "REVERSE_NAME_FIRST",
    "ResolverBackend",
    "SystemBackend",
    "backend_aliases",
    "get_backend_class",
    "load_backend",
]
