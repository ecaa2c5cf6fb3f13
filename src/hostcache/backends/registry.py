"""Backend selection for hostcache.

Brief:
  A backend is named either by one of the aliases declared on the bundled
  backends (``system``, ``dnspython`` ...) or by an import path to any
  ResolverBackend subclass, written ``package.module.Class`` or
  ``package.module:Class``.

Inputs:
  - Backend identifiers from the ``resolver.backend`` config key.

Outputs:
  - ResolverBackend classes and instances.
"""

from __future__ import annotations

import difflib
import importlib
import inspect
from typing import Dict, Optional, Type

from cachetools import LRUCache, cached

from .base import ResolverBackend

DEFAULT_BACKEND = "system"

# Imported lazily so dnspython is only loaded when selected.
BUNDLED_BACKENDS = (
    "hostcache.backends.system:SystemBackend",
    "hostcache.backends.dnspython_backend:DnspythonBackend",
)


def _import_backend(path: str) -> Type[ResolverBackend]:
    if ":" in path:
        modname, _, attr = path.partition(":")
    else:
        modname, _, attr = path.rpartition(".")
    if not modname or not attr:
        raise ValueError(f"Invalid resolver backend path '{path}'")

    module = importlib.import_module(modname)
    try:
        cls = getattr(module, attr)
    except AttributeError:
        raise ImportError(f"Module '{modname}' has no attribute '{attr}'") from None
    if not (inspect.isclass(cls) and issubclass(cls, ResolverBackend)):
        raise TypeError(f"{path} is not a ResolverBackend subclass")
    return cls


@cached(cache=LRUCache(maxsize=1))
def bundled_aliases() -> Dict[str, Type[ResolverBackend]]:
    """Brief: Map every alias declared by a bundled backend to its class.

    Inputs:
      - None.

    Outputs:
      - dict of lowercase alias -> ResolverBackend subclass.
    """

    table: Dict[str, Type[ResolverBackend]] = {}
    for path in BUNDLED_BACKENDS:
        cls = _import_backend(path)
        for alias in cls.aliases:
            table[alias.lower()] = cls
    return table


@cached(cache=LRUCache(maxsize=32))
def get_backend_class(identifier: str) -> Type[ResolverBackend]:
    """Brief: Resolve an alias or import path to a backend class.

    Inputs:
      - identifier: Alias (case-insensitive) or import path.

    Outputs:
      - ResolverBackend subclass.

    Raises:
      - KeyError: unknown alias, with close matches in the message.
      - ImportError / TypeError / ValueError: bad import path.
    """

    ident = str(identifier).strip()
    if "." in ident or ":" in ident:
        return _import_backend(ident)

    table = bundled_aliases()
    try:
        return table[ident.lower()]
    except KeyError:
        close = difflib.get_close_matches(ident.lower(), list(table), n=3)
        hint = f" Did you mean: {', '.join(close)}?" if close else ""
        raise KeyError(
            f"Unknown resolver backend '{identifier}'. "
            f"Known aliases: {', '.join(sorted(table))}.{hint}"
        ) from None


def load_backend(
    name: Optional[str] = None, config: Optional[Dict[str, object]] = None
) -> ResolverBackend:
    """Brief: Build the configured resolver backend.

    Inputs:
      - name: Alias or import path; None selects the system backend.
      - config: Keyword arguments passed to the backend constructor.

    Outputs:
      - ResolverBackend instance.

    Example:
      resolver:
        backend: dnspython
        backend_config: {nameservers: [9.9.9.9], lifetime: 2.0}
    """

    if config is not None and not isinstance(config, dict):
        raise TypeError("backend_config must be a mapping")
    cls = get_backend_class(name or DEFAULT_BACKEND)
    return cls(**dict(config or {}))
