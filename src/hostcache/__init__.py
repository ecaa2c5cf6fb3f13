"""hostcache package"""

from .cache import ResolutionCache
from .errors import (
    GenericIOError,
    HostNotFoundError,
    LocalHostUnavailableError,
    NoAddressFoundError,
    NonRecoverableDNSError,
    ResolverError,
    SubsystemNotInitializedError,
    SubsystemNotReadyError,
    TemporaryDNSError,
)
from .host_entry import HostEntry
from .resolver import Resolver, get_resolver, set_resolver

__all__ = [
    "GenericIOError",
    "HostEntry",
    "HostNotFoundError",
    "LocalHostUnavailableError",
    "NoAddressFoundError",
    "NonRecoverableDNSError",
    "ResolutionCache",
    "Resolver",
    "ResolverError",
    "SubsystemNotInitializedError",
    "SubsystemNotReadyError",
    "TemporaryDNSError",
    "get_resolver",
    "set_resolver",
]
