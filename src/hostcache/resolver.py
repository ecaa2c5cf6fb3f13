"""Cached host name / address resolution.

Brief:
  Resolver turns host names and IP address literals into HostEntry records,
  consulting a ResolutionCache first and a ResolverBackend on a miss.
  Backend failures are translated into hostcache.errors exceptions.

Inputs:
  - Host names, address strings or ipaddress objects.

Outputs:
  - HostEntry records and ipaddress objects.
"""

from __future__ import annotations

import ipaddress
import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional, Union

from .backends.base import REVERSE_NAME_FIRST, ResolverBackend
from .backends.system import SystemBackend
from .cache import ResolutionCache
from .errors import (
    BackendLookupError,
    LocalHostUnavailableError,
    NoAddressFoundError,
    ResolverError,
    translate_error,
)
from .host_entry import HostEntry, IPAddress, parse_address

logger = logging.getLogger(__name__)

AddressLike = Union[IPAddress, str]


class Resolver:
    """Resolve names and addresses through a shared cache.

    Brief:
      By default every public operation holds the cache lock for its whole
      body, including the blocking backend call, so at most one backend call
      is in flight per cache. With ``serialize_lookups=False`` the lock only
      guards the cache probe and a per-key in-flight Future; callers asking
      for the same key wait on that Future while other keys resolve
      concurrently.

      Reverse lookups are cached under the discovered host name, not under
      the address string, so the address -> name step runs on every call.

    Inputs:
      - cache: Optional ResolutionCache (a private one is created if omitted).
      - backend: Optional ResolverBackend (SystemBackend if omitted).
      - serialize_lookups: bool locking mode, default True.

    Outputs:
      - Resolver instance.

    Example:
      >>> r = Resolver()
      >>> r.resolve("localhost").name  # doctest: +SKIP
      'localhost'
    """

    def __init__(
        self,
        cache: Optional[ResolutionCache] = None,
        backend: Optional[ResolverBackend] = None,
        *,
        serialize_lookups: bool = True,
    ) -> None:
        self.cache = cache if cache is not None else ResolutionCache()
        self.backend = backend if backend is not None else SystemBackend()
        self.serialize_lookups = bool(serialize_lookups)
        self._inflight: Dict[str, Future] = {}

    # Backend calls

    def _call(self, fn: Callable[[Any], Any], arg: Any, subject: str) -> Any:
        try:
            return fn(arg)
        except BackendLookupError as exc:
            logger.debug(
                "%s(%s) failed with code %s: %s",
                getattr(fn, "__name__", "backend"),
                arg,
                exc.code,
                exc.detail,
            )
            raise translate_error(exc.code, subject) from exc

    # Cache access

    def _get_or_create(
        self, key: str, produce: Callable[[], HostEntry], subject: str
    ) -> HostEntry:
        if self.serialize_lookups:
            # Caller already holds the cache lock.
            entry = self.cache.lookup(key)
            if entry is not None:
                logger.debug("cache hit for %s", key)
                return entry
            logger.debug("cache miss for %s", key)
            return self.cache.insert(key, produce())
        return self._single_flight(key, produce, subject)

    def _single_flight(
        self, key: str, produce: Callable[[], HostEntry], subject: str
    ) -> HostEntry:
        with self.cache.lock:
            entry = self.cache.lookup(key)
            if entry is not None:
                logger.debug("cache hit for %s", key)
                return entry
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future

        if not owner:
            logger.debug("waiting for in-flight lookup of %s", key)
            try:
                return future.result()
            except ResolverError as exc:
                # Each waiter gets its own error naming what it asked for.
                raise type(exc)(exc.message, subject=subject, code=exc.code) from exc

        logger.debug("cache miss for %s", key)
        try:
            entry = self.cache.insert(key, produce())
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(entry)
            return entry
        finally:
            with self.cache.lock:
                self._inflight.pop(key, None)

    # Public operations

    def host_by_name(self, name: str) -> HostEntry:
        """Brief: Return the entry for a host name, resolving it on a cache miss.

        Inputs:
          - name: Host name; used verbatim as the cache key.

        Outputs:
          - HostEntry stored in the cache.

        Raises:
          - ResolverError subclass when the backend lookup fails.
        """

        def produce() -> HostEntry:
            return self._call(self.backend.forward, name, subject=name)

        if self.serialize_lookups:
            with self.cache.lock:
                return self._get_or_create(name, produce, name)
        return self._get_or_create(name, produce, name)

    def host_by_address(self, address: AddressLike) -> HostEntry:
        """Brief: Return the entry for an IP address via reverse resolution.

        Inputs:
          - address: ipaddress object or address literal.

        Outputs:
          - HostEntry stored in the cache under the discovered host name.

        Raises:
          - ResolverError subclass (subject is the address display string).
        """

        ip = address
        if not isinstance(ip, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            ip = parse_address(str(address))

        if self.serialize_lookups:
            with self.cache.lock:
                return self._host_by_address(ip)
        return self._host_by_address(ip)

    def _host_by_address(self, ip: IPAddress) -> HostEntry:
        subject = str(ip)
        if self.backend.reverse_mode == REVERSE_NAME_FIRST:
            fqdn = self._call(self.backend.reverse_name, ip, subject=subject)

            def produce() -> HostEntry:
                return self._call(self.backend.forward, fqdn, subject=subject)

            return self._get_or_create(fqdn, produce, subject)

        entry = self._call(self.backend.reverse, ip, subject=subject)
        return self.cache.insert(entry.name, entry)

    def resolve(self, token: str) -> HostEntry:
        """Brief: Dispatch to host_by_address or host_by_name.

        Inputs:
          - token: Address literal or host name. A token that parses as an
            IP address is always treated as an address.

        Outputs:
          - HostEntry.
        """

        try:
            ip = ipaddress.ip_address(token)
        except ValueError:
            return self.host_by_name(token)
        return self.host_by_address(ip)

    def resolve_one(self, token: str) -> IPAddress:
        """Brief: Resolve token and return the first address of the entry.

        Inputs:
          - token: Address literal or host name.

        Outputs:
          - First address in resolver order.

        Raises:
          - NoAddressFoundError when the entry has no addresses.
        """

        entry = self.resolve(token)
        first = entry.first_address()
        if first is None:
            raise NoAddressFoundError(subject=token)
        return first

    def host_name(self) -> str:
        """Brief: Return the local machine's host name.

        Inputs:
          - None.

        Outputs:
          - str host name.

        Raises:
          - LocalHostUnavailableError when the OS query fails or returns nothing.
        """

        try:
            name = self.backend.host_name()
        except OSError as exc:
            raise LocalHostUnavailableError(code=getattr(exc, "errno", None)) from exc
        if not name:
            raise LocalHostUnavailableError()
        return name

    def this_host(self) -> HostEntry:
        """Brief: Resolve the local machine's own host name."""

        return self.host_by_name(self.host_name())

    def flush_cache(self) -> int:
        """Brief: Drop every cached entry; returns the number removed."""

        with self.cache.lock:
            removed = self.cache.flush()
        logger.debug("flushed %d cached host entries", removed)
        return removed


_default_resolver: Optional[Resolver] = None
_default_lock = threading.Lock()


def get_resolver() -> Resolver:
    """Brief: Return the process-wide Resolver, creating it on first use.

    Inputs:
      - None.

    Outputs:
      - Resolver shared by callers that do not build their own.
    """

    global _default_resolver
    with _default_lock:
        if _default_resolver is None:
            _default_resolver = Resolver()
        return _default_resolver


def set_resolver(resolver: Optional[Resolver]) -> None:
    """Brief: Install (or with None, reset) the process-wide Resolver."""

    global _default_resolver
    with _default_lock:
        _default_resolver = resolver
