from __future__ import annotations

import logging
import socket

from ..errors import HOST_NOT_FOUND, BackendLookupError, code_from_socket_error
from ..host_entry import HostEntry, IPAddress
from .base import REVERSE_DIRECT, REVERSE_MODES, ResolverBackend, backend_aliases

logger = logging.getLogger(__name__)


def _sockaddr_for(address: IPAddress) -> tuple:
    if address.version == 6:
        return (str(address), 0, 0, 0)
    return (str(address), 0)


@backend_aliases("system", "socket", "os")
class SystemBackend(ResolverBackend):
    """Backend built on the operating system resolver (``socket`` module).

    Brief:
      Forward lookups use gethostbyname_ex by default, or getaddrinfo with
      AI_CANONNAME when ``use_getaddrinfo`` is set (needed for IPv6 results).
      Reverse lookups use gethostbyaddr ("direct"), or getnameinfo followed by
      a forward lookup of the returned name ("name_first"). In name_first
      mode an address without a PTR record comes back from getnameinfo in
      numeric form unless ``name_required`` is set.

    Inputs:
      - **config:
          - reverse_mode: "direct" (default) or "name_first".
          - use_getaddrinfo: bool, default False.
          - name_required: bool, default False; pass NI_NAMEREQD so a
            missing PTR record fails with HOST_NOT_FOUND.

    Outputs:
      - SystemBackend instance.
    """

    def __init__(self, **config: object) -> None:
        mode = str(config.get("reverse_mode", REVERSE_DIRECT) or REVERSE_DIRECT)
        if mode not in REVERSE_MODES:
            raise ValueError(
                f"reverse_mode must be one of {', '.join(REVERSE_MODES)}, got {mode!r}"
            )
        self.reverse_mode = mode
        self.use_getaddrinfo = bool(config.get("use_getaddrinfo", False))
        self.name_required = bool(config.get("name_required", False))

    def forward(self, name: str) -> HostEntry:
        try:
            if self.use_getaddrinfo:
                infos = socket.getaddrinfo(
                    name, None, 0, socket.SOCK_STREAM, 0, socket.AI_CANONNAME
                )
                return HostEntry.from_addrinfo(infos, name)
            return HostEntry.from_hostent(socket.gethostbyname_ex(name))
        except (TypeError, ValueError) as exc:
            # Rejected before any query is sent (IDNA UnicodeError, NUL bytes).
            raise BackendLookupError(HOST_NOT_FOUND, str(exc)) from exc
        except OSError as exc:
            raise BackendLookupError(code_from_socket_error(exc), str(exc)) from exc

    def reverse(self, address: IPAddress) -> HostEntry:
        try:
            return HostEntry.from_hostent(socket.gethostbyaddr(str(address)))
        except OSError as exc:
            raise BackendLookupError(code_from_socket_error(exc), str(exc)) from exc

    def reverse_name(self, address: IPAddress) -> str:
        flags = socket.NI_NAMEREQD if self.name_required else 0
        try:
            host, _port = socket.getnameinfo(_sockaddr_for(address), flags)
        except OSError as exc:
            raise BackendLookupError(code_from_socket_error(exc), str(exc)) from exc
        logger.debug("getnameinfo(%s) -> %s", address, host)
        return host
