from __future__ import annotations

import socket
from typing import Tuple

from ..host_entry import HostEntry, IPAddress

REVERSE_DIRECT = "direct"
REVERSE_NAME_FIRST = "name_first"
REVERSE_MODES = (REVERSE_DIRECT, REVERSE_NAME_FIRST)


def backend_aliases(*aliases: str):
    """Brief: Decorator to set the aliases a resolver backend is selectable by.

    Inputs:
      - *aliases: Variable number of alias strings.

    Outputs:
      - Callable that applies the aliases to a ResolverBackend subclass and returns it.

    Example:
      >>> from hostcache.backends.base import ResolverBackend, backend_aliases
      >>> @backend_aliases('fake', 'stub')
      ... class FakeBackend(ResolverBackend):
      ...     pass
      >>> FakeBackend.aliases
      ('fake', 'stub')
    """

    def _wrap(cls: type) -> type:
        cls.aliases = tuple(aliases)
        return cls

    return _wrap


class ResolverBackend:
    """Base class for the blocking resolver primitives used by Resolver.

    Brief:
      A backend wraps one family of platform calls. Failures are reported by
      raising hostcache.errors.BackendLookupError carrying the raw platform
      code; the Resolver translates that code into a typed error.

      ``reverse_mode`` selects how reverse lookups are performed:
        * "direct": reverse() returns a complete HostEntry for the address.
        * "name_first": reverse_name() returns the fully-qualified name, which
          the Resolver then resolves forward (and may find in its cache).

    Inputs:
      - **config: Implementation-specific options.

    Outputs:
      - ResolverBackend instance.
    """

    aliases: Tuple[str, ...] = ()
    reverse_mode: str = REVERSE_DIRECT

    def forward(self, name: str) -> HostEntry:
        """Brief: Resolve a host name to a HostEntry.

        Inputs:
          - name: Host name to resolve.

        Outputs:
          - HostEntry.
        """

        raise NotImplementedError(
            "ResolverBackend.forward() must be implemented by a subclass"
        )

    def reverse(self, address: IPAddress) -> HostEntry:
        """Brief: Resolve an address directly to a HostEntry ("direct" mode).

        Inputs:
          - address: ipaddress object.

        Outputs:
          - HostEntry whose name is the canonical name of the address.
        """

        raise NotImplementedError(
            f"{type(self).__name__} does not support direct reverse lookups"
        )

    def reverse_name(self, address: IPAddress) -> str:
        """Brief: Resolve an address to its fully-qualified name ("name_first" mode).

        Inputs:
          - address: ipaddress object.

        Outputs:
          - str: Fully-qualified host name.
        """

        raise NotImplementedError(
            f"{type(self).__name__} does not support name-first reverse lookups"
        )

    def host_name(self) -> str:
        """Brief: Return the local machine's host name.

        Inputs:
          - None.

        Outputs:
          - str host name. Raises OSError when the OS query fails.
        """

        return socket.gethostname()
