from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# (name, aliases, addresses) as returned by gethostbyname_ex/gethostbyaddr.
HostEnt = Tuple[str, Sequence[str], Sequence[str]]
# (family, type, proto, canonname, sockaddr) rows from getaddrinfo.
AddrInfo = Tuple[int, int, int, str, Tuple[Any, ...]]


def parse_address(text: str) -> IPAddress:
    """Brief: Parse an address string as reported by a resolver.

    Inputs:
      - text: IPv4/IPv6 literal, optionally carrying a ``%scope`` suffix.

    Outputs:
      - ipaddress.IPv4Address or ipaddress.IPv6Address.

    Example:
      >>> parse_address("fe80::1%eth0")
      IPv6Address('fe80::1')
    """

    raw = str(text).strip()
    if "%" in raw:
        raw = raw.split("%", 1)[0]
    return ipaddress.ip_address(raw)


def _unique_addresses(values: Iterable[Any]) -> Tuple[IPAddress, ...]:
    seen: List[IPAddress] = []
    for value in values:
        if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            addr = value
        else:
            addr = parse_address(value)
        if addr not in seen:
            seen.append(addr)
    return tuple(seen)


@dataclass(frozen=True)
class HostEntry:
    """Immutable host record: canonical name, aliases and addresses.

    Brief:
      Normalizes the different raw shapes produced by resolver primitives
      (hostent triples, getaddrinfo rows, dnspython answers) into one record.
      Instances are never mutated, so cache entries are handed out without
      copying.

    Inputs:
      - name: Canonical/primary host name.
      - aliases: Alternate names in resolver order.
      - addresses: Resolved addresses in resolver order (may be empty).

    Outputs:
      - HostEntry instance.

    Example:
      >>> e = HostEntry.from_hostent(("localhost", [], ["127.0.0.1"]))
      >>> e.name, e.addresses
      ('localhost', (IPv4Address('127.0.0.1'),))
    """

    name: str
    aliases: Tuple[str, ...] = field(default_factory=tuple)
    addresses: Tuple[IPAddress, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept lists and address strings from callers; store tuples only.
        object.__setattr__(self, "name", str(self.name))
        object.__setattr__(self, "aliases", tuple(str(a) for a in self.aliases))
        object.__setattr__(self, "addresses", _unique_addresses(self.addresses))

    @classmethod
    def from_hostent(cls, raw: HostEnt) -> "HostEntry":
        """Brief: Build an entry from a ``(name, aliases, addresses)`` triple.

        Inputs:
          - raw: Result of socket.gethostbyname_ex or socket.gethostbyaddr.

        Outputs:
          - HostEntry.
        """

        name, aliases, addresses = raw
        return cls(name=name, aliases=tuple(aliases), addresses=tuple(addresses))

    @classmethod
    def from_addrinfo(
        cls, infos: Iterable[AddrInfo], fallback_name: str
    ) -> "HostEntry":
        """Brief: Build an entry from getaddrinfo rows.

        Inputs:
          - infos: Rows as returned by socket.getaddrinfo, ideally requested
            with AI_CANONNAME so the first row carries the canonical name.
          - fallback_name: Name used when no row reports a canonical name.

        Outputs:
          - HostEntry with no aliases; addresses deduplicated in row order.
        """

        rows = list(infos)
        canonical = ""
        for row in rows:
            if row[3]:
                canonical = row[3]
                break
        addresses = [row[4][0] for row in rows if row[4]]
        return cls(name=canonical or fallback_name, addresses=tuple(addresses))

    def first_address(self) -> Optional[IPAddress]:
        return self.addresses[0] if self.addresses else None

    def to_dict(self) -> Dict[str, Any]:
        """Brief: Plain mapping suitable for YAML/JSON output.

        Inputs:
          - None.

        Outputs:
          - dict with name, aliases and addresses (addresses as strings).
        """

        return {
            "name": self.name,
            "aliases": list(self.aliases),
            "addresses": [str(a) for a in self.addresses],
        }
