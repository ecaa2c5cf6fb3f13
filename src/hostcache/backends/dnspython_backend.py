from __future__ import annotations

import logging
from typing import List, Optional

import dns.exception
import dns.name
import dns.resolver
import dns.reversename

from ..errors import (
    HOST_NOT_FOUND,
    NO_DATA,
    NO_RECOVERY,
    TRY_AGAIN,
    BackendLookupError,
)
from ..host_entry import HostEntry, IPAddress
from .base import REVERSE_NAME_FIRST, ResolverBackend, backend_aliases

logger = logging.getLogger(__name__)


def _code_for(exc: dns.exception.DNSException) -> int:
    """Brief: Map a dnspython exception onto the matching h_errno code.

    Inputs:
      - exc: dnspython exception raised by a query.

    Outputs:
      - int h_errno style code.
    """

    if isinstance(exc, dns.resolver.NXDOMAIN):
        return HOST_NOT_FOUND
    if isinstance(exc, dns.resolver.NoAnswer):
        return NO_DATA
    if isinstance(exc, (dns.exception.Timeout, dns.resolver.NoNameservers)):
        return TRY_AGAIN
    return NO_RECOVERY


@backend_aliases("dnspython", "dns")
class DnspythonBackend(ResolverBackend):
    """Backend that queries DNS servers directly through dnspython.

    Brief:
      Forward lookups ask for A and AAAA records; the answer's canonical name
      becomes the entry name and the queried name becomes an alias when a
      CNAME chain was followed. Reverse lookups always go through a PTR query
      for the in-addr.arpa/ip6.arpa name ("name_first").

    Inputs:
      - **config:
          - nameservers: Optional list of server addresses; defaults to the
            system resolver configuration.
          - lifetime: Optional float seconds for each query.

    Outputs:
      - DnspythonBackend instance.
    """

    reverse_mode = REVERSE_NAME_FIRST

    def __init__(self, **config: object) -> None:
        nameservers = config.get("nameservers")
        if nameservers:
            self._resolver = dns.resolver.Resolver(configure=False)
            self._resolver.nameservers = [str(ns) for ns in nameservers]  # type: ignore[union-attr]
        else:
            self._resolver = dns.resolver.Resolver(configure=True)
        lifetime = config.get("lifetime")
        if lifetime is not None:
            self._resolver.lifetime = float(lifetime)  # type: ignore[arg-type]

    def _query(self, qname: str | dns.name.Name, rdtype: str) -> dns.resolver.Answer:
        return self._resolver.resolve(qname, rdtype, raise_on_no_answer=False)

    def forward(self, name: str) -> HostEntry:
        canonical: Optional[str] = None
        addresses: List[str] = []
        try:
            for rdtype in ("A", "AAAA"):
                answer = self._query(name, rdtype)
                if canonical is None:
                    canonical = answer.canonical_name.to_text(omit_final_dot=True)
                if answer.rrset is not None:
                    addresses.extend(rdata.address for rdata in answer.rrset)
        except dns.exception.DNSException as exc:
            logger.debug("dnspython forward lookup for %s failed: %r", name, exc)
            raise BackendLookupError(_code_for(exc), str(exc)) from exc

        if not addresses:
            raise BackendLookupError(NO_DATA, f"no A/AAAA records for {name}")

        canonical = canonical or name.rstrip(".")
        queried = name.rstrip(".")
        aliases = [queried] if queried.lower() != canonical.lower() else []
        return HostEntry(name=canonical, aliases=tuple(aliases), addresses=tuple(addresses))

    def reverse_name(self, address: IPAddress) -> str:
        try:
            rev = dns.reversename.from_address(str(address))
            answer = self._resolver.resolve(rev, "PTR")
        except dns.exception.DNSException as exc:
            logger.debug("dnspython PTR lookup for %s failed: %r", address, exc)
            raise BackendLookupError(_code_for(exc), str(exc)) from exc
        return answer[0].target.to_text(omit_final_dot=True)
