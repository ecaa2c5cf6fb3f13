"""
Brief: Tests for hostcache.backends.dnspython_backend with a patched dnspython resolver.

Inputs:
  - None

Outputs:
  - None
"""

from types import SimpleNamespace

import dns.exception
import dns.name
import dns.resolver
import pytest

from hostcache import errors
from hostcache.backends.base import REVERSE_NAME_FIRST
from hostcache.backends.dnspython_backend import DnspythonBackend
from hostcache.errors import BackendLookupError
from hostcache.resolver import Resolver


def _answer(canonical, addresses):
    """
    Brief: Build a minimal stand-in for dns.resolver.Answer.

    Inputs:
      - canonical: canonical name text
      - addresses: list of address strings (empty -> rrset None)

    Outputs:
      - SimpleNamespace with canonical_name and rrset
    """
    rrset = [SimpleNamespace(address=a) for a in addresses] or None
    return SimpleNamespace(canonical_name=dns.name.from_text(canonical), rrset=rrset)


@pytest.fixture
def backend():
    """
    Brief: Backend with explicit nameservers so no system resolv.conf is read.

    Inputs:
      - None

    Outputs:
      - DnspythonBackend
    """
    return DnspythonBackend(nameservers=["192.0.2.53"], lifetime=1.5)


def test_construction_applies_options(backend):
    """
    Brief: nameservers and lifetime end up on the dnspython resolver.

    Inputs:
      - backend fixture

    Outputs:
      - None: Asserts resolver settings and reverse mode
    """
    assert [str(ns) for ns in backend._resolver.nameservers] == ["192.0.2.53"]
    assert backend._resolver.lifetime == 1.5
    assert backend.reverse_mode == REVERSE_NAME_FIRST


def test_forward_collects_a_and_aaaa_with_cname_alias(backend, monkeypatch):
    """
    Brief: A and AAAA answers are merged; the queried name becomes an alias of the canonical name.

    Inputs:
      - patched resolve() returning answers for a CNAME'd name

    Outputs:
      - None: Asserts name, alias and address order
    """
    answers = {
        "A": _answer("real.example.test.", ["192.0.2.8"]),
        "AAAA": _answer("real.example.test.", ["2001:db8::8"]),
    }
    queried = []

    def fake_resolve(qname, rdtype, raise_on_no_answer=True):
        queried.append((qname, rdtype, raise_on_no_answer))
        return answers[rdtype]

    monkeypatch.setattr(backend._resolver, "resolve", fake_resolve)
    entry = backend.forward("www.example.test")
    assert queried == [("www.example.test", "A", False), ("www.example.test", "AAAA", False)]
    assert entry.name == "real.example.test"
    assert entry.aliases == ("www.example.test",)
    assert [str(a) for a in entry.addresses] == ["192.0.2.8", "2001:db8::8"]


def test_forward_without_records_is_no_data(backend, monkeypatch):
    """
    Brief: A name with neither A nor AAAA records fails with NO_DATA.

    Inputs:
      - patched resolve() returning empty answers

    Outputs:
      - None: Asserts code
    """
    monkeypatch.setattr(
        backend._resolver,
        "resolve",
        lambda qname, rdtype, raise_on_no_answer=True: _answer("empty.test.", []),
    )
    with pytest.raises(BackendLookupError) as info:
        backend.forward("empty.test")
    assert info.value.code == errors.NO_DATA


@pytest.mark.parametrize(
    "exc,code",
    [
        (dns.resolver.NXDOMAIN(), errors.HOST_NOT_FOUND),
        (dns.resolver.NoAnswer(), errors.NO_DATA),
        (dns.exception.Timeout(), errors.TRY_AGAIN),
        (dns.resolver.NoNameservers(), errors.TRY_AGAIN),
        (dns.resolver.YXDOMAIN(), errors.NO_RECOVERY),
    ],
)
def test_forward_maps_dnspython_exceptions(backend, monkeypatch, exc, code):
    """
    Brief: dnspython exceptions map to the matching h_errno codes.

    Inputs:
      - exc: exception raised by resolve()
      - code: expected code

    Outputs:
      - None: Asserts code
    """

    def fake_resolve(qname, rdtype, raise_on_no_answer=True):
        raise exc

    monkeypatch.setattr(backend._resolver, "resolve", fake_resolve)
    with pytest.raises(BackendLookupError) as info:
        backend.forward("any.test")
    assert info.value.code == code


def test_reverse_name_queries_ptr(backend, monkeypatch):
    """
    Brief: reverse_name builds the in-addr.arpa name and returns the PTR target without final dot.

    Inputs:
      - patched resolve() answering PTR

    Outputs:
      - None: Asserts query name and returned host
    """
    seen = []

    def fake_resolve(qname, rdtype, raise_on_no_answer=True):
        seen.append((qname.to_text(), rdtype))
        return [SimpleNamespace(target=dns.name.from_text("ptr.example.test."))]

    monkeypatch.setattr(backend._resolver, "resolve", fake_resolve)
    import ipaddress

    assert backend.reverse_name(ipaddress.ip_address("192.0.2.44")) == "ptr.example.test"
    assert seen == [("44.2.0.192.in-addr.arpa.", "PTR")]


def test_resolver_reverse_flow_with_dnspython(backend, monkeypatch):
    """
    Brief: Resolver.resolve on an address goes PTR then forward and caches under the PTR name.

    Inputs:
      - patched resolve() answering PTR, A and AAAA

    Outputs:
      - None: Asserts entry and cache key
    """

    def fake_resolve(qname, rdtype, raise_on_no_answer=True):
        if rdtype == "PTR":
            return [SimpleNamespace(target=dns.name.from_text("mail.example.test."))]
        if rdtype == "A":
            return _answer("mail.example.test.", ["192.0.2.25"])
        return _answer("mail.example.test.", [])

    monkeypatch.setattr(backend._resolver, "resolve", fake_resolve)
    r = Resolver(backend=backend)
    entry = r.resolve("192.0.2.25")
    assert entry.name == "mail.example.test"
    assert r.cache.keys() == ["mail.example.test"]
