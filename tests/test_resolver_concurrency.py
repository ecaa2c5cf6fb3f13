"""
Brief: Concurrency tests for hostcache.resolver.Resolver locking modes.

Inputs:
  - None

Outputs:
  - None
"""

import threading
import time

import pytest

from hostcache import errors
from hostcache.backends.base import REVERSE_NAME_FIRST, ResolverBackend
from hostcache.errors import HostNotFoundError
from hostcache.host_entry import HostEntry
from hostcache.resolver import Resolver


class _SlowBackend(ResolverBackend):
    """
    Brief: Backend that tracks how many forward calls overlap in time.

    Inputs:
      - delay: seconds each forward call sleeps
      - fail: names that fail with HOST_NOT_FOUND

    Outputs:
      - _SlowBackend instance
    """

    def __init__(self, delay=0.05, fail=()):
        self.delay = delay
        self.fail = set(fail)
        self.active = 0
        self.max_active = 0
        self.calls = []
        self._lock = threading.Lock()

    def forward(self, name):
        with self._lock:
            self.calls.append(name)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.delay)
            if name in self.fail:
                raise errors.BackendLookupError(errors.HOST_NOT_FOUND)
            return HostEntry(name, (), ("192.0.2.1",))
        finally:
            with self._lock:
                self.active -= 1


def _run_threads(target, args_list):
    results = [None] * len(args_list)
    failures = [None] * len(args_list)
    barrier = threading.Barrier(len(args_list))

    def wrapper(i, args):
        barrier.wait()
        try:
            results[i] = target(*args)
        except Exception as exc:  # collected for assertions
            failures[i] = exc

    threads = [
        threading.Thread(target=wrapper, args=(i, a)) for i, a in enumerate(args_list)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, failures


@pytest.mark.parametrize("serialize", [True, False], ids=["serialized", "per_key"])
def test_same_key_resolved_once_and_shared(serialize):
    """
    Brief: Concurrent lookups of one name make one backend call and share the stored entry.

    Inputs:
      - 8 threads resolving the same host name

    Outputs:
      - None: Asserts one call and identical results
    """
    backend = _SlowBackend(delay=0.2)
    r = Resolver(backend=backend, serialize_lookups=serialize)
    results, failures = _run_threads(r.host_by_name, [("same.test",)] * 8)

    assert failures == [None] * 8
    assert backend.calls == ["same.test"]
    assert all(res is results[0] for res in results)
    assert r.cache.lookup("same.test") is results[0]


def test_serialized_mode_allows_one_call_in_flight():
    """
    Brief: With serialize_lookups the backend never sees overlapping calls.

    Inputs:
      - 6 threads resolving distinct names

    Outputs:
      - None: Asserts max concurrency of one
    """
    backend = _SlowBackend(delay=0.02)
    r = Resolver(backend=backend, serialize_lookups=True)
    _run_threads(r.host_by_name, [(f"h{i}.test",) for i in range(6)])
    assert backend.max_active == 1
    assert len(r.cache) == 6


def test_per_key_mode_overlaps_distinct_keys():
    """
    Brief: Without serialization, unrelated names resolve concurrently.

    Inputs:
      - 6 threads resolving distinct names with a slow backend

    Outputs:
      - None: Asserts overlapping backend calls
    """
    backend = _SlowBackend(delay=0.2)
    r = Resolver(backend=backend, serialize_lookups=False)
    _run_threads(r.host_by_name, [(f"h{i}.test",) for i in range(6)])
    assert backend.max_active > 1
    assert sorted(r.cache.keys()) == sorted(f"h{i}.test" for i in range(6))


def test_per_key_mode_propagates_failure_to_waiters():
    """
    Brief: When the in-flight lookup fails every waiter sees the typed error.

    Inputs:
      - 4 threads resolving a failing name

    Outputs:
      - None: Asserts one backend call, all HostNotFoundError, nothing cached
    """
    backend = _SlowBackend(delay=0.2, fail={"bad.test"})
    r = Resolver(backend=backend, serialize_lookups=False)
    _, failures = _run_threads(r.host_by_name, [("bad.test",)] * 4)

    assert all(isinstance(f, HostNotFoundError) for f in failures)
    assert len({id(f) for f in failures}) == 4
    assert backend.calls == ["bad.test"]
    assert len(r.cache) == 0
    assert r._inflight == {}


class _NameFirstSlowBackend(_SlowBackend):
    """
    Brief: Slow backend whose reverse step maps every address to one name.

    Inputs:
      - ptr: name returned by reverse_name

    Outputs:
      - _NameFirstSlowBackend instance
    """

    reverse_mode = REVERSE_NAME_FIRST

    def __init__(self, ptr, **kwargs):
        super().__init__(**kwargs)
        self.ptr = ptr

    def reverse_name(self, address):
        return self.ptr


def test_per_key_waiters_get_error_for_their_own_query():
    """
    Brief: A name lookup sharing an in-flight reverse lookup reports the name, not the address.

    Inputs:
      - one thread resolving an address whose PTR name fails forward,
        one thread resolving that name directly

    Outputs:
      - None: Asserts each error carries its caller's subject and is a separate object
    """
    backend = _NameFirstSlowBackend("ptr.test", delay=0.2, fail={"ptr.test"})
    r = Resolver(backend=backend, serialize_lookups=False)
    _, failures = _run_threads(
        lambda fn, arg: fn(arg),
        [(r.host_by_address, "192.0.2.9"), (r.host_by_name, "ptr.test")],
    )

    assert all(isinstance(f, HostNotFoundError) for f in failures)
    assert failures[0].subject == "192.0.2.9"
    assert failures[1].subject == "ptr.test"
    assert failures[0] is not failures[1]
    assert r._inflight == {}
