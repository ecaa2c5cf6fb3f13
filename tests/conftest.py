"""
Brief: Global pytest configuration: src on sys.path, per-test 10s timeout,
and a fresh process-wide resolver for every test.

Inputs:
  - None

Outputs:
  - None
"""

import os
import signal
import sys
import threading

import pytest

# Ensure 'src' is on sys.path so 'hostcache' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from hostcache.backends.base import REVERSE_DIRECT, ResolverBackend  # noqa: E402
from hostcache.errors import BackendLookupError  # noqa: E402
from hostcache.host_entry import HostEntry  # noqa: E402


def _alarm_handler(signum, frame):
    """
    Brief: Signal handler that raises TimeoutError when alarm triggers.

    Inputs:
      - signum: signal number (int)
      - frame: current frame (ignored)

    Outputs:
      - None: Raises TimeoutError to fail the test
    """
    raise TimeoutError("Test exceeded 10 seconds")


if hasattr(signal, "SIGALRM"):
    signal.signal(signal.SIGALRM, _alarm_handler)


class FakeBackend(ResolverBackend):
    """
    Brief: Scriptable backend recording every call.

    Inputs:
      - forward_map: name -> HostEntry, or int error code to fail with.
      - reverse_map: address string -> HostEntry (direct) or fqdn str
        (name_first), or int error code.
      - reverse_mode: "direct" or "name_first".
      - hostname: value returned by host_name(); an exception instance is raised.

    Outputs:
      - FakeBackend instance with ``calls`` list of (method, arg) tuples.
    """

    def __init__(
        self,
        forward_map=None,
        reverse_map=None,
        reverse_mode=REVERSE_DIRECT,
        hostname="testhost",
        delay_event=None,
    ):
        self.forward_map = dict(forward_map or {})
        self.reverse_map = dict(reverse_map or {})
        self.reverse_mode = reverse_mode
        self.hostname = hostname
        self.delay_event = delay_event
        self.calls = []
        self._calls_lock = threading.Lock()

    def _record(self, method, arg):
        with self._calls_lock:
            self.calls.append((method, arg))

    def count(self, method):
        with self._calls_lock:
            return sum(1 for m, _ in self.calls if m == method)

    def _answer(self, table, key):
        if self.delay_event is not None:
            self.delay_event.wait(5)
        value = table.get(key, 1)
        if isinstance(value, int):
            raise BackendLookupError(value, f"fake failure for {key}")
        return value

    def forward(self, name):
        self._record("forward", name)
        return self._answer(self.forward_map, name)

    def reverse(self, address):
        self._record("reverse", str(address))
        return self._answer(self.reverse_map, str(address))

    def reverse_name(self, address):
        self._record("reverse_name", str(address))
        return self._answer(self.reverse_map, str(address))

    def host_name(self):
        self._record("host_name", None)
        if isinstance(self.hostname, BaseException):
            raise self.hostname
        return self.hostname


@pytest.fixture
def localhost_entry():
    """
    Brief: HostEntry for localhost with a single loopback address.

    Inputs:
      - None

    Outputs:
      - HostEntry
    """
    return HostEntry(name="localhost", aliases=(), addresses=("127.0.0.1",))


@pytest.fixture
def fake_backend_cls():
    """
    Brief: Expose FakeBackend to test modules without importing conftest.

    Inputs:
      - None

    Outputs:
      - FakeBackend class
    """
    return FakeBackend


@pytest.fixture(autouse=True)
def reset_default_resolver():
    """
    Brief: Drop the process-wide resolver between tests to avoid cross-test interference.

    Inputs:
      - None

    Outputs:
      - None
    """
    from hostcache.resolver import set_resolver

    set_resolver(None)
    yield
    set_resolver(None)


@pytest.fixture(autouse=True)
def enforce_test_timeout():
    """
    Brief: Enforce a hard 10-second timeout for each test.

    Inputs:
      - None

    Outputs:
      - None: Cancels alarm after test
    """
    if hasattr(signal, "SIGALRM"):
        signal.alarm(10)
        try:
            yield
        finally:
            signal.alarm(0)
    else:
        yield
