"""Typed resolver errors and platform error-code translation.

Brief:
  Resolver backends report failures as small integer codes taken from the
  platform resolver (h_errno values, Winsock codes, or getaddrinfo EAI_*
  constants). This module maps those codes onto a stable set of exception
  classes callers can catch.

Inputs:
  - Raw integer codes plus the hostname/address string being resolved.

Outputs:
  - ResolverError subclasses.
"""

from __future__ import annotations

import socket
from typing import Dict, Optional, Type

# h_errno values from <netdb.h>.
HOST_NOT_FOUND = 1
TRY_AGAIN = 2
NO_RECOVERY = 3
NO_DATA = 4

# Winsock equivalents.
WSASYSNOTREADY = 10091
WSANOTINITIALISED = 10093
WSAHOST_NOT_FOUND = 11001
WSATRY_AGAIN = 11002
WSANO_RECOVERY = 11003
WSANO_DATA = 11004


class ResolverError(OSError):
    """Base class for every resolution failure.

    Inputs:
      - message: Human readable description.
      - subject: Hostname or address display string being resolved.
      - code: Raw platform code when one was reported.

    Outputs:
      - ResolverError instance.
    """

    default_message = "Resolver error"
    retryable = False

    def __init__(
        self,
        message: Optional[str] = None,
        subject: Optional[str] = None,
        code: Optional[int] = None,
    ) -> None:
        self.message = message or self.default_message
        self.subject = subject
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.subject:
            return f"{self.message}: {self.subject}"
        return self.message


class SubsystemNotReadyError(ResolverError):
    default_message = "Net subsystem not ready"


class SubsystemNotInitializedError(ResolverError):
    default_message = "Net subsystem not initialized"


class HostNotFoundError(ResolverError):
    default_message = "Host not found"


class TemporaryDNSError(ResolverError):
    default_message = "Temporary DNS error while resolving"
    retryable = True


class NonRecoverableDNSError(ResolverError):
    default_message = "Non recoverable DNS error while resolving"


class NoAddressFoundError(ResolverError):
    default_message = "No address found"


class GenericIOError(ResolverError):
    """Fallback for codes outside the known table; the message is the code."""

    default_message = "I/O error"


class LocalHostUnavailableError(ResolverError):
    default_message = "Cannot get host name"


class BackendLookupError(Exception):
    """Raised by backends to hand a raw platform code to the resolver.

    Inputs:
      - code: Raw platform error code.
      - detail: Optional backend-specific description, kept for debug logs.

    Outputs:
      - BackendLookupError instance.
    """

    def __init__(self, code: int, detail: Optional[str] = None) -> None:
        self.code = int(code)
        self.detail = detail
        super().__init__(detail or f"resolver error code {self.code}")


ERROR_CODE_TABLE: Dict[int, Type[ResolverError]] = {
    WSASYSNOTREADY: SubsystemNotReadyError,
    WSANOTINITIALISED: SubsystemNotInitializedError,
    HOST_NOT_FOUND: HostNotFoundError,
    WSAHOST_NOT_FOUND: HostNotFoundError,
    TRY_AGAIN: TemporaryDNSError,
    WSATRY_AGAIN: TemporaryDNSError,
    NO_RECOVERY: NonRecoverableDNSError,
    WSANO_RECOVERY: NonRecoverableDNSError,
    NO_DATA: NoAddressFoundError,
    WSANO_DATA: NoAddressFoundError,
}


def _build_eai_table() -> Dict[int, int]:
    # getaddrinfo codes differ per platform, some are missing entirely, and
    # on BSD/macOS they overlap the h_errno values numerically.
    names = (
        ("EAI_NONAME", HOST_NOT_FOUND),
        ("EAI_AGAIN", TRY_AGAIN),
        ("EAI_FAIL", NO_RECOVERY),
        ("EAI_NODATA", NO_DATA),
        ("EAI_ADDRFAMILY", NO_DATA),
    )
    table: Dict[int, int] = {}
    for name, h_code in names:
        value = getattr(socket, name, None)
        if isinstance(value, int):
            table.setdefault(value, h_code)
    return table


EAI_TO_H_ERRNO: Dict[int, int] = _build_eai_table()


def error_class_for_code(code: int) -> Type[ResolverError]:
    """Brief: Return the exception class a platform code maps to.

    Inputs:
      - code: Raw platform error code.

    Outputs:
      - ResolverError subclass; GenericIOError for unknown codes.
    """

    return ERROR_CODE_TABLE.get(code, GenericIOError)


def translate_error(code: int, subject: Optional[str] = None) -> ResolverError:
    """Brief: Build the typed error for a failed resolution.

    Inputs:
      - code: Raw platform error code.
      - subject: Hostname or address string that failed to resolve.

    Outputs:
      - ResolverError instance (never raises itself).

    Example:
      >>> err = translate_error(1, "nowhere.test")
      >>> type(err).__name__, str(err)
      ('HostNotFoundError', 'Host not found: nowhere.test')
      >>> translate_error(424242).message
      '424242'
    """

    try:
        code_int = int(code)
    except (TypeError, ValueError):
        return GenericIOError(str(code), subject=subject, code=None)

    cls = error_class_for_code(code_int)
    if cls is GenericIOError:
        return GenericIOError(str(code_int), subject=subject, code=code_int)
    return cls(subject=subject, code=code_int)


def raise_for_code(code: int, subject: Optional[str] = None) -> None:
    """Brief: Raise the typed error for a platform code.

    Inputs:
      - code: Raw platform error code.
      - subject: Hostname or address string.

    Outputs:
      - Never returns; always raises a ResolverError subclass.
    """

    raise translate_error(code, subject)


def code_from_socket_error(exc: OSError) -> int:
    """Brief: Extract the platform code carried by a socket exception.

    Inputs:
      - exc: socket.gaierror, socket.herror, or another OSError.

    Outputs:
      - int code. getaddrinfo (EAI_*) codes are normalized to their h_errno
        equivalent; unknown EAI codes pass through unchanged. Exceptions
        without an errno fall back to HOST_NOT_FOUND for socket.herror and
        socket.gaierror, and to NO_RECOVERY otherwise.
    """

    errno = getattr(exc, "errno", None)
    if isinstance(errno, int):
        if isinstance(exc, socket.gaierror):
            return EAI_TO_H_ERRNO.get(errno, errno)
        return errno
    if isinstance(exc, (socket.herror, socket.gaierror)):
        return HOST_NOT_FOUND
    return NO_RECOVERY
