"""Winsock-style error codes, wait results and the exceptions that carry them."""

from __future__ import annotations

import errno as _errno
import os
from enum import IntEnum


class ErrorCode(IntEnum):
    """Winsock error codes reported by overlapped operations."""

    WSA_IO_PENDING = 997
    WSAEINVAL = 10022
    WSAEWOULDBLOCK = 10035
    WSAETIMEDOUT = 10060
    WSAECONNREFUSED = 10061


class WaitResult(IntEnum):
    """Special results of waiting on several events."""

    OBJECT_0 = 0x00000000
    TIMEOUT = 258
    FAILED = 0xFFFFFFFF


_ERRNO_TO_WSA = {
    _errno.EAGAIN: ErrorCode.WSAEWOULDBLOCK,
    _errno.EINVAL: ErrorCode.WSAEINVAL,
    _errno.ETIMEDOUT: ErrorCode.WSAETIMEDOUT,
    _errno.ECONNREFUSED: ErrorCode.WSAECONNREFUSED,
}


def map_errno(err: int) -> int:
    """Translate a POSIX errno into its Winsock code; unknown values pass through."""
    return _ERRNO_TO_WSA.get(err, err)


def _describe(code: int) -> str:
    try:
        return ErrorCode(code).name
    except ValueError:
        return os.strerror(code)


class WinsockError(OSError):
    """An overlapped operation failed with a Winsock (or passed-through errno) code."""

    def __init__(self, code: int, message: str | None = None) -> None:
        code = int(code)
        super().__init__(code, message if message is not None else _describe(code))

    @property
    def code(self) -> int:
        return self.errno


class IoPending(WinsockError):
    """The operation was accepted but has not finished yet."""

    def __init__(self, bytes_transferred: int = 0) -> None:
        super().__init__(ErrorCode.WSA_IO_PENDING)
        self.bytes_transferred = bytes_transferred