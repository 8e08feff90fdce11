"""Command that sends and receives over two loopback connections with overlapped I/O."""

from __future__ import annotations

import argparse
import errno
import socket
from contextlib import ExitStack
from typing import List, Optional, Sequence

from .errors import ErrorCode, IoPending, WaitResult, WinsockError, map_errno
from .overlapped import (
    Event,
    OperationType,
    Overlapped,
    get_overlapped_result,
    set_non_blocking,
    wait_for_multiple_events,
    wsa_recv,
    wsa_send,
)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_TIMEOUT_MS = 5000

SEND_PARTS = (b"Hello, ", b"Unix!")
RECV_SIZE = 32


def _c_string(data: bytes) -> str:
    """Text up to the first NUL byte, as a C string would be printed."""
    return data.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def _collect(events: List[Event], storage: bytearray, timeout_ms: int) -> List[str]:
    half = len(storage) // 2
    try:
        result = wait_for_multiple_events(events, False, timeout_ms)
    except WinsockError as exc:
        return [f"WaitForMultipleEvents failed: {exc.code}"]
    if result == WaitResult.TIMEOUT:
        return ["WaitForMultipleEvents timed out"]
    if result == WaitResult.FAILED:
        return [f"WaitForMultipleEvents failed: {int(ErrorCode.WSAEINVAL)}"]

    lines: List[str] = []
    completed = 0
    for event in events:
        operation = event.operation
        if operation is None or operation.complete:
            completed += 1
            continue
        try:
            get_overlapped_result(operation.sock, operation.overlapped, False)
        except WinsockError:
            if operation.error_code:
                operation.complete = True
        if operation.complete:
            completed += 1
            kind = "Send" if operation.op_type is OperationType.SEND else "Receive"
            lines.append(
                f"{kind} operation: {operation.bytes_transferred} bytes transferred, "
                f"error: {int(operation.error_code)}"
            )
            if operation.op_type is OperationType.RECEIVE:
                lines.append(f"Buffer 1: {_c_string(bytes(storage))}")
                lines.append(f"Buffer 2: {_c_string(bytes(storage[half:]))}")
    lines.append(f"Completed {completed} operations")
    return lines


def _exchange(send_sock: socket.socket, recv_sock: socket.socket, timeout_ms: int) -> List[str]:
    """Start a gathered send and a scattered receive, wait for either, report results."""
    with Event() as send_event, Event() as recv_event:
        send_ovl = Overlapped(event=send_event)
        try:
            wsa_send(send_sock, list(SEND_PARTS), send_ovl)
        except IoPending:
            pass
        except WinsockError as exc:
            raise WinsockError(exc.code, "WSASend failed") from exc

        storage = bytearray(RECV_SIZE)
        view = memoryview(storage)
        half = RECV_SIZE // 2
        recv_ovl = Overlapped(event=recv_event)
        try:
            wsa_recv(recv_sock, [view[:half], view[half:]], recv_ovl)
        except IoPending:
            pass
        except WinsockError as exc:
            raise WinsockError(exc.code, "WSARecv failed") from exc

        return _collect([send_event, recv_event], storage, timeout_ms)


def run_demo(
    host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, timeout_ms: int = DEFAULT_TIMEOUT_MS
) -> List[str]:
    """Connect two sockets to host:port, send on one, receive on the other.

    Returns the report lines. Raises WinsockError whose strerror names the
    step that failed during setup.
    """
    with ExitStack() as stack:
        socks: List[socket.socket] = []
        for _ in range(2):
            try:
                sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            except OSError as exc:
                raise WinsockError(map_errno(exc.errno or errno.EINVAL), "socket failed") from exc
            stack.enter_context(sock)
            socks.append(sock)

        for sock in socks:
            try:
                set_non_blocking(sock)
            except WinsockError as exc:
                raise WinsockError(exc.code, "fcntl failed") from exc

        try:
            socket.inet_pton(socket.AF_INET, host)
        except OSError as exc:
            raise WinsockError(ErrorCode.WSAEINVAL, "inet_pton failed") from exc

        for name, sock in zip(("sock1", "sock2"), socks):
            rc = sock.connect_ex((host, port))
            if rc not in (0, errno.EINPROGRESS):
                raise WinsockError(map_errno(rc), f"connect {name} failed")

        return _exchange(socks[0], socks[1], timeout_ms)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="overlapio", description="Run an overlapped send/receive over two TCP connections."
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="IPv4 address to connect to")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="TCP port to connect to")
    parser.add_argument(
        "--timeout", type=int, default=DEFAULT_TIMEOUT_MS, help="wait timeout in milliseconds"
    )
    args = parser.parse_args(argv)

    try:
        lines = run_demo(args.host, args.port, args.timeout)
    except WinsockError as exc:
        print(f"{exc.strerror}: {exc.code}")
        return 1
    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())