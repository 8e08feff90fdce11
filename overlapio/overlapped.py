"""Overlapped socket I/O with completion events on top of non-blocking sockets."""

from __future__ import annotations

import os
import select
import socket
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional, Union

from .errors import ErrorCode, IoPending, WaitResult, WinsockError, map_errno

MAX_BUFFERS = 2
MAX_OPERATIONS = 16

_READY_MASK = select.POLLIN | select.POLLERR | select.POLLHUP


class OperationType(Enum):
    SEND = "send"
    RECEIVE = "receive"


class Event:
    """A manual completion event that can be polled through its file descriptor."""

    def __init__(self) -> None:
        read_fd, write_fd = os.pipe()
        os.set_blocking(read_fd, False)
        os.set_blocking(write_fd, False)
        self._read_fd: Optional[int] = read_fd
        self._write_fd: Optional[int] = write_fd
        self.operation: Optional[Operation] = None

    @property
    def closed(self) -> bool:
        return self._read_fd is None

    def signal(self) -> None:
        """Mark the event as signalled."""
        if self._write_fd is None:
            raise ValueError("event is closed")
        try:
            os.write(self._write_fd, b"\x01")
        except BlockingIOError:
            pass  # the pipe is full, so the event is signalled already

    def clear(self) -> bool:
        """Reset the event; return whether it was signalled."""
        if self._read_fd is None:
            raise ValueError("event is closed")
        drained = False
        while True:
            try:
                chunk = os.read(self._read_fd, 4096)
            except BlockingIOError:
                return drained
            if not chunk:
                return drained
            drained = True

    def fileno(self) -> int:
        return -1 if self._read_fd is None else self._read_fd

    def close(self) -> None:
        """Release the descriptors and forget the attached operation."""
        self.operation = None
        for fd in (self._read_fd, self._write_fd):
            if fd is not None:
                os.close(fd)
        self._read_fd = None
        self._write_fd = None

    def __enter__(self) -> "Event":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


@dataclass
class Overlapped:
    """Caller-owned state of one overlapped operation."""

    event: Optional[Event] = None
    internal: int = 0
    internal_high: int = 0
    offset: int = 0
    offset_high: int = 0


@dataclass(eq=False)
class Operation:
    """Progress of a send or receive spread over up to MAX_BUFFERS buffers."""

    sock: socket.socket
    op_type: OperationType
    buffers: List[Any]
    overlapped: Overlapped
    bytes_transferred: int = 0
    current_buffer: int = 0
    offset: int = 0
    error_code: int = 0
    complete: bool = False
    _sizes: List[int] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        self._sizes = [memoryview(buf).nbytes for buf in self.buffers]

    def _remaining(self) -> List[memoryview]:
        views = [memoryview(buf).cast("B") for buf in self.buffers[self.current_buffer:]]
        if views and self.offset:
            views[0] = views[0][self.offset:]
        return views

    def _consume(self, count: int) -> None:
        while count and self.current_buffer < len(self.buffers):
            left = self._sizes[self.current_buffer] - self.offset
            if count >= left:
                self.current_buffer += 1
                self.offset = 0
                count -= left
            else:
                self.offset += count
                count = 0


SocketLike = Union[socket.socket, int]


def set_non_blocking(sock: SocketLike) -> None:
    """Switch a socket object or raw descriptor to non-blocking mode."""
    try:
        if isinstance(sock, int):
            os.set_blocking(sock, False)
        else:
            sock.setblocking(False)
    except OSError as exc:
        raise WinsockError(map_errno(exc.errno)) from exc


def _transfer(sock: socket.socket, op_type: OperationType, views: List[memoryview]) -> int:
    if op_type is OperationType.RECEIVE:
        return sock.recvmsg_into(views, 0, socket.MSG_DONTWAIT)[0]
    return sock.sendmsg(views, (), socket.MSG_DONTWAIT)


def _start(
    sock: socket.socket,
    buffers: Iterable[Any],
    overlapped: Optional[Overlapped],
    op_type: OperationType,
) -> int:
    buffers = list(buffers) if buffers is not None else []
    if (
        not buffers
        or len(buffers) > MAX_BUFFERS
        or overlapped is None
        or overlapped.event is None
    ):
        raise WinsockError(ErrorCode.WSAEINVAL)
    if op_type is OperationType.RECEIVE and any(memoryview(b).readonly for b in buffers):
        raise WinsockError(ErrorCode.WSAEINVAL)

    event = overlapped.event
    previous = event.operation
    if previous is not None and not previous.complete:
        raise WinsockError(ErrorCode.WSAEINVAL)

    operation = Operation(sock=sock, op_type=op_type, buffers=buffers, overlapped=overlapped)
    event.operation = operation
    overlapped.internal = 0
    overlapped.internal_high = 0
    overlapped.offset = 0
    overlapped.offset_high = 0

    try:
        count = _transfer(sock, op_type, operation._remaining())
    except BlockingIOError:
        operation.error_code = ErrorCode.WSA_IO_PENDING
        raise IoPending(0) from None
    except OSError as exc:
        event.operation = None
        raise WinsockError(map_errno(exc.errno)) from exc

    overlapped.internal_high = count
    operation.bytes_transferred = count
    operation.complete = True
    event.signal()
    return count


def wsa_send(sock: socket.socket, buffers: Iterable[Any], overlapped: Overlapped) -> int:
    """Start a gathered send; return bytes sent or raise IoPending if it must wait."""
    return _start(sock, buffers, overlapped, OperationType.SEND)


def wsa_recv(sock: socket.socket, buffers: Iterable[Any], overlapped: Overlapped) -> int:
    """Start a scattered receive; return bytes received or raise IoPending if it must wait."""
    return _start(sock, buffers, overlapped, OperationType.RECEIVE)


def _advance(operation: Operation, sock: socket.socket, wait: bool) -> bool:
    """Push a pending operation forward; return whether it finished successfully."""
    if operation.complete:
        return not operation.error_code

    poller = select.poll()
    poller.register(
        sock, select.POLLIN if operation.op_type is OperationType.RECEIVE else select.POLLOUT
    )
    try:
        ready = poller.poll(None if wait else 0)
    except OSError as exc:
        operation.error_code = map_errno(exc.errno)
        return False
    if not ready:
        operation.error_code = ErrorCode.WSAEWOULDBLOCK
        return False

    try:
        count = _transfer(sock, operation.op_type, operation._remaining())
    except BlockingIOError:
        operation.error_code = ErrorCode.WSAEWOULDBLOCK
        return False
    except OSError as exc:
        operation.error_code = map_errno(exc.errno)
        operation.complete = True
        return False

    operation.error_code = 0
    operation.bytes_transferred += count
    operation._consume(count)

    if operation.current_buffer >= len(operation.buffers) or (
        operation.op_type is OperationType.RECEIVE and count == 0
    ):
        operation.complete = True
        operation.overlapped.event.signal()
    return operation.complete


def get_overlapped_result(sock: socket.socket, overlapped: Overlapped, wait: bool = False) -> int:
    """Return the total bytes of a finished operation, driving it forward if needed.

    Raises WinsockError when the operation failed or the socket is not ready,
    and IoPending when progress was made but the operation is still unfinished.
    """
    event = overlapped.event if overlapped is not None else None
    operation = event.operation if event is not None else None
    if operation is None:
        raise WinsockError(ErrorCode.WSAEINVAL)
    if _advance(operation, sock, wait):
        return operation.bytes_transferred
    if operation.error_code:
        raise WinsockError(operation.error_code)
    raise IoPending(operation.bytes_transferred)


def wait_for_multiple_events(
    events: Iterable[Event], wait_all: bool = False, timeout_ms: Optional[int] = None
) -> int:
    """Wait for signalled events and complete their operations.

    Returns WaitResult.OBJECT_0 plus the number of completions minus one,
    WaitResult.TIMEOUT when nothing became ready in time, or
    WaitResult.FAILED when there was nothing left to wait for.
    """
    events = list(events) if events is not None else []
    if not events or len(events) > MAX_OPERATIONS:
        raise WinsockError(ErrorCode.WSAEINVAL)

    active = {}
    poller = select.poll()
    for event in events:
        operation = event.operation
        if operation is None or operation.complete:
            continue
        active[event.fileno()] = event
        poller.register(event.fileno(), select.POLLIN)

    completed = 0
    while active:
        try:
            ready = poller.poll(timeout_ms)
        except OSError as exc:
            raise WinsockError(map_errno(exc.errno)) from exc
        if not ready:
            return WaitResult.TIMEOUT

        ready_fds = {fd for fd, mask in ready if mask & _READY_MASK}
        for fd in [fd for fd in active if fd in ready_fds]:
            event = active[fd]
            operation = event.operation
            if operation is None:
                continue
            finished = _advance(operation, operation.sock, False)
            if not finished and operation.error_code not in (0, ErrorCode.WSAEWOULDBLOCK):
                operation.complete = True
            if operation.complete:
                completed += 1
                event.clear()
                poller.unregister(fd)
                del active[fd]
                if not wait_all:
                    return int(WaitResult.OBJECT_0) + completed - 1

        if wait_all and completed == len(events):
            return WaitResult.OBJECT_0

    if completed == 0:
        return WaitResult.FAILED
    return int(WaitResult.OBJECT_0) + completed - 1