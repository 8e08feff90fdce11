# overlapio

Overlapped socket I/O on POSIX systems, with results and error codes in the
style of Winsock. The calls are `wsa_send`, `wsa_recv`, `get_overlapped_result`
and `wait_for_multiple_events`.

A send or receive is started over one or two buffers without blocking. If it
cannot finish at once, it stays pending on an `Overlapped` record, and its
`Event` is signalled when the operation completes.

It needs `select.poll` and `socket.MSG_DONTWAIT`, so it runs on POSIX systems.

## Installation

```
pip install .
```

For development with tests:

```
pip install ".[test]"
pytest
```

## Library use

```python
import socket
from overlapio.errors import IoPending, WinsockError
from overlapio.overlapped import (
    Event, Overlapped, wsa_send, wsa_recv, get_overlapped_result,
)

a, b = socket.socketpair()
a.setblocking(False)
b.setblocking(False)

with Event() as send_event, Event() as recv_event:
    send_ovl = Overlapped(event=send_event)
    recv_ovl = Overlapped(event=recv_event)

    buffers = [bytearray(7), bytearray(5)]
    try:
        wsa_recv(b, buffers, recv_ovl)
    except IoPending:
        pass  # nothing to read yet; the receive stays pending

    wsa_send(a, [b"Hello, ", b"Unix!"], send_ovl)        # returns 12

    total = get_overlapped_result(b, recv_ovl, wait=True)  # returns 12
    # buffers == [bytearray(b"Hello, "), bytearray(b"Unix!")]
```

### `overlapio.overlapped`

- `wsa_send(sock, buffers, overlapped)` and `wsa_recv(sock, buffers, overlapped)`
  take one or two buffers (`MAX_BUFFERS`). Receive buffers must be writable.
  If the data moves at once, they return the byte count, mark the operation
  complete and signal the event. If the socket would block, they raise
  `IoPending` and leave the operation pending. Other socket errors raise
  `WinsockError`, with the code translated by `map_errno`. Invalid arguments
  raise `WinsockError` with `WSAEINVAL`. Starting a new operation on an
  `Overlapped` whose event still holds an unfinished operation also raises
  `WSAEINVAL`.
- `get_overlapped_result(sock, overlapped, wait=False)` does one more non-blocking
  transfer on a pending operation. With `wait=True` it first blocks until the
  socket is ready. It returns the total byte count once the operation is
  complete. If the socket is not ready, it raises `WinsockError` (`WSAEWOULDBLOCK`).
  If some data moved but buffers remain unfilled, it raises `IoPending`, whose
  `bytes_transferred` gives the total so far. A receive also completes when the
  peer closes the connection.
- `wait_for_multiple_events(events, wait_all=False, timeout_ms=None)` takes 1 to 16
  events (`MAX_OPERATIONS`). It polls the events whose operations are still
  pending and drives each signalled one forward. It returns `WaitResult.OBJECT_0`
  plus the number of completions minus one. It returns `WaitResult.TIMEOUT` if
  nothing became ready within `timeout_ms` (`None` waits without limit). It
  returns `WaitResult.FAILED` if no pending operation was left to wait for.
  Events are signalled only when an operation completes. So an operation that
  nobody drives forward is reported as a timeout.
- `Event` is a pollable completion flag backed by a non-blocking pipe. It has
  `signal()`, `clear()` (returns whether it was signalled), `fileno()`,
  `close()` and a `closed` property, and works as a context manager. Its
  `operation` attribute holds the `Operation` last started on it.
- `Overlapped` holds the event and the `internal`, `internal_high`, `offset`,
  `offset_high` fields. `internal_high` holds the byte count of an operation
  that completed immediately.
- `Operation` records an operation's socket, `op_type` (`OperationType.SEND` or
  `OperationType.RECEIVE`), buffers, `bytes_transferred`, `error_code` and
  `complete`.
- `set_non_blocking(sock)` puts a socket object or raw descriptor into
  non-blocking mode.

### `overlapio.errors`

- `ErrorCode` covers `WSA_IO_PENDING`, `WSAEINVAL`, `WSAEWOULDBLOCK`,
  `WSAETIMEDOUT` and `WSAECONNREFUSED`.
- `WaitResult` covers `OBJECT_0`, `TIMEOUT` and `FAILED`.
- `map_errno(err)` maps `EAGAIN`, `EINVAL`, `ETIMEDOUT` and `ECONNREFUSED` to
  their Winsock codes. Any other value is returned unchanged.
- `WinsockError` is an `OSError` whose `code` is the Winsock (or passed-through
  errno) value. `IoPending` is the `WinsockError` for `WSA_IO_PENDING`.

## Demo command

```
overlapio-demo [--host 127.0.0.1] [--port 8080] [--timeout 5000]
```

The demo connects two non-blocking TCP sockets to the given IPv4 address and
port. On the first socket it sends `"Hello, "` and `"Unix!"`. On the second it
receives into two 16-byte halves of a 32-byte buffer. It then waits up to
`--timeout` milliseconds for either operation and prints a report: one line per
completed operation, the two receive buffers, and `Completed N operations`. If
the wait times out or fails, it prints that instead. If setup fails, it prints
the failing step and its code and exits with status 1.

`run_demo(host, port, timeout_ms)` in `overlapio.cli` runs the same sequence
and returns the report lines.

## What it does not do

The package contains no listener or server. The demo only connects to a port
where something is already accepting connections.