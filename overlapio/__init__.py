"""Overlapped, event-signalled scatter/gather I/O on non-blocking sockets, with a demo command."""

__version__ = "0.1.0"
__all__ = ["errors", "overlapped", "cli"]