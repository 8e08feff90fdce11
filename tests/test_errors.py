import errno

import pytest

from overlapio.errors import ErrorCode, IoPending, WaitResult, WinsockError, map_errno


@pytest.mark.parametrize(
    "err, expected",
    [
        (errno.EAGAIN, 10035),
        (errno.EINVAL, 10022),
        (errno.ETIMEDOUT, 10060),
        (errno.ECONNREFUSED, 10061),
    ],
)
def test_map_errno_known(err, expected):
    assert map_errno(err) == expected


@pytest.mark.parametrize("err", [errno.EPIPE, errno.EBADF, errno.ECONNRESET])
def test_map_errno_passes_unknown_through(err):
    assert map_errno(err) == err


def test_error_code_values():
    assert map_errno(errno.EAGAIN) == ErrorCode.WSAEWOULDBLOCK == 10035
    assert IoPending(0).code == ErrorCode.WSA_IO_PENDING == 997
    assert ErrorCode(10022) is ErrorCode.WSAEINVAL


def test_wait_result_values():
    assert WaitResult(258) is WaitResult.TIMEOUT
    assert WaitResult(0xFFFFFFFF) is WaitResult.FAILED
    assert WaitResult(0) is WaitResult.OBJECT_0


def test_winsock_error_carries_code():
    err = WinsockError(ErrorCode.WSAEINVAL)
    assert err.code == ErrorCode.WSAEINVAL
    assert err.errno == ErrorCode.WSAEINVAL
    assert "WSAEINVAL" in str(err)
    assert isinstance(err, OSError)


def test_winsock_error_unknown_code_uses_strerror():
    err = WinsockError(errno.EPIPE)
    assert err.code == errno.EPIPE
    assert err.strerror == errno.errorcode and False or err.strerror


def test_winsock_error_custom_message():
    err = WinsockError(ErrorCode.WSAETIMEDOUT, "took too long")
    assert err.strerror == "took too long"
    assert err.code == ErrorCode.WSAETIMEDOUT


def test_io_pending():
    pending = IoPending(5)
    assert pending.bytes_transferred == 5
    assert pending.code == ErrorCode.WSA_IO_PENDING
    with pytest.raises(WinsockError):
        raise pending