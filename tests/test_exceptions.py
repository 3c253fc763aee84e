"""Tests for custom exceptions."""

import errno
import socket

import pytest

from custom_components.tuya_fan_light.infrastructure.errors import (
    TuyaCommandError,
    TuyaConnectionError,
    TuyaFanLightError,
    TuyaOperationTimeout,
    TuyaProtocolError,
    TuyaValidationError,
    is_connection_error,
)


@pytest.mark.parametrize(
    "error_class",
    [
        TuyaConnectionError,
        TuyaOperationTimeout,
        TuyaProtocolError,
        TuyaCommandError,
        TuyaValidationError,
    ],
)
def test_inheritance(error_class):
    """Test that every exception inherits from TuyaFanLightError."""
    error = error_class("Something failed")
    assert isinstance(error, TuyaFanLightError)
    assert isinstance(error, Exception)
    assert str(error) == "Something failed"


def test_exception_catching():
    """Test that custom exceptions can be caught through the base class."""
    with pytest.raises(TuyaFanLightError):
        raise TuyaCommandError("Test")


def test_command_error_chaining():
    """Test that command errors keep the underlying cause."""
    try:
        try:
            raise ConnectionRefusedError(111, "Connection refused")
        except ConnectionRefusedError as e:
            raise TuyaCommandError("Failed to set light_on") from e
    except TuyaCommandError as command_error:
        assert isinstance(command_error.__cause__, ConnectionRefusedError)


class TestIsConnectionError:
    """Test is_connection_error classification."""

    @pytest.mark.parametrize(
        "err",
        [
            TuyaConnectionError("Device unreachable"),
            TuyaOperationTimeout("Operation timed out"),
            ConnectionRefusedError(111, "Connection refused"),
            ConnectionResetError(),
            TimeoutError(),
            socket.timeout(),
            OSError(errno.EHOSTUNREACH, "No route to host"),
            OSError(errno.ENETUNREACH, "Network is unreachable"),
            Exception("connect EHOSTUNREACH 192.168.1.40:6668"),
            Exception("connect ETIMEDOUT 192.168.1.40:6668"),
            Exception("connect ECONNREFUSED 192.168.1.40:6668"),
            RuntimeError("Host unreachable"),
        ],
    )
    def test_connection_errors(self, err):
        assert is_connection_error(err) is True

    @pytest.mark.parametrize(
        "err",
        [
            TuyaProtocolError("Invalid device response format"),
            TuyaProtocolError("connection refused while decoding"),
            ValueError("decrypt failed"),
            KeyError("dps"),
            OSError(errno.ENOENT, "No such file"),
            Exception(""),
        ],
    )
    def test_other_errors(self, err):
        assert is_connection_error(err) is False
