"""Tests for clamd_sdk.exceptions."""

import pytest

from clamd_sdk.exceptions import (
    ClamdConnectionError,
    ClamdError,
    ClamdErrorKind,
    ClamdFileNotFoundError,
    ClamdInvalidArgumentError,
    ClamdStreamSizeExceededError,
    ClamdTimeoutError,
)


def test_hierarchy():
    assert issubclass(ClamdInvalidArgumentError, ClamdError)
    assert issubclass(ClamdFileNotFoundError, ClamdError)
    assert issubclass(ClamdConnectionError, ClamdError)
    assert issubclass(ClamdTimeoutError, ClamdError)
    assert issubclass(ClamdStreamSizeExceededError, ClamdError)


def test_builtin_bases():
    assert issubclass(ClamdInvalidArgumentError, ValueError)
    assert issubclass(ClamdFileNotFoundError, FileNotFoundError)


@pytest.mark.parametrize(
    ("exc", "kind"),
    [
        (ClamdInvalidArgumentError("port", "bad port"), ClamdErrorKind.INVALID_ARGUMENT),
        (ClamdFileNotFoundError("/nope"), ClamdErrorKind.NOT_FOUND),
        (ClamdConnectionError("localhost", 3310), ClamdErrorKind.CONNECTION),
        (ClamdTimeoutError("read", 100), ClamdErrorKind.TIMEOUT),
        (ClamdStreamSizeExceededError(10), ClamdErrorKind.STREAM_SIZE_EXCEEDED),
    ],
)
def test_kind_discriminant(exc: ClamdError, kind: ClamdErrorKind):
    assert exc.kind is kind


def test_connection_error_fields():
    cause = ConnectionRefusedError(111, "Connection refused")
    exc = ClamdConnectionError("clamav", 3310, cause)
    assert exc.host == "clamav"
    assert exc.port == 3310
    assert "clamav:3310" in str(exc)
    assert "Connection refused" in str(exc)


def test_timeout_error_fields():
    exc = ClamdTimeoutError("connect", 30000, "clamav:3310")
    assert exc.operation == "connect"
    assert exc.timeout_ms == 30000
    assert "30000ms" in str(exc)


def test_stream_size_message_preserved():
    exc = ClamdStreamSizeExceededError(26214400)
    assert exc.max_stream_size == 26214400
    assert "26214400" in str(exc)


def test_file_not_found_path():
    exc = ClamdFileNotFoundError("/tmp/missing.bin")
    assert exc.path == "/tmp/missing.bin"
    assert str(exc) == "File not found: /tmp/missing.bin"
