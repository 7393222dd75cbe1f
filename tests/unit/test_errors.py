"""Unit tests for errors module."""

import pytest

from app.core.errors import (
    ErrorCode,
    ErrorKind,
    ForensicsError,
    ai_error,
    get_status_code,
    storage_error,
    validation_error,
)


def test_rate_limited_codes_map_to_429():
    for code in (ErrorCode.AI_RATE_LIMITED, ErrorCode.BLOCKCHAIN_RATE_LIMITED):
        error = ForensicsError(code, "slow down", service="x", operation="y")
        assert error.status_code == 429


def test_invalid_address_is_400_blockchain_kind():
    error = ForensicsError(
        ErrorCode.BLOCKCHAIN_INVALID_ADDRESS, "bad", service="etherscan", operation="collect"
    )
    assert error.status_code == 400
    assert error.kind == ErrorKind.BLOCKCHAIN


@pytest.mark.parametrize(
    "code",
    [
        ErrorCode.DOWNLOAD_FAILED,
        ErrorCode.AI_NO_RESPONSE,
        ErrorCode.AI_PARSE_FAILED,
        ErrorCode.BLOCKCHAIN_API_ERROR,
        ErrorCode.EXIF_EXTRACTION_FAILED,
        ErrorCode.REVERSE_IMAGE_FAILED,
        ErrorCode.MEDIA_PROCESSING_TIMEOUT,
    ],
)
def test_other_failures_are_500(code):
    assert ForensicsError(code, "boom", service="x", operation="y").status_code == 500


def test_every_code_has_a_kind_and_status():
    for code in ErrorCode:
        error = ForensicsError(code, "m", service="s", operation="o")
        assert isinstance(error.kind, ErrorKind)
        assert 400 <= error.status_code < 600


def test_storage_error_download_message():
    error = storage_error("campaigns/a.jpg", "HTTP 404")
    assert error.code == ErrorCode.DOWNLOAD_FAILED
    assert error.kind == ErrorKind.STORAGE
    assert error.message == "Download failed for campaigns/a.jpg: HTTP 404"
    assert error.context == {"path": "campaigns/a.jpg"}


def test_storage_error_resolve_uses_signed_url_code():
    error = storage_error("a.jpg", "no url", operation="resolve")
    assert error.code == ErrorCode.SIGNED_URL_FAILED
    assert error.message == "no url"


def test_ai_error_message():
    error = ai_error(ErrorCode.AI_NO_RESPONSE, "Tier 1 assessment", "No response from Gemini")
    assert error.message == "Tier 1 assessment failed: No response from Gemini"
    assert error.service == "gemini"


def test_validation_error_status():
    error = validation_error("text too short", {"field": "text"})
    assert get_status_code(error) == 400
    assert error.to_dict()["context"] == {"field": "text"}


def test_to_dict_and_repr():
    error = ForensicsError(ErrorCode.AUTH_FAILED, "missing", service="api", operation="get")
    assert error.to_dict() == {
        "code": "AUTH_FAILED",
        "kind": "auth",
        "message": "missing",
        "service": "api",
        "operation": "get",
        "context": {},
    }
    assert "AUTH_FAILED" in repr(error)
    assert str(error) == "missing"
