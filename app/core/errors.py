"""Forensics service error type.

Every failure is one ``ForensicsError`` tagged with an ``ErrorCode``. The code
fixes the error's kind and HTTP status; callers branch on ``error.kind`` or
``error.code`` instead of on exception subclasses.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    STORAGE = "storage"
    AI = "ai"
    BLOCKCHAIN = "blockchain"
    EXIF = "exif"
    REVERSE_IMAGE = "reverse_image"
    VALIDATION = "validation"
    AUTH = "auth"


class ErrorCode(StrEnum):
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    SIGNED_URL_FAILED = "SIGNED_URL_FAILED"

    AI_NO_RESPONSE = "AI_NO_RESPONSE"
    AI_PARSE_FAILED = "AI_PARSE_FAILED"
    AI_RATE_LIMITED = "AI_RATE_LIMITED"
    MEDIA_PROCESSING_FAILED = "MEDIA_PROCESSING_FAILED"
    MEDIA_PROCESSING_TIMEOUT = "MEDIA_PROCESSING_TIMEOUT"
    INVESTIGATION_POLL_TIMEOUT = "INVESTIGATION_POLL_TIMEOUT"

    BLOCKCHAIN_API_ERROR = "BLOCKCHAIN_API_ERROR"
    BLOCKCHAIN_INVALID_ADDRESS = "BLOCKCHAIN_INVALID_ADDRESS"
    BLOCKCHAIN_RATE_LIMITED = "BLOCKCHAIN_RATE_LIMITED"

    EXIF_EXTRACTION_FAILED = "EXIF_EXTRACTION_FAILED"
    REVERSE_IMAGE_FAILED = "REVERSE_IMAGE_FAILED"

    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVESTIGATION_ID_REUSED = "INVESTIGATION_ID_REUSED"
    AUTH_FAILED = "AUTH_FAILED"


_CODE_TABLE: dict[ErrorCode, tuple[ErrorKind, int]] = {
    ErrorCode.DOWNLOAD_FAILED: (ErrorKind.STORAGE, 500),
    ErrorCode.SIGNED_URL_FAILED: (ErrorKind.STORAGE, 500),
    ErrorCode.AI_NO_RESPONSE: (ErrorKind.AI, 500),
    ErrorCode.AI_PARSE_FAILED: (ErrorKind.AI, 500),
    ErrorCode.AI_RATE_LIMITED: (ErrorKind.AI, 429),
    ErrorCode.MEDIA_PROCESSING_FAILED: (ErrorKind.AI, 500),
    ErrorCode.MEDIA_PROCESSING_TIMEOUT: (ErrorKind.AI, 500),
    ErrorCode.INVESTIGATION_POLL_TIMEOUT: (ErrorKind.AI, 500),
    ErrorCode.BLOCKCHAIN_API_ERROR: (ErrorKind.BLOCKCHAIN, 500),
    ErrorCode.BLOCKCHAIN_INVALID_ADDRESS: (ErrorKind.BLOCKCHAIN, 400),
    ErrorCode.BLOCKCHAIN_RATE_LIMITED: (ErrorKind.BLOCKCHAIN, 429),
    ErrorCode.EXIF_EXTRACTION_FAILED: (ErrorKind.EXIF, 500),
    ErrorCode.REVERSE_IMAGE_FAILED: (ErrorKind.REVERSE_IMAGE, 500),
    ErrorCode.VALIDATION_FAILED: (ErrorKind.VALIDATION, 400),
    ErrorCode.INVESTIGATION_ID_REUSED: (ErrorKind.VALIDATION, 400),
    ErrorCode.AUTH_FAILED: (ErrorKind.AUTH, 401),
}


class ForensicsError(Exception):
    """Tagged service error.

    Attributes:
        code: machine-readable error code
        kind: error family derived from ``code``
        status_code: HTTP status derived from ``code``
        service: originating service, e.g. ``"etherscan"``
        operation: originating operation, e.g. ``"get_wallet_history"``
        context: optional structured details
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        service: str,
        operation: str,
        context: dict[str, Any] | None = None,
    ):
        self.code = code
        self.kind, self.status_code = _CODE_TABLE[code]
        self.message = message
        self.service = service
        self.operation = operation
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "kind": self.kind.value,
            "message": self.message,
            "service": self.service,
            "operation": self.operation,
            "context": self.context,
        }

    def __repr__(self) -> str:
        return f"ForensicsError({self.code.value}, {self.message!r})"


def storage_error(path: str, reason: str, *, operation: str = "download") -> ForensicsError:
    code = ErrorCode.DOWNLOAD_FAILED if operation == "download" else ErrorCode.SIGNED_URL_FAILED
    return ForensicsError(
        code,
        f"Download failed for {path}: {reason}" if operation == "download" else reason,
        service="storage",
        operation=operation,
        context={"path": path},
    )


def ai_error(code: ErrorCode, operation: str, reason: str | None = None) -> ForensicsError:
    message = f"{operation} failed" + (f": {reason}" if reason else "")
    return ForensicsError(code, message, service="gemini", operation=operation)


def validation_error(message: str, context: dict[str, Any] | None = None) -> ForensicsError:
    return ForensicsError(
        ErrorCode.VALIDATION_FAILED,
        message,
        service="api",
        operation="validate",
        context=context,
    )


def get_status_code(error: ForensicsError) -> int:
    """Get HTTP status code for error."""
    return error.status_code
