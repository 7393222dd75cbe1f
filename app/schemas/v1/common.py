"""Common schemas: enums and error responses."""

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel


class MediaKind(StrEnum):
    IMAGE = "image"
    VIDEO = "video"


class Verdict(StrEnum):
    CREDIBLE = "CREDIBLE"
    SUSPICIOUS = "SUSPICIOUS"
    FRAUDULENT = "FRAUDULENT"


class AccountAge(StrEnum):
    NEW = "NEW"
    ESTABLISHED = "ESTABLISHED"
    UNKNOWN = "UNKNOWN"


class InvestigationStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class RiskLevel(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class DeepInvestigation(StrEnum):
    RECOMMENDED = "RECOMMENDED"
    OPTIONAL = "OPTIONAL"


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
    code: str | None = None
