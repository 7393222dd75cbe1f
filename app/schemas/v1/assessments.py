"""Assessment request/response schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.v1.common import DeepInvestigation, MediaKind, Verdict
from app.schemas.v1.forensics import CreatorIdentity, Forensics

MAX_MEDIA_ITEMS = 10


class MediaItem(BaseModel):
    path: str = Field(..., min_length=1, description="Path inside the storage bucket")
    type: MediaKind

    model_config = {"frozen": True}


class AssessRequest(BaseModel):
    text: str = Field(..., min_length=10, description="Campaign claim text")
    media: list[MediaItem] = Field(default_factory=list, max_length=MAX_MEDIA_ITEMS)
    creator_address: str | None = Field(default=None, max_length=64)
    donor_addresses: list[str] = Field(default_factory=list, max_length=20)
    creator_identity: CreatorIdentity | None = None


class EvidenceMatch(BaseModel):
    location_verified: bool
    visuals_match_text: bool
    search_corroboration: bool
    metadata_consistent: bool


class AssessmentResult(BaseModel):
    """Tier 1 verdict; also the extraction schema sent to the model."""

    score: int = Field(ge=0, le=100)
    verdict: Verdict
    summary: str
    flags: list[str]
    evidence_match: EvidenceMatch


class AssessResponse(BaseModel):
    success: Literal[True] = True
    tier: Literal[1] = 1
    data: AssessmentResult
    forensics: Forensics
    deep_investigation: DeepInvestigation
