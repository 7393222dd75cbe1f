"""Forensics bundle schemas.

``exif`` and ``reverse_image`` are always populated (defaults when nothing was
found); ``blockchain`` and ``identity`` are ``None`` when their input was not
supplied or their collector failed.
"""

from pydantic import BaseModel, Field, model_validator

from app.schemas.v1.common import AccountAge

MAX_WARNINGS = 5
MAX_SOURCES = 5


class CreatorIdentity(BaseModel):
    full_name: str | None = Field(default=None, max_length=200)
    username: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=320)

    @model_validator(mode="after")
    def require_one_field(self) -> "CreatorIdentity":
        if not (self.full_name or self.username or self.email):
            raise ValueError("creator_identity requires full_name, username or email")
        return self


class BlockchainForensics(BaseModel):
    nonce: int = Field(ge=0)
    age_hours: int = Field(ge=0)
    wash_trading_score: int = Field(ge=0, le=100)
    is_burner_wallet: bool


class ExifForensics(BaseModel):
    has_gps: bool = False
    has_edits: bool = False
    date_mismatch: bool = False
    warnings: list[str] = Field(default_factory=list, max_length=MAX_WARNINGS)


class ReverseImageSource(BaseModel):
    title: str = ""
    link: str = ""
    source: str = ""


class ReverseImageForensics(BaseModel):
    duplicates_found: int = Field(default=0, ge=0)
    is_stock_photo: bool = False
    sources: list[ReverseImageSource] = Field(default_factory=list, max_length=MAX_SOURCES)


class IdentityForensics(BaseModel):
    """Structured OSINT findings; also the extraction schema sent to the model."""

    platforms_found: list[str]
    scam_reports_found: bool
    is_disposable_email: bool
    identity_consistent: bool
    account_age: AccountAge
    trust_score: int = Field(ge=0, le=100)
    red_flags: list[str]
    green_flags: list[str]
    summary: str


class Forensics(BaseModel):
    blockchain: BlockchainForensics | None = None
    exif: ExifForensics = Field(default_factory=ExifForensics)
    reverse_image: ReverseImageForensics = Field(default_factory=ReverseImageForensics)
    identity: IdentityForensics | None = None
