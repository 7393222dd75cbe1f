"""Deep investigation (Tier 2) schemas."""

from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.v1.common import InvestigationStatus, RiskLevel


class InvestigateRequest(BaseModel):
    charity_name: str = Field(..., min_length=2, max_length=300)
    claim_context: str = Field(..., min_length=10)


class InvestigateStatusRequest(BaseModel):
    interaction_id: str = Field(..., min_length=1, max_length=256)


class ResearchSource(BaseModel):
    title: str
    url: str
    relevance: str


class RegistrationStatus(BaseModel):
    is_registered: bool
    registry_name: str | None = None
    registration_number: str | None = None


class FraudIndicators(BaseModel):
    scam_reports_found: bool
    negative_mentions: list[str]
    warning_signs: list[str]


class FinancialTransparency(BaseModel):
    has_public_reports: bool
    last_report_year: int | None = None
    notes: str


class CostAnalysis(BaseModel):
    claimed_amount_reasonable: bool
    market_rate_comparison: str


class InvestigationReport(BaseModel):
    """Tier 2 dossier; also the extraction schema sent to the model."""

    charity_name: str
    registration_status: RegistrationStatus
    fraud_indicators: FraudIndicators
    financial_transparency: FinancialTransparency
    cost_analysis: CostAnalysis
    overall_risk_level: RiskLevel
    recommendation: str
    sources: list[ResearchSource]


class InvestigateInitResponse(BaseModel):
    success: Literal[True] = True
    interaction_id: str
    status: InvestigationStatus
    message: str = "Investigation started. Poll the status endpoint to check progress."


class InvestigateStatusResponse(BaseModel):
    success: Literal[True] = True
    interaction_id: str
    status: InvestigationStatus
    data: InvestigationReport | None = None
    raw_output: str | None = None
