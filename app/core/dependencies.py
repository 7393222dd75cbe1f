"""Dependency injection: services built in the lifespan, read from app.state."""

from typing import Annotated

from fastapi import Depends, Request

from app.core.auth import AuthenticatedUser, CurrentUser
from app.core.config import Settings
from app.services.assessment_service import CampaignAssessmentService
from app.services.investigation_service import InvestigationService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_assessment_service(request: Request) -> CampaignAssessmentService:
    return request.app.state.assessment_service


def get_investigation_service(request: Request) -> InvestigationService:
    return request.app.state.investigation_service


AppSettings = Annotated[Settings, Depends(get_app_settings)]
AssessmentServiceDep = Annotated[CampaignAssessmentService, Depends(get_assessment_service)]
InvestigationServiceDep = Annotated[InvestigationService, Depends(get_investigation_service)]

__all__ = [
    "AppSettings",
    "AssessmentServiceDep",
    "AuthenticatedUser",
    "CurrentUser",
    "InvestigationServiceDep",
    "get_app_settings",
    "get_assessment_service",
    "get_investigation_service",
]
