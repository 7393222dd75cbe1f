"""Tier 1 assessment route."""

from fastapi import APIRouter

from app.core.dependencies import AssessmentServiceDep, CurrentUser
from app.schemas.v1.assessments import AssessRequest, AssessResponse
from app.schemas.v1.common import ErrorResponse

router = APIRouter(tags=["assessment"])


@router.post(
    "/assess",
    response_model=AssessResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def assess_campaign(
    request: AssessRequest,
    _user: CurrentUser,
    service: AssessmentServiceDep,
):
    """Analyze a campaign for fraud indicators.

    Combines wallet forensics, reverse image search, EXIF metadata and creator
    identity OSINT with a grounded model analysis of the claim and its media.
    """
    return await service.assess(request)
