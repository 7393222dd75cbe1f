"""Tier 2 deep investigation routes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.dependencies import CurrentUser, InvestigationServiceDep
from app.core.logging import bind_request_context
from app.schemas.v1.common import ErrorResponse, InvestigationStatus
from app.schemas.v1.investigations import (
    InvestigateInitResponse,
    InvestigateRequest,
    InvestigateStatusRequest,
    InvestigateStatusResponse,
)

router = APIRouter(prefix="/investigate", tags=["investigation"])

_ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post(
    "",
    status_code=202,
    response_model=InvestigateInitResponse,
    responses={400: {"model": ErrorResponse}, **_ERROR_RESPONSES},
)
async def start_investigation(
    request: InvestigateRequest,
    _user: CurrentUser,
    service: InvestigationServiceDep,
):
    """Start a background deep investigation of a charity."""
    investigation = await service.start(request.charity_name, request.claim_context)
    bind_request_context(interaction_id=investigation.interaction_id)
    return InvestigateInitResponse(
        interaction_id=investigation.interaction_id,
        status=investigation.status,
    )


@router.post(
    "/status",
    response_model=InvestigateStatusResponse,
    responses={202: {"model": InvestigateStatusResponse}, **_ERROR_RESPONSES},
)
async def get_investigation_status(
    request: InvestigateStatusRequest,
    _user: CurrentUser,
    service: InvestigationServiceDep,
):
    """Poll an investigation; completed jobs include the formatted report."""
    bind_request_context(interaction_id=request.interaction_id)
    investigation = await service.status(request.interaction_id)

    if investigation.status == InvestigationStatus.COMPLETED:
        return InvestigateStatusResponse(
            interaction_id=investigation.interaction_id,
            status=investigation.status,
            data=investigation.report,
            raw_output=investigation.raw_output,
        )
    if investigation.status == InvestigationStatus.FAILED:
        return InvestigateStatusResponse(
            interaction_id=investigation.interaction_id,
            status=investigation.status,
        )

    body = InvestigateStatusResponse(
        interaction_id=investigation.interaction_id,
        status=InvestigationStatus.PROCESSING,
    )
    return JSONResponse(status_code=202, content=body.model_dump(mode="json", exclude_none=True))
