"""Campaign Forensics Service.

This service assesses fundraising campaigns for fraud and runs deep
investigations of the charities behind them.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from app.api.routes.assessments import router as assessments_router
from app.api.routes.health import router as health_router
from app.api.routes.investigations import router as investigations_router
from app.api.routes.monitoring import router as monitoring_router
from app.clients.etherscan_client import EtherscanClient
from app.clients.serp_client import SerpApiClient
from app.clients.storage_client import StorageClient
from app.collectors.blockchain import BlockchainCollector
from app.collectors.exif import ExifCollector
from app.collectors.identity import IdentityCollector
from app.collectors.reverse_image import ReverseImageCollector
from app.core.config import AppEnvironment, Settings, get_settings
from app.core.errors import ForensicsError, get_status_code, validation_error
from app.core.logging import bind_request_context, clear_request_context, setup_logging
from app.core.tracing import clear_tracing_context, set_request_id, set_trace_parent
from app.llm.provider import get_gemini_provider
from app.services.assessment_service import CampaignAssessmentService
from app.services.forensics_service import ForensicsAggregator
from app.services.investigation_service import InvestigationService

logger = structlog.get_logger(__name__)

API_CSP_POLICY = (
    "default-src 'none'; frame-ancestors 'none'; base-uri 'none'; "
    "form-action 'none'; object-src 'none'"
)
DOCS_CSP_POLICY = (
    "default-src 'self'; img-src 'self' data:; style-src 'self' 'unsafe-inline'; "
    "script-src 'self' 'unsafe-inline'; frame-ancestors 'none'; object-src 'none'; "
    "base-uri 'self'"
)


def _request_log_context(request: Request) -> dict[str, str]:
    return {
        "path": request.url.path,
        "method": request.method,
        "request_id": getattr(request.state, "request_id", ""),
    }


def _is_docs_path(path: str) -> bool:
    return path.startswith("/docs") or path.startswith("/redoc") or path.startswith("/openapi.json")


def _error_body(message: str, code: str | None) -> dict:
    return {"success": False, "error": message, "code": code}


def build_services(app: FastAPI, settings: Settings) -> None:
    """Build clients and services once and store them on ``app.state``."""
    storage = StorageClient(settings.storage)
    etherscan = EtherscanClient(settings.etherscan)
    serp = SerpApiClient(settings.serpapi)
    provider = get_gemini_provider(settings)

    aggregator = ForensicsAggregator(
        blockchain=BlockchainCollector(etherscan, settings.forensics),
        exif=ExifCollector(settings.forensics),
        reverse_image=ReverseImageCollector(storage, serp, settings.forensics),
        identity=IdentityCollector(provider),
    )

    app.state.storage_client = storage
    app.state.etherscan_client = etherscan
    app.state.serp_client = serp
    app.state.gemini_provider = provider
    app.state.assessment_service = CampaignAssessmentService(
        storage, provider, aggregator, settings.forensics
    )
    app.state.investigation_service = InvestigationService(provider, settings.forensics)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan context manager."""
    settings = get_settings()
    setup_logging(settings)

    logger.info(
        "Starting Campaign Forensics Service",
        app=settings.app.name,
        env=settings.app.env.value,
        version=settings.app.version,
    )

    app.state.settings = settings
    build_services(app, settings)

    yield

    await app.state.storage_client.close()
    await app.state.etherscan_client.close()
    await app.state.serp_client.close()

    logger.info("Campaign Forensics Service stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Campaign Forensics Service",
        description=(
            "Fraud assessment for fundraising campaigns: forensic evidence "
            "aggregation, two-phase AI scoring and deep charity investigations."
        ),
        version=settings.app.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.app.env != AppEnvironment.PROD else None,
        redoc_url="/redoc" if settings.app.env != AppEnvironment.PROD else None,
        openapi_url="/openapi.json" if settings.app.env != AppEnvironment.PROD else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_allowed_origins,
        allow_methods=settings.security.cors_allow_methods,
        allow_headers=settings.security.cors_allow_headers,
    )

    app.include_router(monitoring_router, prefix=settings.app.api_prefix)
    app.include_router(health_router, prefix=settings.app.api_prefix)
    app.include_router(assessments_router, prefix=settings.app.api_prefix)
    app.include_router(investigations_router, prefix=settings.app.api_prefix)

    setup_telemetry(app, settings)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Propagate X-Request-ID and traceparent to logs and outbound calls."""
        request_id = set_request_id(request.headers.get("x-request-id"))
        set_trace_parent(request.headers.get("traceparent"))
        request.state.request_id = request_id
        bind_request_context(request_id=request_id)

        try:
            response = await call_next(request)
        finally:
            clear_tracing_context()
            clear_request_context()

        response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def security_headers_middleware(request: Request, call_next):
        """Set baseline security headers for all responses."""
        response = await call_next(request)

        csp_policy = DOCS_CSP_POLICY if _is_docs_path(request.url.path) else API_CSP_POLICY
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload"
        )
        response.headers.setdefault("Content-Security-Policy", csp_policy)
        return response

    @app.exception_handler(ForensicsError)
    async def domain_error_handler(request: Request, exc: ForensicsError) -> JSONResponse:
        """Render domain errors with their declared status."""
        status_code = get_status_code(exc)
        logger.warning(
            "Domain exception",
            **_request_log_context(request),
            status_code=status_code,
            error_code=exc.code.value,
            error_service=exc.service,
            operation=exc.operation,
            error=exc.message,
        )
        return JSONResponse(
            status_code=status_code,
            content=_error_body(exc.message, exc.code.value),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        error = validation_error(
            f"{location}: {message}" if location else message, {"errors": len(errors)}
        )
        logger.info(
            "Request validation failed", **_request_log_context(request), errors=len(errors)
        )
        return JSONResponse(
            status_code=get_status_code(error),
            content=_error_body(error.message, error.code.value),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "Unhandled exception",
            **_request_log_context(request),
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content=_error_body("Internal server error", None),
        )

    return app


def setup_telemetry(app: FastAPI, settings: Settings) -> None:
    """Setup OpenTelemetry instrumentation."""
    if not settings.observability.otlp_endpoint:
        return

    resource = Resource(attributes={SERVICE_NAME: settings.observability.service_name})
    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        endpoint=settings.observability.otlp_endpoint,
        insecure=settings.observability.otlp_insecure,
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app)


def run() -> None:
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.app.env == AppEnvironment.LOCAL,
        workers=1 if settings.app.env == AppEnvironment.LOCAL else settings.server.workers,
        log_level=settings.app.log_level.lower(),
    )


if __name__ == "__main__":
    run()
