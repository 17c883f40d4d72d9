"""FastAPI application entrypoint for Resume Tailor API."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from resume_tailor_api import __version__
from resume_tailor_api.config import get_settings
from resume_tailor_api.model_invoker import ExhaustedCandidates, ModelInvoker
from resume_tailor_api.models import (
    GenerateRequest,
    HealthResponse,
    LLMConnectivityResponse,
    ResumeData,
)
from resume_tailor_api.observability import generate_trace_id, set_trace_id
from resume_tailor_api.openrouter_client import (
    close_openrouter_client,
    get_openrouter_client,
)
from resume_tailor_api.resume_enhancer import ResumeEnhancer

# Configure structlog
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()
settings = get_settings()

# Rate limiter
limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting Resume Tailor API", version=__version__)

    try:
        await get_openrouter_client()
        logger.info("OpenRouter client initialized")
    except Exception as e:
        logger.warning("Failed to initialize OpenRouter client", error=str(e))

    yield

    logger.info("Shutting down Resume Tailor API")
    await close_openrouter_client()


# Create FastAPI app
app = FastAPI(
    title="Resume Tailor API",
    description="Reconciles a work-history timeline with a target job and narrates it with an LLM",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def body_size_middleware(request: Request, call_next):
    """Reject requests whose body exceeds the configured ceiling.

    A declared Content-Length is checked up front. Bodies without one
    (chunked uploads) are buffered and measured before the route sees them.
    """
    current = get_settings()
    too_large = JSONResponse(
        status_code=413,
        content={"detail": f"Request body too large (max {current.max_request_body_mb}MB)"},
    )

    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit():
        if int(content_length) > current.max_request_body_bytes:
            return too_large
    elif request.method in ("POST", "PUT", "PATCH"):
        body = await request.body()
        if len(body) > current.max_request_body_bytes:
            return too_large
    return await call_next(request)


# Trace ID middleware for request correlation
@app.middleware("http")
async def trace_id_middleware(request: Request, call_next):
    """Add trace ID to every request for log correlation."""
    trace_id = request.headers.get("X-Trace-ID", generate_trace_id())
    set_trace_id(trace_id)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(trace_id=trace_id)

    response = await call_next(request)
    response.headers["X-Trace-ID"] = trace_id
    return response


# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add Prometheus metrics
Instrumentator().instrument(app).expose(app)


async def get_resume_enhancer() -> ResumeEnhancer:
    """Request-scoped enhancer around the shared HTTP client."""
    client = await get_openrouter_client()
    return ResumeEnhancer(ModelInvoker(client), get_settings())


# =============================================================================
# Health Endpoints
# =============================================================================


@app.get("/health", response_model=HealthResponse)
@app.get("/api/v1/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report configuration status without calling the LLM."""
    current = get_settings()
    llm_configured = current.has_openrouter_key or current.mock_openrouter
    return HealthResponse(
        status="healthy" if llm_configured and current.llm_candidate_models else "degraded",
        llm_configured=llm_configured,
        candidate_models=current.llm_candidate_models,
        version=__version__,
    )


@app.get("/api/v1/health/llm", response_model=LLMConnectivityResponse)
async def llm_health_check() -> LLMConnectivityResponse:
    """Minimal one-token request against the first candidate model."""
    current = get_settings()
    if not current.llm_candidate_models:
        return LLMConnectivityResponse(success=False, message="No candidate models configured")

    client = await get_openrouter_client()
    report = await client.check_connectivity(current.llm_candidate_models[0])
    return LLMConnectivityResponse(
        success=report.success,
        message=report.message,
        details=report.details or None,
    )


# =============================================================================
# Resume Endpoints
# =============================================================================


@app.post("/api/v1/resume/enhance", response_model=ResumeData)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def enhance_resume(
    request: Request,
    generate_request: GenerateRequest,
    enhancer: ResumeEnhancer = Depends(get_resume_enhancer),
) -> ResumeData:
    """
    Tailor a resume to a target job.

    - **resume_profile**: name, birthday, instructions and real work experiences
    - **job_data**: localized titles, description and experience requirement
    - **language**: `chinese` or `english`
    """
    logger.info(
        "Enhance request received",
        language=generate_request.language,
        experiences=len(generate_request.resume_profile.work_experiences),
        requirement=generate_request.job_data.experience,
    )

    try:
        return await enhancer.enhance(generate_request)
    except ExhaustedCandidates as e:
        logger.error("Resume enhancement failed", last_reason=e.last_reason)
        raise HTTPException(
            status_code=502,
            detail="AI service could not produce a resume. Please try again later.",
        ) from e


# =============================================================================
# Entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "resume_tailor_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )
