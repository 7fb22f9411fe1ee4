"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from formdesk.core.config import settings
from formdesk.core.exceptions import FormdeskError
from formdesk.core.structured_logging import build_log_context
from formdesk.db.session import engine

if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

logger = logging.getLogger(__name__)

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,  # Respondent emails stay out of Sentry
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from formdesk.core.rate_limit import limiter

# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Formdesk API",
    description="Form builder backend: submissions, uploads and response review",
    version=settings.VERSION,
    docs_url="/docs" if settings.is_dev else None,
    redoc_url="/redoc" if settings.is_dev else None,
)

app.state.limiter = limiter
app.state.drive_client = None
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(FormdeskError)
async def formdesk_error_handler(request: Request, exc: FormdeskError):
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            extra=build_log_context(route=request.url.path, method=request.method),
        )
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(
        "unhandled_exception",
        extra=build_log_context(route=request.url.path, method=request.method),
    )
    content = {"error": "Internal server error"}
    if settings.is_dev:
        content["details"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# ============================================================================
# Routers
# ============================================================================

from formdesk.routers import categories, forms, responses

app.include_router(responses.router)
app.include_router(forms.router)
app.include_router(categories.router)

# Staged uploads, served by stored name
from formdesk.services.upload_service import ensure_upload_dir

app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=ensure_upload_dir(), check_dir=False),
    name="uploads",
)


# ============================================================================
# Lifecycle
# ============================================================================

@app.on_event("startup")
def init_drive_client():
    """Build the Drive mirror client once per process (None when disabled)."""
    from formdesk.services.drive_service import build_drive_client

    app.state.drive_client = build_drive_client()


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
