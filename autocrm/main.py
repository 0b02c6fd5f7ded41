"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from autocrm.core.config import settings
from autocrm.core.structured_logging import configure_email_api_log
from autocrm.db.session import engine

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
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Sender addresses are PII
    )
    logging.info("Sentry initialized for error tracking")

# ============================================================================
# Rate Limiting
# ============================================================================

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from autocrm.core.rate_limit import limiter

# ============================================================================
# Email API debug log (JSON lines)
# ============================================================================

configure_email_api_log(settings.EMAIL_API_LOG_PATH)

# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="AutoCRM API",
    description="Email-driven ticketing and categorization API",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Validation failures are 400 with field details."""
    errors = exc.errors()
    in_body = any(err.get("loc", ("",))[0] == "body" for err in errors)
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request body" if in_body else "Invalid query parameters",
            "details": jsonable_encoder(errors),
        },
    )


# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-API-Key"],
)

# ============================================================================
# Routers
# ============================================================================

from autocrm.routers import agents, customers, email, internal, llm, tickets

# Email ingestion webhook + categorization/feedback
app.include_router(email.router)
app.include_router(llm.router)

# Agent-facing CRM (bearer token)
app.include_router(customers.router)
app.include_router(tickets.router)
app.include_router(agents.router)

# Internal endpoints (scheduled/cron jobs - protected by INTERNAL_SECRET)
app.include_router(internal.router)


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
