"""
Proposal Gate Server

FastAPI application for password-protected client proposals.
Combines an encrypted cookie session, per-client attempt limiting and a
bot-filtering middleware in front of the proposal, contract and voice demo
endpoints.

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8080 --reload

Or run directly:
    python main.py
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth import BotProtectionMiddleware, RequestRateLimiter, get_attempt_limiter, get_session_codec
from core.errors import ConfigurationError, GateError, UnexpectedFailureError
from core.logger import get_logger, setup_logging
from core.reporting import get_error_reporter
from core.settings import get_allowed_origins, get_settings
from routers import auth_router, proposal_router, voice_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Refuses to start without a session secret.
    """
    settings = get_settings()

    setup_logging("DEBUG" if settings.debug else "INFO")

    logger.info("=" * 60)
    logger.info("Proposal Gate Starting")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Default resource: {settings.default_resource_id}")
    logger.info(f"Bot protection: {'Enabled' if settings.bot_protection_enabled else 'Disabled'}")
    logger.info(f"Email: {'Enabled' if settings.sendgrid_api_key and settings.sendgrid_from_email else 'Disabled'}")
    logger.info("=" * 60)

    if not settings.session_secret:
        logger.critical("SESSION_SECRET is not set; refusing to start")
        raise ConfigurationError("SESSION_SECRET environment variable is not set")

    # Derive the session key once up front
    get_session_codec()

    yield

    logger.info("Shutting down...")


async def gate_error_handler(request: Request, exc: GateError) -> JSONResponse:
    """Render gate errors; server-side failures go to the error reporter."""
    if exc.status_code >= 500:
        cause = exc.__cause__ or exc
        get_error_reporter().capture_exception(
            cause,
            tags={"path": request.url.path, "error": type(exc).__name__},
            context=exc.context,
        )
    else:
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for failures no handler translated; never leaks detail."""
    get_error_reporter().capture_exception(
        exc,
        tags={"path": request.url.path, "error": "unhandled"},
        context={"method": request.method},
    )
    return JSONResponse(status_code=500, content=UnexpectedFailureError().to_payload())


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Proposal Gate",
        description="""
    Password-protected client proposals.

    ## Endpoints

    - `POST /auth/verify` - Exchange a proposal password for a session cookie
    - `POST /auth/logout` - Drop the session cookie
    - `GET /proposal/{id}` - Proposal metadata (session required)
    - `POST /contract/submit` - Sign the proposal contract (session required)
    - `GET /voice/signed-url` - Signed URL for the voice demo widget
    """,
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(GateError, gate_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    if settings.bot_protection_enabled:
        app.add_middleware(
            BotProtectionMiddleware,
            rate_limiter=RequestRateLimiter(
                capacity=settings.bot_rate_limit_capacity,
                refill_rate=settings.bot_rate_limit_refill_rate,
            ),
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(proposal_router)
    app.include_router(voice_router)

    @app.get("/")
    async def root(request: Request):
        """Front door: where password links land and the login form posts from."""
        settings = get_settings()
        response = {
            "name": "Proposal Gate",
            "version": app.version,
            "status": "running",
            "login": {
                "endpoint": "/auth/verify",
                "returnUrl": request.query_params.get("return") or f"/proposal/{settings.default_resource_id}",
            },
        }

        if settings.debug:
            response["rateLimiter"] = get_attempt_limiter().get_stats()

        return response

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    # Configure logging BEFORE uvicorn starts
    setup_logging("DEBUG" if settings.debug else "INFO")

    uvicorn.run(
        app,
        host=settings.server_host,
        port=settings.server_port,
        reload=False,
        log_level="debug" if settings.debug else "info",
        log_config=None,  # Prevent uvicorn from overwriting our logging config
    )
