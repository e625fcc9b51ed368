"""
FastAPI application factory.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.router import router
from .core.config import get_settings
from .core.errors import (
    CredentialError,
    DirectorError,
    FieldUpdateError,
    InputRejected,
    InvalidTransition,
    ModelCallError,
    UnknownScenarioError,
    WorkflowBusy,
)

logger = logging.getLogger(__name__)

# Most specific first: CredentialError is also a ModelCallError.
ERROR_STATUS = (
    (CredentialError, 401),
    (UnknownScenarioError, 404),
    (InvalidTransition, 409),
    (WorkflowBusy, 409),
    (FieldUpdateError, 400),
    (InputRejected, 400),
    (ModelCallError, 502),
)


def status_for(exc: DirectorError) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return 500


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Photo Director",
        description="AI commercial photo director",
        version="1.0.0",
        docs_url="/docs" if settings.env == "development" else None,
        redoc_url="/redoc" if settings.env == "development" else None,
    )

    # ── CORS ─────────────────────────────────────────────────────
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Errors ───────────────────────────────────────────────────
    @app.exception_handler(DirectorError)
    async def on_director_error(request: Request, exc: DirectorError):
        code = status_for(exc)
        if code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=code,
            content={"detail": str(exc), "error": exc.__class__.__name__},
        )

    # ── Startup ──────────────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup():
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        logger.info("Starting Photo Director (env=%s)", settings.env)

        from .orchestrator.registry import get_catalog
        get_catalog()

        logger.info(
            "Models: chat=%s text=%s image=%s (%s)",
            settings.chat_model, settings.text_model, settings.image_model, settings.image_size,
        )
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY is not set; model calls will require re-authentication")
        logger.info("Photo Director is ready")

    # ── Shutdown ─────────────────────────────────────────────────
    @app.on_event("shutdown")
    async def on_shutdown():
        from .services.workflow_sessions import clear_workflows
        clear_workflows()
        logger.info("Photo Director shut down")

    # ── Routes ───────────────────────────────────────────────────
    app.include_router(router)

    return app
