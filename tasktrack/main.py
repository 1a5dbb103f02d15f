"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tasktrack import __version__
from tasktrack.api.v1 import router as v1_router
from tasktrack.core.config import Settings, get_settings
from tasktrack.core.errors import AppError, app_error_handler
from tasktrack.core.tokens import TokenIssuer

logger = logging.getLogger(__name__)


async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query params are a 400 like any other bad input."""
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request.", "errors": errors},
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Raises TokenConfigError when either JWT secret is missing, so a
    misconfigured process fails at startup instead of on the first request.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    token_issuer = TokenIssuer.from_settings(settings)

    app = FastAPI(
        title="Tasktrack API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.token_issuer = token_issuer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(v1_router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Tasktrack API"}

    logger.info(
        "Application configured",
        extra={"app_env": settings.APP_ENV, "api_prefix": settings.API_PREFIX},
    )
    return app


app = create_app()
