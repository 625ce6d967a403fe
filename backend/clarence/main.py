"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clarence.api.errors import register_exception_handlers
from clarence.api.v1 import auth, carriers, policies, quotes
from clarence.container import build_container
from clarence.core.config import settings
from clarence.core.logging import get_logger, setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    development = settings.APP_ENV == "development"
    setup_logging("DEBUG" if development else "INFO", json_logs=not development)
    logger = get_logger("startup")

    # Tests install their own container before the app starts
    owns_container = getattr(app.state, "container", None) is None
    if owns_container:
        app.state.container = build_container(settings)

    logger.info(
        "Application starting",
        env=settings.APP_ENV,
        dispatch_mode=settings.QUOTE_DISPATCH_MODE,
    )
    yield
    logger.info("Application shutting down")
    if owns_container:
        await app.state.container.aclose()


app = FastAPI(
    title="Clarence Quoting API",
    description="Multi-carrier commercial insurance quoting and binding",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

API_PREFIX = "/api/v1"
app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(quotes.router, prefix=API_PREFIX)
app.include_router(policies.router, prefix=API_PREFIX)
app.include_router(carriers.router, prefix=API_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Public health-check endpoint."""
    return {"status": "ok", "env": settings.APP_ENV}
