import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from tyjson.db.base import Base, SessionLocal, engine
from tyjson.dependencies import settings_cache
from tyjson.errors import ApiError
from tyjson.models import comment, content, field, meta, option, theme_setting, user  # noqa: F401
from tyjson.repos.theme_settings_repo import ThemeSettingsRepo
from tyjson.routers import api
from tyjson.services.response_writer import ResponseWriter
from tyjson.services.theme_fields import install_defaults, load_schema
from tyjson.settings import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def install_theme_defaults() -> int:
    db = SessionLocal()
    try:
        repo = ThemeSettingsRepo(db, settings.THEME_NAME, cache=settings_cache)
        return install_defaults(load_schema(settings.THEME_SETUP_FILE), repo)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    try:
        install_theme_defaults()
    except (OSError, ValueError) as e:
        logger.warning(f"Theme defaults not installed: {e}")
    logger.info(f"ty-json API serving under {settings.api_base_path}")

    try:
        yield
    finally:
        settings_cache.clear()
        logger.info("Settings cache cleared")


app = FastAPI(
    title="ty-json API",
    description="JSON API for TTDF blog themes",
    lifespan=lifespan,
)

app.include_router(api.router)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    writer = ResponseWriter(
        origin=request.headers.get("origin"),
        allow_origin=settings.CORS_ALLOW_ORIGIN,
        debug=settings.DEBUG,
    )
    return writer.send(code=exc.code, message=exc.message)
