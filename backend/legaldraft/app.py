import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

from .config import load_settings
from .exceptions import DraftingError
from .routes.editing import router as editing_router
from .routes.health import router as health_router
from .routes.session import router as session_router
from .routes.templates import router as templates_router
from .services.llm import GenerativeTextService
from .templating.store import TemplateStore

logger = logging.getLogger(__name__)


async def drafting_error_handler(request: Request, exc: DraftingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close = getattr(app.state.text_service, "aclose", None)
    if close is not None:
        await close()


def create_app(*, text_service=None) -> FastAPI:
    # Load environment variables from .env if present
    if os.getenv("DOTENV_DISABLED", "false").lower() not in {"1", "true", "yes"}:
        load_dotenv()

    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Legal Draft Engine API", version="0.3.0", lifespan=lifespan)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Broken template assets abort startup
    app.state.settings = settings
    app.state.templates = TemplateStore.load_directory(settings.templates_dir)
    app.state.text_service = text_service or GenerativeTextService(settings)

    app.add_exception_handler(DraftingError, drafting_error_handler)

    # Routers
    app.include_router(health_router, prefix="/api")
    app.include_router(templates_router, prefix="/api")
    app.include_router(session_router, prefix="/api")
    app.include_router(editing_router, prefix="/api")

    return app
