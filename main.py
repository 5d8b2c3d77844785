import inspect
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from routes.image_route import router as image_router
from routes.record_route import router as record_router
from services.export_adapter import ExportAdapter
from services.extraction.extraction_client import ExtractionClient
from services.inventory_session import InventorySession
from utils.app_config import AppConfig

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def _build_openai_client(config: AppConfig) -> AsyncOpenAI:
    config.require_api_key()
    try:
        # No automatic retries; a failed call fails only its own image.
        return AsyncOpenAI(max_retries=0, timeout=config.timeout)
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc


async def _close_client(client) -> None:
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        # Ignore shutdown errors to avoid masking more important issues.
        LOGGER.debug("Error while closing OpenAI client: %s", exc)


def create_app(extraction_client: Optional[ExtractionClient] = None, config: Optional[AppConfig] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    When `extraction_client` is omitted, an OpenAI-backed client is built
    during startup from OPENAI_API_KEY / OPENAI_MODEL and closed on shutdown.
    """
    config = config or AppConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Lifespan manager to initialize the OpenAI async client and the
        inventory session, and attach them to `app.state`.
        """
        openai_client = None
        if getattr(app.state, "session", None) is None:
            openai_client = _build_openai_client(config)
            client = ExtractionClient(
                openai_client,
                model=config.model,
                timeout=config.timeout,
                max_output_tokens=config.max_output_tokens,
            )
            app.state.openai_client = openai_client
            app.state.session = InventorySession(client)
        try:
            yield
        finally:
            if openai_client is not None:
                await _close_client(openai_client)

    app = FastAPI(lifespan=lifespan)
    app.state.export_adapter = ExportAdapter(filename=config.export_filename)
    app.state.session = InventorySession(extraction_client) if extraction_client is not None else None

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports whether the session is ready.
        """
        session = getattr(request.app.state, "session", None)
        return {
            "ok": True,
            "session_ready": session is not None,
            "mode": session.mode.value if session is not None else None,
        }

    # Register application routers
    app.include_router(image_router)
    app.include_router(record_router)

    return app


app = create_app()
