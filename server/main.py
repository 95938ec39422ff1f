"""FastAPI application entry point."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Ensure server/ is on sys.path for absolute imports
_server_dir = str(Path(__file__).resolve().parent)
if _server_dir not in sys.path:  # pragma: no cover
    sys.path.insert(0, _server_dir)

try:
    __version__ = (Path(__file__).resolve().parent.parent / "VERSION").read_text().strip()
except Exception:  # pragma: no cover
    __version__ = "0.0.0-dev"

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text

from api import api_router
from config import settings
from database import Base, SessionLocal, engine
import models  # noqa: F401 (registers models with Base)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    from logging_config import setup_logging
    setup_logging("Server")

    # Dev convenience; schema changes beyond create_all are out of scope
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
    yield


app = FastAPI(title="Avatar Chat API", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.CORS_ALLOW_ALL_ORIGINS else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def _invalid_input_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are reported as 400 invalid input."""
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid input.", "errors": jsonable_encoder(exc.errors())},
    )


app.include_router(api_router)


@app.get("/health")
def health():
    """Liveness plus a database check; reports degraded rather than failing."""
    database_ok = True
    try:
        with SessionLocal() as session:
            session.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Health check: database unreachable", exc_info=True)
        database_ok = False
    return {
        "status": "ok" if database_ok else "degraded",
        "database": database_ok,
        "version": __version__,
    }


# Serve the built front end (avatar, speech, chat UI) when present
frontend_dist = Path(__file__).parent / "frontend" / "dist"
if frontend_dist.exists():
    app.mount("/", StaticFiles(directory=str(frontend_dist), html=True), name="spa")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True, log_config=None)
