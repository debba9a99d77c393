"""FastAPI application wiring for the handoff service.

Run with ``uvicorn handoff.main:app``. The bot runtime calls the routes under
``/api/handoff`` for every inbound message and handoff command.
"""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI

from .__version__ import __build_date__, __commit_sha__, __version__
from .app_logging import init_logging
from .routers import handoff

load_dotenv()

logger = logging.getLogger(__name__)

app = FastAPI(title="Handoff", version=__version__)
init_logging(app)
app.include_router(handoff.router)


@app.get("/api/health")
def health() -> dict:
    """Liveness probe; also reports the running build."""
    return {
        "status": "ok",
        "version": __version__,
        "build_date": __build_date__,
        "commit_sha": __commit_sha__,
    }
