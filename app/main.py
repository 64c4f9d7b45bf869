"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api import audio, debug, health
from app.api.webhooks import voice
from app.core.config import settings
from app.core.dependencies import build_orchestrator
from app.core.logging import setup_logging
from app.services.orchestrator.worker import TurnWorker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    orchestrator = build_orchestrator(settings)
    turn_worker = TurnWorker(
        orchestrator,
        workers=settings.turn_workers,
        queue_size=settings.turn_queue_size,
    )
    turn_worker.start()
    app.state.orchestrator = orchestrator
    app.state.turn_worker = turn_worker
    logger.info(
        f"[STARTUP] Voice agent ready on :{settings.port} (final transcripts only), "
        f"public host: {settings.voice_agent_host}"
    )
    yield
    # Shutdown
    await turn_worker.stop()


app = FastAPI(
    title="Voice Agent",
    description="Twilio to OpenAI voice assistant bridge",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(audio.router, tags=["audio"])
app.include_router(voice.router, prefix="/twilio", tags=["webhooks"])
if settings.debug_endpoints:
    app.include_router(debug.router, prefix="/debug", tags=["debug"])


def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
