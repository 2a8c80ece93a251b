"""FastAPI application for the mortgage assistant."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from mortgage_assistant.config import get_settings
from mortgage_assistant.conversation.models import ConversationSession
from mortgage_assistant.conversation.orchestrator import Orchestrator
from mortgage_assistant.handlers.http_handler import setup_routes
from mortgage_assistant.llm.client import LLMClient
from mortgage_assistant.storage.sessions import SessionStore
from mortgage_assistant.tools.registry import ToolRegistry

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

APP_NAME = "Mortgage Assistant"
APP_VERSION = "0.1.0"


def _log_teardown(session: ConversationSession) -> None:
    logger.info(f"Session {session.key} torn down after {len(session)} turns")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Initializes and cleans up resources:
    - Session store
    - Tool registry
    - LLM client and orchestrator (only when an API key is configured)
    """
    settings = get_settings()
    logger.info("Starting application...")

    sessions = SessionStore(ttl=settings.session_ttl_seconds)
    sessions.add_teardown_hook(_log_teardown)

    tool_registry = ToolRegistry()
    logger.info(f"Loaded tools: {tool_registry.tool_names}")

    orchestrator = None
    if settings.llm_api_key:
        llm_client = LLMClient(settings)
        orchestrator = Orchestrator(
            sessions=sessions,
            llm=llm_client,
            tools=tool_registry,
            context_window=settings.context_window,
            chunk_size=settings.stream_chunk_size,
            chunk_delay=settings.stream_chunk_delay,
        )
        logger.info(f"LLM client initialized (model: {settings.llm_model})")
    else:
        logger.warning("LLM_API_KEY not configured, chat endpoint disabled")

    app.state.sessions = sessions
    app.state.tool_registry = tool_registry
    app.state.orchestrator = orchestrator

    logger.info("Application started successfully")

    yield

    logger.info("Shutting down application...")
    sessions.close()
    if orchestrator is not None:
        await orchestrator.llm.client.close()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=APP_NAME,
    description="Conversational UAE mortgage assistant with deterministic calculations",
    version=APP_VERSION,
    lifespan=lifespan,
)
setup_routes(app)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("mortgage_assistant.main:app", host="0.0.0.0", port=8000, reload=True)
