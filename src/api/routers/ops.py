import os
import logging
from fastapi import APIRouter, Depends, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api import state
from api.dependencies import get_entry_store
from storage.entry_store import EntryStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(
    store: EntryStore = Depends(get_entry_store),
) -> dict:
    """Health check endpoint for container orchestration."""
    health = {
        "status": "healthy",
        "profile": os.getenv("DEPLOYMENT_PROFILE", "unknown"),
        "llm_provider": os.getenv("LLM_PROVIDER", "mock"),
        "extracting": bool(state.orchestrator and state.orchestrator.is_loading),
    }

    try:
        health["entries"] = len(store.list_entries())
    except Exception as e:
        logger.warning(f"Entry store health check failed: {e}")
        health["status"] = "degraded"
        health["entries"] = {"status": "error", "error": str(e)}

    return health


@router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus scrape endpoint.
    """
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
