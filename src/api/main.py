import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.routers import chat, entries, ops
from echoflow.errors import EchoFlowError

# Logging configuration
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Echo Flow Actions")

app.include_router(chat.router, prefix="/chat", tags=["chat"])
app.include_router(entries.router, tags=["entries"])
app.include_router(ops.router, tags=["ops"])


@app.exception_handler(EchoFlowError)
async def handle_engine_error(request: Request, exc: EchoFlowError) -> JSONResponse:
    logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"ok": False, "error": exc.__class__.__name__, "detail": str(exc)},
    )
