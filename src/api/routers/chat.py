import logging
import time
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator

from api.backend import ExtractionOrchestrator
from api.dependencies import get_orchestrator
from api.metrics import (
    CLASSIFIER_FAILURES_TOTAL,
    PENDING_PROPOSALS,
    PROPOSALS_COMMITTED_TOTAL,
    PROPOSALS_EXTRACTED_TOTAL,
    REQUEST_LATENCY_SECONDS,
    REQUESTS_TOTAL,
)
from echoflow.errors import ExtractionInProgress
from echoflow.models import ActionKind, ActionProposal, CommitResult, Priority

router = APIRouter()
logger = logging.getLogger(__name__)


class MessageIn(BaseModel):
    message: str = Field(..., min_length=1)

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("message must not be blank")
        return v2


class AcceptIn(BaseModel):
    # the (possibly user-edited) proposal; the staged one is used when omitted
    proposal: Optional[ActionProposal] = None


class PatchIn(BaseModel):
    kind: Optional[ActionKind] = None
    title: Optional[str] = None
    content: Optional[str] = None
    when: Optional[datetime] = None
    tags: Optional[List[str]] = None
    priority: Optional[Priority] = None


def _update_pending_gauge(orchestrator: ExtractionOrchestrator) -> None:
    try:
        PENDING_PROPOSALS.set(
            sum(
                1
                for t in orchestrator.conversation.turns
                for p in t.pending
                if p.state == "pending"
            )
        )
    except Exception:
        pass


def _commit_response(
    orchestrator: ExtractionOrchestrator, turn_id: int, result: CommitResult
) -> dict:
    try:
        PROPOSALS_COMMITTED_TOTAL.labels(outcome="created").inc(result.created)
        PROPOSALS_COMMITTED_TOTAL.labels(outcome="diary").inc(result.diary_updated)
        PROPOSALS_COMMITTED_TOTAL.labels(outcome="failed").inc(result.failed)
    except Exception:
        pass
    _update_pending_gauge(orchestrator)

    turn = orchestrator.conversation.get_turn(turn_id)
    return {
        "created": result.created,
        "updated": result.updated,
        "diary_updated": result.diary_updated,
        "failed": result.failed,
        "affected": result.affected,
        "turn": turn.view() if turn else None,
    }


def _require_turn(orchestrator: ExtractionOrchestrator, turn_id: int) -> None:
    if orchestrator.conversation.get_turn(turn_id) is None:
        raise HTTPException(status_code=404, detail=f"Turn {turn_id} not found")


@router.get("")
async def get_conversation(
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> dict:
    return {
        "turns": [t.view() for t in orchestrator.conversation.turns],
        "loading": orchestrator.is_loading,
        "last_affected": orchestrator.last_affected,
    }


@router.post("/messages")
async def send_message(
    payload: MessageIn,
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> dict:
    start = time.time()
    logger.info(f"Received chat message: {payload.message[:50]}...")

    try:
        turn = await orchestrator.send(payload.message)
    except ExtractionInProgress as e:
        try:
            REQUESTS_TOTAL.labels(endpoint="/chat/messages", status="busy").inc()
        except Exception:
            pass
        raise HTTPException(status_code=409, detail=str(e))

    # Prometheus counters (best-effort)
    try:
        status = "failed" if turn.failed else turn.status
        REQUESTS_TOTAL.labels(endpoint="/chat/messages", status=status).inc()
        REQUEST_LATENCY_SECONDS.labels(endpoint="/chat/messages").observe(
            time.time() - start
        )
        if turn.failed:
            CLASSIFIER_FAILURES_TOTAL.inc()
        for staged in turn.proposals:
            PROPOSALS_EXTRACTED_TOTAL.labels(kind=staged.proposal.kind).inc()
    except Exception:
        pass
    _update_pending_gauge(orchestrator)

    return {"status": turn.status, "turn": turn.view()}


@router.post("/turns/{turn_id}/proposals/{index}/accept")
async def accept_proposal(
    turn_id: int,
    index: int,
    payload: Optional[AcceptIn] = None,
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> dict:
    _require_turn(orchestrator, turn_id)
    edited = payload.proposal if payload else None
    result = orchestrator.accept_one(turn_id, index, edited)
    return _commit_response(orchestrator, turn_id, result)


@router.post("/turns/{turn_id}/proposals/{index}/reject")
async def reject_proposal(
    turn_id: int,
    index: int,
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> dict:
    _require_turn(orchestrator, turn_id)
    changed = orchestrator.reject_one(turn_id, index)
    _update_pending_gauge(orchestrator)
    return {
        "rejected": changed,
        "turn": orchestrator.conversation.get_turn(turn_id).view(),
    }


@router.patch("/turns/{turn_id}/proposals/{index}")
async def patch_proposal(
    turn_id: int,
    index: int,
    payload: PatchIn,
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> dict:
    _require_turn(orchestrator, turn_id)
    changed = orchestrator.patch_pending(
        turn_id, index, payload.model_dump(exclude_unset=True)
    )
    return {
        "updated": changed,
        "turn": orchestrator.conversation.get_turn(turn_id).view(),
    }


@router.post("/turns/{turn_id}/accept-all")
async def accept_all(
    turn_id: int,
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> dict:
    _require_turn(orchestrator, turn_id)
    result = orchestrator.accept_all(turn_id)
    return _commit_response(orchestrator, turn_id, result)


@router.delete("")
async def clear_conversation(
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> dict:
    orchestrator.clear()
    _update_pending_gauge(orchestrator)
    return {"status": "cleared"}
