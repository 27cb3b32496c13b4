import logging
from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import get_entry_store
from storage.entry_store import EntryStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/entries")
async def list_entries(
    kind: Optional[str] = None,
    day: Optional[str] = None,
    store: EntryStore = Depends(get_entry_store),
) -> dict:
    """Committed entries, optionally filtered by kind and calendar day (YYYY-MM-DD)."""
    start = end = None
    if day:
        try:
            d = datetime.strptime(day, "%Y-%m-%d").date()
        except ValueError:
            raise HTTPException(
                status_code=400, detail="Invalid date format. Use YYYY-MM-DD"
            )
        start = datetime.combine(d, time.min)
        end = datetime.combine(d, time.max)

    entries = store.list_entries(kind=kind, start=start, end=end)
    return {
        "entries": [e.model_dump(mode="json") for e in entries],
        "total": len(entries),
    }


@router.get("/diary/{day}")
async def get_diary(
    day: str,
    store: EntryStore = Depends(get_entry_store),
) -> dict:
    """Journal record for one calendar day (YYYY-MM-DD)."""
    try:
        d: date = datetime.strptime(day, "%Y-%m-%d").date()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD")

    diary = store.get_diary(d)
    return {
        "date": day,
        "diary": diary.model_dump(mode="json") if diary else None,
    }
