# civic_node/api/events.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from ..civic_runtime.facade import GovernanceFacade
from .deps import get_facade

router = APIRouter(tags=["events"])


@router.get("/events")
def list_events(
    since: int = Query(0, ge=0, description="Return entries with seq >= since."),
    facade: GovernanceFacade = Depends(get_facade),
) -> Dict[str, Any]:
    events = facade.events_since(since)
    return {"ok": True, "events": events, "next": since + len(events)}
