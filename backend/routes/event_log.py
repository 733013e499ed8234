"""
CRM Projects - Routes Event Log
Read-only access to the business audit trail (activity.view).
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from config import db
from services.audit import build_event_query
from services.permissions import require_permission

router = APIRouter(prefix="/event-log", tags=["EventLog"])


@router.get("")
async def list_events(
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    project_id: Optional[str] = Query(None, description="Events on the project or on its tasks/timesheets"),
    user_filter: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    skip: int = Query(0, ge=0),
    current_user: dict = Depends(require_permission("activity.view"))
):
    query = build_event_query(action, entity_type, entity_id, project_id, user_filter)

    events = await db.event_log.find(query, {"_id": 0}) \
        .sort("created_at", -1) \
        .skip(skip) \
        .limit(limit) \
        .to_list(limit)
    total = await db.event_log.count_documents(query)

    return {"events": events, "count": len(events), "total": total}


@router.get("/actions")
async def list_actions(current_user: dict = Depends(require_permission("activity.view"))):
    """Distinct actions, for the filter dropdown"""
    return {"actions": sorted(await db.event_log.distinct("action"))}


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    current_user: dict = Depends(require_permission("activity.view"))
):
    event = await db.event_log.find_one({"id": event_id}, {"_id": 0})
    if not event:
        raise HTTPException(status_code=404, detail="Evento non trovato")
    return event
