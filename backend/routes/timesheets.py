"""
CRM Projects - Routes Timesheets
Hours booked on a project, reviewed by moderators.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException

from config import db, now_iso
from models import TimesheetCreate, TimesheetReview, TimesheetStatus, ACTIVITY_TYPES
from routes.projects import get_project_or_404
from services.audit import log_event
from services.permissions import require_permission
from services.timesheets import (
    compute_total_cost,
    summarize_timesheets,
    validate_timesheet_transition,
    TimesheetTransitionError,
)

logger = logging.getLogger("timesheets")

router = APIRouter(prefix="/projects/{project_id}/timesheets", tags=["Timesheets"])


@router.get("")
async def list_timesheets(
    project_id: str,
    user: dict = Depends(require_permission("projects.view"))
):
    """Timesheets, most recent work date first, with totals"""
    await get_project_or_404(project_id, user)

    timesheets = await db.project_timesheets.find(
        {"project_id": project_id}, {"_id": 0}
    ).sort("work_date", -1).to_list(None)

    tasks = await db.project_tasks.find(
        {"project_id": project_id}, {"_id": 0, "id": 1, "name": 1}
    ).to_list(None)
    task_names = {t["id"]: t.get("name") for t in tasks}

    for ts in timesheets:
        ts["task_name"] = task_names.get(ts.get("task_id"))
        ts["activity_label"] = ACTIVITY_TYPES.get(ts.get("activity_type"), ts.get("activity_type"))

    return {
        "timesheets": timesheets,
        "summary": summarize_timesheets(timesheets),
        "count": len(timesheets),
    }


@router.post("")
async def create_timesheet(
    project_id: str,
    data: TimesheetCreate,
    user: dict = Depends(require_permission("timesheets.submit"))
):
    await get_project_or_404(project_id, user)

    if data.task_id:
        task = await db.project_tasks.find_one({"id": data.task_id, "project_id": project_id})
        if not task:
            raise HTTPException(status_code=400, detail="Attività non trovata in questo progetto")

    timesheet = {
        "id": str(uuid.uuid4()),
        "project_id": project_id,
        "user_id": user.get("id"),
        **data.model_dump(),
        "total_cost": compute_total_cost(data.hours, data.hourly_rate),
        "status": TimesheetStatus.PENDING.value,
        "created_at": now_iso(),
    }
    await db.project_timesheets.insert_one(timesheet)
    timesheet.pop("_id", None)

    return {"success": True, "timesheet": timesheet}


async def _review(project_id: str, timesheet_id: str, target: str, data: TimesheetReview, user: dict):
    await get_project_or_404(project_id, user)

    timesheet = await db.project_timesheets.find_one(
        {"id": timesheet_id, "project_id": project_id}, {"_id": 0}
    )
    if not timesheet:
        raise HTTPException(status_code=404, detail="Timesheet non trovato")

    try:
        validate_timesheet_transition(timesheet.get("status", TimesheetStatus.PENDING.value), target)
    except TimesheetTransitionError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"[TIMESHEET] {timesheet_id} -> {target} by {user.get('email')}")

    await db.project_timesheets.update_one(
        {"id": timesheet_id},
        {"$set": {
            "status": target,
            "reviewed_by": user.get("id"),
            "reviewed_at": now_iso(),
            "review_reason": data.reason or "",
        }}
    )

    await log_event(
        action=f"timesheet_{'approve' if target == TimesheetStatus.APPROVED.value else 'reject'}",
        entity_type="timesheet",
        entity_id=timesheet_id,
        user=user.get("email"),
        details={"hours": timesheet.get("hours"), "reason": data.reason or ""},
        related={"project_id": project_id, "user_id": timesheet.get("user_id")}
    )

    updated = await db.project_timesheets.find_one({"id": timesheet_id}, {"_id": 0})
    return {"success": True, "timesheet": updated}


@router.post("/{timesheet_id}/approve")
async def approve_timesheet(
    project_id: str,
    timesheet_id: str,
    data: TimesheetReview = TimesheetReview(),
    user: dict = Depends(require_permission("timesheets.approve"))
):
    return await _review(project_id, timesheet_id, TimesheetStatus.APPROVED.value, data, user)


@router.post("/{timesheet_id}/reject")
async def reject_timesheet(
    project_id: str,
    timesheet_id: str,
    data: TimesheetReview = TimesheetReview(),
    user: dict = Depends(require_permission("timesheets.approve"))
):
    return await _review(project_id, timesheet_id, TimesheetStatus.REJECTED.value, data, user)
