"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  CRM Projects - Routes Projects                                              ║
║                                                                              ║
║  CRUD + portfolio stats + Earned Value report                                ║
║  Visibility: admin sees all projects, other users only their own             ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from config import db, now_iso
from models import ProjectCreate, ProjectUpdate, ProjectSnapshot, check_date_range
from services.evm import evm_report, portfolio_stats, compute
from services.audit import log_event
from services.permissions import require_permission
from services.projects import build_visibility_filter, can_access_project, filter_projects

logger = logging.getLogger("projects")

router = APIRouter(prefix="/projects", tags=["Projects"])

AUDITED_FIELDS = ("status", "budget", "actual_cost", "planned_value", "earned_value", "progress_percentage")


async def get_project_or_404(project_id: str, user: dict) -> dict:
    """Loads a project the user is allowed to see, 404 otherwise"""
    project = await db.projects.find_one({"id": project_id}, {"_id": 0})
    if not project or not can_access_project(user, project):
        raise HTTPException(status_code=404, detail="Progetto non trovato")
    return project


@router.get("")
async def list_projects(
    status: Optional[str] = Query(None, description="planning, in_progress, ... o 'all'"),
    search: Optional[str] = None,
    user: dict = Depends(require_permission("projects.view"))
):
    """Projects visible to the user, newest first, each with cpi/spi/health"""
    projects = await db.projects.find(
        build_visibility_filter(user), {"_id": 0}
    ).sort("created_at", -1).to_list(None)

    projects = filter_projects(projects, status=status, search=search)

    for project in projects:
        result = compute(ProjectSnapshot.from_document(project))
        project["cpi"] = result.cpi
        project["spi"] = result.spi
        project["health"] = result.health.value

    return {"projects": projects, "count": len(projects)}


@router.get("/stats")
async def get_projects_stats(user: dict = Depends(require_permission("projects.view"))):
    """Portfolio totals over every project visible to the user"""
    projects = await db.projects.find(
        build_visibility_filter(user), {"_id": 0}
    ).to_list(None)
    return portfolio_stats(projects)


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    user: dict = Depends(require_permission("projects.view"))
):
    project = await get_project_or_404(project_id, user)
    return {"project": project}


@router.get("/{project_id}/evm")
async def get_project_evm(
    project_id: str,
    user: dict = Depends(require_permission("projects.view"))
):
    """Earned Value Management report, recomputed on every call"""
    project = await get_project_or_404(project_id, user)
    report = evm_report(ProjectSnapshot.from_document(project))
    report["project_id"] = project_id
    return report


@router.post("")
async def create_project(
    data: ProjectCreate,
    user: dict = Depends(require_permission("projects.create"))
):
    now = now_iso()
    project = {
        "id": str(uuid.uuid4()),
        "user_id": user.get("id"),
        **data.model_dump(mode="json"),
        "created_at": now,
        "updated_at": now,
    }

    await db.projects.insert_one(project)
    project.pop("_id", None)

    logger.info(f"[PROJECT] created {project['id']} '{project['name']}' by {user.get('email')}")
    await log_event(
        action="project_create",
        entity_type="project",
        entity_id=project["id"],
        user=user.get("email"),
        details={"name": project["name"], "budget": project["budget"]},
        related={"order_id": project.get("order_id")}
    )

    return {"success": True, "project": project}


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    user: dict = Depends(require_permission("projects.edit"))
):
    project = await get_project_or_404(project_id, user)

    update_data = {k: v for k, v in data.model_dump(mode="json").items() if v is not None}

    merged = {**project, **update_data}
    try:
        check_date_range(merged.get("planned_start_date"), merged.get("planned_end_date"), "Pianificazione")
        check_date_range(merged.get("start_date"), merged.get("end_date"), "Esecuzione")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    update_data["updated_at"] = now_iso()

    await db.projects.update_one({"id": project_id}, {"$set": update_data})

    # Audit status and EVM inputs only
    details = {
        field: {"old_value": project.get(field), "new_value": update_data[field]}
        for field in AUDITED_FIELDS
        if field in update_data and update_data[field] != project.get(field)
    }
    if details:
        await log_event(
            action="project_update",
            entity_type="project",
            entity_id=project_id,
            user=user.get("email"),
            details=details,
            related={"project_name": merged.get("name")}
        )

    updated = await db.projects.find_one({"id": project_id}, {"_id": 0})
    return {"success": True, "project": updated}


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user: dict = Depends(require_permission("projects.delete"))
):
    """Deletes a project together with its tasks, dependencies and timesheets"""
    project = await get_project_or_404(project_id, user)

    tasks = await db.project_tasks.delete_many({"project_id": project_id})
    timesheets = await db.project_timesheets.delete_many({"project_id": project_id})
    dependencies = await db.task_dependencies.delete_many({"project_id": project_id})
    await db.projects.delete_one({"id": project_id})

    logger.info(
        f"[PROJECT] deleted {project_id} ({tasks.deleted_count} tasks, "
        f"{timesheets.deleted_count} timesheets) by {user.get('email')}"
    )
    await log_event(
        action="project_delete",
        entity_type="project",
        entity_id=project_id,
        user=user.get("email"),
        details={
            "name": project.get("name"),
            "tasks_deleted": tasks.deleted_count,
            "timesheets_deleted": timesheets.deleted_count,
            "dependencies_deleted": dependencies.deleted_count,
        }
    )

    return {"success": True, "deleted_id": project_id}
