"""
CRM Projects - Routes Task Dependencies
FS/SS/FF/SF links between tasks of one project, with lag in days.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException

from config import db, now_iso
from models import TaskDependencyCreate
from routes.projects import get_project_or_404
from services.permissions import require_permission
from services.task_dependencies import dependency_creates_cycle, dependency_exists

logger = logging.getLogger("dependencies")

router = APIRouter(prefix="/projects/{project_id}/dependencies", tags=["Dependencies"])


async def _project_dependencies(project_id: str):
    return await db.task_dependencies.find(
        {"project_id": project_id}, {"_id": 0}
    ).sort("created_at", 1).to_list(None)


@router.get("")
async def list_dependencies(
    project_id: str,
    user: dict = Depends(require_permission("projects.view"))
):
    """Links with the names of both tasks, for the Gantt view"""
    await get_project_or_404(project_id, user)
    dependencies = await _project_dependencies(project_id)

    tasks = await db.project_tasks.find(
        {"project_id": project_id}, {"_id": 0, "id": 1, "name": 1}
    ).to_list(None)
    names = {t["id"]: t.get("name") for t in tasks}
    for dep in dependencies:
        dep["predecessor_name"] = names.get(dep["predecessor_task_id"])
        dep["successor_name"] = names.get(dep["successor_task_id"])

    return {"dependencies": dependencies, "count": len(dependencies)}


@router.post("")
async def create_dependency(
    project_id: str,
    data: TaskDependencyCreate,
    user: dict = Depends(require_permission("tasks.manage"))
):
    await get_project_or_404(project_id, user)

    found = await db.project_tasks.count_documents({
        "id": {"$in": [data.predecessor_task_id, data.successor_task_id]},
        "project_id": project_id,
    })
    if found != 2:
        raise HTTPException(status_code=400, detail="Le attività devono appartenere allo stesso progetto")

    existing = await _project_dependencies(project_id)
    if dependency_exists(existing, data.predecessor_task_id, data.successor_task_id):
        raise HTTPException(status_code=400, detail="Questa dipendenza esiste già")
    if dependency_creates_cycle(existing, data.predecessor_task_id, data.successor_task_id):
        raise HTTPException(status_code=400, detail="Dipendenza ciclica rilevata")

    dependency = {
        "id": str(uuid.uuid4()),
        "project_id": project_id,
        **data.model_dump(mode="json"),
        "created_by": user.get("id"),
        "created_at": now_iso(),
    }
    await db.task_dependencies.insert_one(dependency)
    dependency.pop("_id", None)

    logger.info(
        f"[DEPENDENCY] {dependency['predecessor_task_id']} -{dependency['dependency_type']}-> "
        f"{dependency['successor_task_id']} on project {project_id}"
    )
    return {"success": True, "dependency": dependency}


@router.delete("/{dependency_id}")
async def delete_dependency(
    project_id: str,
    dependency_id: str,
    user: dict = Depends(require_permission("tasks.manage"))
):
    await get_project_or_404(project_id, user)

    result = await db.task_dependencies.delete_one({"id": dependency_id, "project_id": project_id})
    if not result.deleted_count:
        raise HTTPException(status_code=404, detail="Dipendenza non trovata")
    return {"success": True, "deleted_id": dependency_id}
