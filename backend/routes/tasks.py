"""
CRM Projects - Routes Tasks
Project work breakdown: tasks nested through parent_task_id.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException

from config import db, now_iso
from models import TaskCreate, TaskUpdate, check_date_range
from routes.projects import get_project_or_404
from services.permissions import require_permission
from services.task_tree import build_task_tree, collect_descendant_ids, creates_cycle, task_rollup

router = APIRouter(prefix="/projects/{project_id}/tasks", tags=["Tasks"])


async def _project_tasks(project_id: str):
    return await db.project_tasks.find(
        {"project_id": project_id}, {"_id": 0}
    ).sort("sort_order", 1).to_list(None)


async def _company_names(tasks) -> dict:
    company_ids = list({t["assigned_to_company_id"] for t in tasks if t.get("assigned_to_company_id")})
    if not company_ids:
        return {}
    companies = await db.companies.find(
        {"id": {"$in": company_ids}}, {"_id": 0, "id": 1, "name": 1}
    ).to_list(len(company_ids))
    return {c["id"]: c.get("name") for c in companies}


@router.get("")
async def list_tasks(
    project_id: str,
    user: dict = Depends(require_permission("projects.view"))
):
    """Task tree plus hours/progress rollup"""
    await get_project_or_404(project_id, user)
    tasks = await _project_tasks(project_id)

    names = await _company_names(tasks)
    for task in tasks:
        task["assigned_company_name"] = names.get(task.get("assigned_to_company_id"))

    return {
        "tasks": build_task_tree(tasks),
        "rollup": task_rollup(tasks),
        "count": len(tasks),
    }


@router.post("")
async def create_task(
    project_id: str,
    data: TaskCreate,
    user: dict = Depends(require_permission("tasks.manage"))
):
    await get_project_or_404(project_id, user)

    if data.parent_task_id:
        parent = await db.project_tasks.find_one({"id": data.parent_task_id, "project_id": project_id})
        if not parent:
            raise HTTPException(status_code=400, detail="Attività padre non trovata in questo progetto")

    now = now_iso()
    task = {
        "id": str(uuid.uuid4()),
        "project_id": project_id,
        **data.model_dump(mode="json"),
        "created_by": user.get("id"),
        "created_at": now,
        "updated_at": now,
    }
    await db.project_tasks.insert_one(task)
    task.pop("_id", None)

    return {"success": True, "task": task}


@router.put("/{task_id}")
async def update_task(
    project_id: str,
    task_id: str,
    data: TaskUpdate,
    user: dict = Depends(require_permission("tasks.manage"))
):
    await get_project_or_404(project_id, user)

    task = await db.project_tasks.find_one({"id": task_id, "project_id": project_id}, {"_id": 0})
    if not task:
        raise HTTPException(status_code=404, detail="Attività non trovata")

    update_data = {k: v for k, v in data.model_dump(mode="json").items() if v is not None}

    merged = {**task, **update_data}
    try:
        check_date_range(merged.get("planned_start_date"), merged.get("planned_end_date"), "Pianificazione")
        check_date_range(merged.get("start_date"), merged.get("end_date"), "Esecuzione")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    new_parent = update_data.get("parent_task_id")
    if new_parent == "":
        update_data["parent_task_id"] = None
    elif new_parent:
        if new_parent == task_id:
            raise HTTPException(status_code=400, detail="Un'attività non può essere padre di se stessa")
        tasks = await _project_tasks(project_id)
        if new_parent not in {t["id"] for t in tasks}:
            raise HTTPException(status_code=400, detail="Attività padre non trovata in questo progetto")
        if creates_cycle(tasks, task_id, new_parent):
            raise HTTPException(status_code=400, detail="Spostamento non valido: creerebbe un ciclo")

    update_data["updated_at"] = now_iso()
    await db.project_tasks.update_one({"id": task_id}, {"$set": update_data})

    updated = await db.project_tasks.find_one({"id": task_id}, {"_id": 0})
    return {"success": True, "task": updated}


@router.delete("/{task_id}")
async def delete_task(
    project_id: str,
    task_id: str,
    user: dict = Depends(require_permission("tasks.manage"))
):
    """Deletes the task, all of its sub-tasks and every dependency touching them"""
    await get_project_or_404(project_id, user)

    tasks = await _project_tasks(project_id)
    if task_id not in {t["id"] for t in tasks}:
        raise HTTPException(status_code=404, detail="Attività non trovata")

    to_delete = list(collect_descendant_ids(tasks, task_id))
    result = await db.project_tasks.delete_many({"id": {"$in": to_delete}})
    await db.task_dependencies.delete_many({"$or": [
        {"predecessor_task_id": {"$in": to_delete}},
        {"successor_task_id": {"$in": to_delete}},
    ]})

    return {"success": True, "deleted_ids": sorted(to_delete), "deleted_count": result.deleted_count}
