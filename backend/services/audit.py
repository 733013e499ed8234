"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  CRM Projects - Audit trails                                                 ║
║                                                                              ║
║  event_log      business changes: project_create/update/delete,             ║
║                 timesheet_approve/reject, role_change                        ║
║  activity_logs  who did what on accounts: login, logout, *_user              ║
║                                                                              ║
║  Both collections are append-only, documents carry a uuid id and an ISO      ║
║  created_at, reads are newest first.                                         ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import re
import uuid
from typing import Dict, Optional

from config import db, now_iso


# ════════════════════════════════════════════════════════════════════════════
# EVENT LOG
# ════════════════════════════════════════════════════════════════════════════

async def log_event(
    action: str,
    entity_type: str,
    entity_id: str,
    user: str = "system",
    details: Optional[dict] = None,
    related: Optional[dict] = None
) -> dict:
    """
    Append one event.

    entity_type: project | task | timesheet | user
    user: email of whoever triggered the change
    details: free-form, updates use {field: {old_value, new_value}}
    related: ids of linked entities (project_id, user_id, ...)
    """
    event = {
        "id": str(uuid.uuid4()),
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "user": user,
        "details": details or {},
        "related": related or {},
        "created_at": now_iso(),
    }
    await db.event_log.insert_one(event)
    event.pop("_id", None)
    return event


def build_event_query(
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    project_id: Optional[str] = None,
    user: Optional[str] = None
) -> Dict:
    """
    Mongo filter for the event log screen.
    project_id also matches related events, user is matched literally (case-insensitive).
    """
    query = {}
    if action:
        query["action"] = action
    if entity_type:
        query["entity_type"] = entity_type
    if entity_id:
        query["entity_id"] = entity_id
    if project_id:
        query["$or"] = [{"entity_id": project_id}, {"related.project_id": project_id}]
    if user:
        query["user"] = {"$regex": re.escape(user), "$options": "i"}
    return query


# ════════════════════════════════════════════════════════════════════════════
# ACTIVITY LOG
# ════════════════════════════════════════════════════════════════════════════

async def log_activity(
    user: dict,
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    entity_name: Optional[str] = None,
    details: Optional[dict] = None,
    ip_address: Optional[str] = None
) -> dict:
    entry = {
        "id": str(uuid.uuid4()),
        "user_id": user.get("id", "system"),
        "user_email": user.get("email", "system"),
        "user_name": user.get("full_name", "Sistema"),
        "action": action,
        "entity_type": entity_type,
        "entity_id": entity_id,
        "entity_name": entity_name,
        "details": details or {},
        "ip_address": ip_address,
        "created_at": now_iso(),
    }
    await db.activity_logs.insert_one(entry)
    entry.pop("_id", None)
    return entry


async def get_activity_logs(
    user_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100,
    skip: int = 0
) -> Dict:
    query = {k: v for k, v in (("user_id", user_id), ("entity_type", entity_type), ("action", action)) if v}

    logs = await db.activity_logs.find(query, {"_id": 0}) \
        .sort("created_at", -1) \
        .skip(skip) \
        .limit(limit) \
        .to_list(limit)
    total = await db.activity_logs.count_documents(query)

    return {"logs": logs, "total": total, "limit": limit, "skip": skip}
