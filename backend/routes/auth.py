"""
CRM Projects - Routes Auth
Bearer sessions, current user resolution and user administration.

Sessions live in db.sessions ({token, user_id, expires_at}), one per login.
"""

import logging
import uuid
from datetime import datetime, timezone, timedelta
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from config import db, hash_password, generate_token, now_iso, SESSION_DAYS
from models.auth import UserLogin, UserCreate, UserUpdate
from services.audit import log_activity, log_event, get_activity_logs
from services.permissions import (
    ALL_PERMISSION_KEYS,
    ROLE_PRESETS,
    VALID_ROLES,
    get_preset_permissions,
    require_permission,
)

logger = logging.getLogger("auth")

router = APIRouter(prefix="/auth", tags=["Auth"])
bearer = HTTPBearer(auto_error=False)

PUBLIC_USER_PROJECTION = {"_id": 0, "password": 0}


def _with_permissions(user: dict) -> dict:
    # Accounts created before per-user permissions fall back to their role preset
    if not user.get("permissions"):
        user["permissions"] = get_preset_permissions(user.get("role", "user"))
    return user


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer)):
    """User behind the bearer token, 401 when missing or expired"""
    if not credentials:
        raise HTTPException(status_code=401, detail="Non autenticato")

    session = await db.sessions.find_one({
        "token": credentials.credentials,
        "expires_at": {"$gt": now_iso()}
    })
    if not session:
        raise HTTPException(status_code=401, detail="Sessione scaduta")

    user = await db.users.find_one({"id": session["user_id"]}, PUBLIC_USER_PROJECTION)
    if not user:
        raise HTTPException(status_code=401, detail="Utente non trovato")
    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account disattivato")

    return _with_permissions(user)


# ==================== SESSION ====================

@router.post("/login")
async def login(data: UserLogin, request: Request):
    email = data.email.lower().strip()
    user = await db.users.find_one({"email": email}, {"_id": 0})

    if not user or user.get("password") != hash_password(data.password):
        logger.warning(f"[AUTH] failed login for {email}")
        raise HTTPException(status_code=401, detail="Email o password non corretti")
    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account disattivato")

    token = generate_token()
    await db.sessions.insert_one({
        "token": token,
        "user_id": user["id"],
        "created_at": now_iso(),
        "expires_at": (datetime.now(timezone.utc) + timedelta(days=SESSION_DAYS)).isoformat(),
    })

    await log_activity(
        user=user,
        action="login",
        entity_type="user",
        entity_id=user["id"],
        ip_address=request.client.host if request.client else None
    )

    user = _with_permissions(user)
    return {
        "token": token,
        "user": {
            "id": user["id"],
            "email": user["email"],
            "full_name": user.get("full_name", ""),
            "role": user.get("role", "user"),
            "permissions": user["permissions"],
        }
    }


@router.post("/logout")
async def logout(
    user: dict = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(bearer)
):
    if credentials:
        await db.sessions.delete_one({"token": credentials.credentials})
    await log_activity(user=user, action="logout", entity_type="user", entity_id=user.get("id"))
    return {"success": True}


@router.get("/me")
async def get_me(user: dict = Depends(get_current_user)):
    return user


# ==================== USERS (users.manage) ====================

@router.get("/users")
async def list_users(user: dict = Depends(require_permission("users.manage"))):
    users = await db.users.find({}, PUBLIC_USER_PROJECTION).sort("email", 1).to_list(500)
    return {"users": users, "count": len(users)}


@router.post("/users")
async def create_user(data: UserCreate, user: dict = Depends(require_permission("users.manage"))):
    if await db.users.find_one({"email": data.email}):
        raise HTTPException(status_code=400, detail="Questa email è già registrata")

    new_user = {
        "id": str(uuid.uuid4()),
        "email": data.email,
        "password": hash_password(data.password),
        "full_name": data.full_name,
        "role": data.role,
        "permissions": data.permissions or get_preset_permissions(data.role),
        "is_active": True,
        "created_at": now_iso(),
        "created_by": user.get("id"),
    }
    await db.users.insert_one(new_user)

    await log_activity(
        user=user,
        action="create_user",
        entity_type="user",
        entity_id=new_user["id"],
        entity_name=new_user["email"],
        details={"role": data.role}
    )

    return {"success": True, "user": {k: v for k, v in new_user.items() if k not in ("_id", "password")}}


def _user_changes(data: UserUpdate) -> dict:
    """$set payload for a user update, a role change without explicit permissions resets them"""
    changes = {}
    if data.full_name is not None:
        changes["full_name"] = data.full_name
    if data.role is not None:
        changes["role"] = data.role
        changes["permissions"] = get_preset_permissions(data.role)
    if data.permissions is not None:
        changes["permissions"] = data.permissions
    if data.is_active is not None:
        changes["is_active"] = data.is_active
    return changes


@router.put("/users/{user_id}")
async def update_user(
    user_id: str,
    data: UserUpdate,
    user: dict = Depends(require_permission("users.manage"))
):
    target = await db.users.find_one({"id": user_id}, {"_id": 0})
    if not target:
        raise HTTPException(status_code=404, detail="Utente non trovato")

    old_role: Optional[str] = target.get("role")
    role_changed = data.role is not None and data.role != old_role
    if role_changed and user_id == user.get("id"):
        raise HTTPException(status_code=400, detail="Non puoi modificare il tuo ruolo")

    changes = _user_changes(data)
    await db.users.update_one({"id": user_id}, {"$set": {**changes, "updated_at": now_iso()}})

    await log_activity(
        user=user,
        action="update_user",
        entity_type="user",
        entity_id=user_id,
        entity_name=target.get("email"),
        details=changes
    )
    if role_changed:
        logger.info(f"[AUTH] role {target.get('email')}: {old_role} -> {data.role} by {user.get('email')}")
        await log_event(
            action="role_change",
            entity_type="user",
            entity_id=user_id,
            user=user.get("email"),
            details={"old_value": old_role, "new_value": data.role},
            related={"target_email": target.get("email")}
        )

    updated = await db.users.find_one({"id": user_id}, PUBLIC_USER_PROJECTION)
    return {"success": True, "user": updated}


@router.delete("/users/{user_id}")
async def deactivate_user(user_id: str, user: dict = Depends(require_permission("users.manage"))):
    """Soft delete: the account is flagged inactive and its sessions dropped"""
    if user_id == user.get("id"):
        raise HTTPException(status_code=400, detail="Non puoi disattivare il tuo account")

    target = await db.users.find_one({"id": user_id}, {"_id": 0, "email": 1})
    if not target:
        raise HTTPException(status_code=404, detail="Utente non trovato")

    await db.users.update_one({"id": user_id}, {"$set": {"is_active": False, "deactivated_at": now_iso()}})
    dropped = await db.sessions.delete_many({"user_id": user_id})

    await log_activity(
        user=user,
        action="deactivate_user",
        entity_type="user",
        entity_id=user_id,
        entity_name=target.get("email"),
        details={"sessions_dropped": dropped.deleted_count}
    )
    return {"success": True}


@router.get("/permission-keys")
async def list_permission_keys(user: dict = Depends(require_permission("users.manage"))):
    """Keys and presets for the user management screen"""
    return {"keys": ALL_PERMISSION_KEYS, "presets": ROLE_PRESETS, "roles": VALID_ROLES}


@router.get("/activity-logs")
async def list_activity_logs(
    user_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = 100,
    skip: int = 0,
    user: dict = Depends(require_permission("activity.view"))
):
    return await get_activity_logs(user_id, entity_type, action, limit, skip)
