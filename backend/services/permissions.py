"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  CRM Projects - Permissions                                                  ║
║                                                                              ║
║  Each user document carries a {key: bool} map, that map is the authority.    ║
║  Roles only pick the initial map (ROLE_PRESETS). Admins always pass.         ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
from typing import Dict

from fastapi import Depends, HTTPException

logger = logging.getLogger("permissions")


ALL_PERMISSION_KEYS = [
    "projects.view",
    "projects.create",
    "projects.edit",
    "projects.delete",
    "tasks.manage",
    "timesheets.submit",
    "timesheets.approve",
    "activity.view",
    "users.manage",
]

_USER_GRANTS = {
    "projects.view", "projects.create", "projects.edit",
    "tasks.manage",
    "timesheets.submit",
}
_MODERATOR_GRANTS = _USER_GRANTS | {"timesheets.approve", "activity.view"}


def _preset(granted) -> Dict[str, bool]:
    return {key: key in granted for key in ALL_PERMISSION_KEYS}


ROLE_PRESETS: Dict[str, Dict[str, bool]] = {
    "admin": _preset(ALL_PERMISSION_KEYS),
    "moderator": _preset(_MODERATOR_GRANTS),
    "user": _preset(_USER_GRANTS),
}

VALID_ROLES = list(ROLE_PRESETS)


def get_preset_permissions(role: str) -> Dict[str, bool]:
    """Copy of the role preset, unknown roles get the "user" preset"""
    return dict(ROLE_PRESETS.get(role, ROLE_PRESETS["user"]))


def user_has_permission(user: dict, key: str) -> bool:
    if user.get("role") == "admin":
        return True
    return (user.get("permissions") or {}).get(key) is True


def require_permission(permission_key: str):
    """
    Dependency factory, resolves the current user then checks one key.
    Usage: user: dict = Depends(require_permission("projects.view"))
    """
    # routes.auth imports this module, the import has to stay local
    from routes.auth import get_current_user

    async def _check(user: dict = Depends(get_current_user)):
        if not user_has_permission(user, permission_key):
            logger.warning(
                f"[PERMISSION_DENIED] user={user.get('email')} "
                f"key={permission_key} role={user.get('role')}"
            )
            raise HTTPException(status_code=403, detail=f"Permesso richiesto: {permission_key}")
        return user

    return _check
