"""
CRM Projects - Project list helpers

Visibility rule: admins see every project, everybody else only
the projects they own (user_id).
"""

from typing import Dict, Iterable, List, Optional

SEARCH_FIELDS = ("name", "description", "order_number", "company_name")


def is_admin(user: dict) -> bool:
    return user.get("role") == "admin"


def build_visibility_filter(user: dict) -> Dict:
    """MongoDB filter restricting projects to what the user may see"""
    if is_admin(user):
        return {}
    return {"user_id": user.get("id")}


def can_access_project(user: dict, project: dict) -> bool:
    return is_admin(user) or project.get("user_id") == user.get("id")


def filter_projects(
    projects: Iterable[dict],
    status: Optional[str] = None,
    search: Optional[str] = None
) -> List[dict]:
    """
    Status filter ("all" or None = no filter) then case-insensitive
    search on name, description, order number and company name.
    """
    filtered = list(projects)

    if status and status != "all":
        filtered = [p for p in filtered if p.get("status") == status]

    if search:
        needle = search.lower()
        filtered = [
            p for p in filtered
            if any(needle in (p.get(field) or "").lower() for field in SEARCH_FIELDS)
        ]

    return filtered
