"""
CRM Projects - Task tree (WBS)

Flat task documents -> nested tree through parent_task_id.
A task whose parent is missing from the set is shown as a root.
"""

from typing import Dict, Iterable, List, Set

from models.task import TaskStatus


def build_task_tree(tasks: Iterable[dict]) -> List[dict]:
    """
    Returns root tasks, each with a "children" list (recursively).
    Siblings keep their sort_order. Input documents are not mutated.
    """
    ordered = sorted(tasks, key=lambda t: t.get("sort_order") or 0)
    nodes: Dict[str, dict] = {}
    for task in ordered:
        nodes[task["id"]] = {**task, "children": []}

    roots = []
    for task in ordered:
        node = nodes[task["id"]]
        parent_id = task.get("parent_task_id")
        if parent_id and parent_id in nodes and parent_id != task["id"]:
            nodes[parent_id]["children"].append(node)
        else:
            roots.append(node)
    return roots


def collect_descendant_ids(tasks: Iterable[dict], root_id: str) -> Set[str]:
    """root_id plus every task below it"""
    children: Dict[str, List[str]] = {}
    for task in tasks:
        parent_id = task.get("parent_task_id")
        if parent_id:
            children.setdefault(parent_id, []).append(task["id"])

    found = {root_id}
    stack = [root_id]
    while stack:
        current = stack.pop()
        for child_id in children.get(current, []):
            if child_id not in found:
                found.add(child_id)
                stack.append(child_id)
    return found


def creates_cycle(tasks: Iterable[dict], task_id: str, new_parent_id: str) -> bool:
    """True if moving task_id under new_parent_id would loop the tree"""
    return new_parent_id in collect_descendant_ids(tasks, task_id)


def task_rollup(tasks: Iterable[dict]) -> Dict:
    """Hours and progress totals shown above the task list"""
    tasks = list(tasks)
    by_status = {s.value: 0 for s in TaskStatus}
    estimated = 0.0
    actual = 0.0
    progress_sum = 0.0

    for task in tasks:
        estimated += task.get("estimated_hours") or 0
        actual += task.get("actual_hours") or 0
        progress_sum += task.get("progress_percentage") or 0
        status = task.get("status")
        if status in by_status:
            by_status[status] += 1

    return {
        "count": len(tasks),
        "estimated_hours": estimated,
        "actual_hours": actual,
        "avg_progress": progress_sum / len(tasks) if tasks else 0.0,
        "by_status": by_status,
    }
