"""
CRM Projects - Task dependencies

Directed links predecessor -> successor inside one project.
The link graph must stay acyclic: A -> B -> A is rejected.
"""

from typing import Dict, Iterable, List, Set


def successors_map(dependencies: Iterable[dict]) -> Dict[str, List[str]]:
    graph: Dict[str, List[str]] = {}
    for dep in dependencies:
        graph.setdefault(dep["predecessor_task_id"], []).append(dep["successor_task_id"])
    return graph


def dependency_exists(dependencies: Iterable[dict], predecessor_id: str, successor_id: str) -> bool:
    return any(
        d["predecessor_task_id"] == predecessor_id and d["successor_task_id"] == successor_id
        for d in dependencies
    )


def dependency_creates_cycle(dependencies: Iterable[dict], predecessor_id: str, successor_id: str) -> bool:
    """True if successor_id already reaches predecessor_id, so the new link closes a loop"""
    graph = successors_map(dependencies)
    seen: Set[str] = set()
    stack = [successor_id]
    while stack:
        current = stack.pop()
        if current == predecessor_id:
            return True
        if current in seen:
            continue
        seen.add(current)
        stack.extend(graph.get(current, []))
    return False
