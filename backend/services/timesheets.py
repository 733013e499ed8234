"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  CRM Projects - Timesheet review                                             ║
║                                                                              ║
║  pending -> approved | rejected                                              ║
║  approved and rejected are TERMINAL                                          ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
from typing import Dict, Iterable

from models.timesheet import TimesheetStatus

logger = logging.getLogger("timesheets")


VALID_TIMESHEET_TRANSITIONS = {
    TimesheetStatus.PENDING.value: [TimesheetStatus.APPROVED.value, TimesheetStatus.REJECTED.value],
    TimesheetStatus.APPROVED.value: [],  # TERMINAL
    TimesheetStatus.REJECTED.value: [],  # TERMINAL
}


class TimesheetTransitionError(Exception):
    """Raised when a timesheet status change is not allowed"""
    pass


def validate_timesheet_transition(current: str, target: str) -> None:
    allowed = VALID_TIMESHEET_TRANSITIONS.get(current)
    if allowed is None:
        raise TimesheetTransitionError(f"Stato timesheet sconosciuto: {current}")
    if target not in allowed:
        logger.warning(f"[TIMESHEET] blocked transition {current} -> {target}")
        raise TimesheetTransitionError(
            f"Transizione non consentita: {current} -> {target}"
        )


def compute_total_cost(hours: float, hourly_rate: float) -> float:
    return round(hours * hourly_rate, 2)


def summarize_timesheets(timesheets: Iterable[dict]) -> Dict:
    total_hours = 0.0
    total_cost = 0.0
    approved_hours = 0.0
    pending_count = 0

    for ts in timesheets:
        hours = ts.get("hours") or 0
        total_hours += hours
        total_cost += ts.get("total_cost") or 0
        if ts.get("status") == TimesheetStatus.APPROVED.value:
            approved_hours += hours
        elif ts.get("status") == TimesheetStatus.PENDING.value:
            pending_count += 1

    return {
        "total_hours": total_hours,
        "total_cost": round(total_cost, 2),
        "approved_hours": approved_hours,
        "pending_count": pending_count,
    }
