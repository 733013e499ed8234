"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  CRM Projects - Earned Value Management models                               ║
║                                                                              ║
║  ProjectSnapshot: read-only budget/progress state of one project             ║
║  EVMResult: derived indices, never persisted                                 ║
║                                                                              ║
║  RULE: cpi/spi == 0 means "not calculable yet", tcpi None means undefined    ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class HealthStatus(str, Enum):
    """Project health bands, best to worst"""
    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class ProjectSnapshot(BaseModel):
    """
    Financial/schedule state of a project at evaluation time.

    No validation here: amounts are checked by ProjectCreate/ProjectUpdate
    before they are stored.
    """
    model_config = ConfigDict(frozen=True)

    budget: float = 0.0              # BAC
    actual_cost: float = 0.0         # AC
    planned_value: float = 0.0       # PV
    earned_value: float = 0.0        # EV
    progress_percentage: float = 0.0

    @classmethod
    def from_document(cls, project: dict) -> "ProjectSnapshot":
        """Build a snapshot from a stored project, missing amounts count as 0"""
        return cls(
            budget=project.get("budget") or 0,
            actual_cost=project.get("actual_cost") or 0,
            planned_value=project.get("planned_value") or 0,
            earned_value=project.get("earned_value") or 0,
            progress_percentage=project.get("progress_percentage") or 0,
        )


class EVMResult(BaseModel):
    """Earned Value metrics for one snapshot"""
    model_config = ConfigDict(frozen=True)

    cpi: float
    spi: float
    cv: float
    sv: float
    eac: float
    etc: float
    vac: float
    tcpi: Optional[float] = None
    health: HealthStatus
