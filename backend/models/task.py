"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  CRM Projects - Task model (WBS)                                             ║
║                                                                              ║
║  Tasks belong to one project and may nest through parent_task_id            ║
║  Assignment: a user, a company (subcontractor) or a named group              ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .project import parse_iso_date, check_date_range


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


TASK_DATE_FIELDS = ("start_date", "end_date", "planned_start_date", "planned_end_date")


class TaskCreate(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    description: Optional[str] = ""
    parent_task_id: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM

    assigned_to_user_id: Optional[str] = None
    assigned_to_company_id: Optional[str] = None
    assigned_to_group: Optional[str] = None

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    planned_start_date: Optional[str] = None
    planned_end_date: Optional[str] = None

    estimated_hours: float = Field(default=0.0, ge=0)
    actual_hours: float = Field(default=0.0, ge=0)
    progress_percentage: float = Field(default=0.0, ge=0, le=100)
    sort_order: int = 0

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Il nome dell'attività è obbligatorio")
        return v.strip()

    @field_validator(*TASK_DATE_FIELDS)
    @classmethod
    def validate_dates(cls, v):
        if v:
            try:
                parse_iso_date(v)
            except ValueError:
                raise ValueError(f"Data non valida: {v}")
        return v

    @model_validator(mode="after")
    def validate_ranges(self):
        check_date_range(self.planned_start_date, self.planned_end_date, "Pianificazione")
        check_date_range(self.start_date, self.end_date, "Esecuzione")
        return self


class TaskUpdate(BaseModel):
    """Partial task update, parent_task_id "" moves the task back to the root"""
    model_config = ConfigDict(allow_inf_nan=False)

    name: Optional[str] = None
    description: Optional[str] = None
    parent_task_id: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None

    assigned_to_user_id: Optional[str] = None
    assigned_to_company_id: Optional[str] = None
    assigned_to_group: Optional[str] = None

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    planned_start_date: Optional[str] = None
    planned_end_date: Optional[str] = None

    estimated_hours: Optional[float] = Field(default=None, ge=0)
    actual_hours: Optional[float] = Field(default=None, ge=0)
    progress_percentage: Optional[float] = Field(default=None, ge=0, le=100)
    sort_order: Optional[int] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Il nome dell'attività non può essere vuoto")
        return v.strip() if v else v

    @field_validator(*TASK_DATE_FIELDS)
    @classmethod
    def validate_dates(cls, v):
        if v:
            try:
                parse_iso_date(v)
            except ValueError:
                raise ValueError(f"Data non valida: {v}")
        return v


# ════════════════════════════════════════════════════════════════════════════
# DEPENDENCIES
# ════════════════════════════════════════════════════════════════════════════

class DependencyType(str, Enum):
    FINISH_TO_START = "FS"   # B starts after A finishes
    START_TO_START = "SS"    # B starts after A starts
    FINISH_TO_FINISH = "FF"  # B finishes after A finishes
    START_TO_FINISH = "SF"   # B finishes after A starts


class TaskDependencyCreate(BaseModel):
    """Link predecessor -> successor, both tasks of the same project"""
    predecessor_task_id: str
    successor_task_id: str
    dependency_type: DependencyType = DependencyType.FINISH_TO_START
    lag_days: int = 0

    @field_validator('predecessor_task_id', 'successor_task_id')
    @classmethod
    def validate_task_ids(cls, v):
        if not v or not v.strip():
            raise ValueError("Seleziona entrambe le attività")
        return v.strip()

    @model_validator(mode="after")
    def validate_not_self(self):
        if self.predecessor_task_id == self.successor_task_id:
            raise ValueError("Un'attività non può dipendere da se stessa")
        return self
