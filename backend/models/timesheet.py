"""
CRM Projects - Timesheet model
Hours booked on a project (optionally on one task), approved by a moderator.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .project import parse_iso_date


class TimesheetStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


ACTIVITY_TYPES = {
    "development": "Sviluppo",
    "design": "Design",
    "analysis": "Analisi",
    "testing": "Testing",
    "meeting": "Riunione",
    "documentation": "Documentazione",
    "support": "Supporto",
    "management": "Gestione",
    "other": "Altro",
}

DEFAULT_HOURLY_RATE = 50.0


class TimesheetCreate(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    task_id: Optional[str] = None
    work_date: str
    hours: float = Field(default=1.0, gt=0, le=24)
    activity_type: str = "development"
    hourly_rate: float = Field(default=DEFAULT_HOURLY_RATE, ge=0)
    description: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('work_date')
    @classmethod
    def validate_work_date(cls, v):
        if not v:
            raise ValueError("La data di lavoro è obbligatoria")
        try:
            parse_iso_date(v)
        except ValueError:
            raise ValueError(f"Data non valida: {v}")
        return v[:10]

    @field_validator('activity_type')
    @classmethod
    def validate_activity_type(cls, v):
        if v not in ACTIVITY_TYPES:
            raise ValueError(f"Tipo attività non valido: {v}. Validi: {list(ACTIVITY_TYPES)}")
        return v

    @field_validator('description', 'notes')
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v


class TimesheetReview(BaseModel):
    """Optional comment when approving or rejecting"""
    reason: Optional[str] = ""
