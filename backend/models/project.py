"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  CRM Projects - Project model                                                ║
║                                                                              ║
║  A project usually comes from a confirmed order (order_id/order_number)      ║
║  and carries the EVM inputs: budget, actual_cost, planned_value,             ║
║  earned_value, progress_percentage                                           ║
║                                                                              ║
║  RULE: amounts >= 0, progress in [0, 100], validated here and only here      ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from datetime import date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


VALID_PROJECT_STATUSES = [s.value for s in ProjectStatus]

DATE_FIELDS = ("start_date", "end_date", "planned_start_date", "planned_end_date")


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """'2026-03-01' or '2026-03-01T00:00:00' -> date, '' and None -> None"""
    if not value:
        return None
    return date.fromisoformat(value[:10])


def check_date_range(start: Optional[str], end: Optional[str], label: str):
    start_d, end_d = parse_iso_date(start), parse_iso_date(end)
    if start_d and end_d and end_d < start_d:
        raise ValueError(f"{label}: la data di fine precede la data di inizio")


class ProjectCreate(BaseModel):
    """Project creation payload"""
    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    description: Optional[str] = ""
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    company_name: Optional[str] = None
    status: ProjectStatus = ProjectStatus.PLANNING

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    planned_start_date: Optional[str] = None
    planned_end_date: Optional[str] = None

    # EVM inputs
    budget: float = Field(default=0.0, ge=0)
    actual_cost: float = Field(default=0.0, ge=0)
    planned_value: float = Field(default=0.0, ge=0)
    earned_value: float = Field(default=0.0, ge=0)
    progress_percentage: float = Field(default=0.0, ge=0, le=100)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Il nome del progetto è obbligatorio")
        return v.strip()

    @field_validator(*DATE_FIELDS)
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


class ProjectUpdate(BaseModel):
    """Partial project update, unset fields are left untouched"""
    model_config = ConfigDict(allow_inf_nan=False)

    name: Optional[str] = None
    description: Optional[str] = None
    order_id: Optional[str] = None
    order_number: Optional[str] = None
    company_name: Optional[str] = None
    status: Optional[ProjectStatus] = None

    start_date: Optional[str] = None
    end_date: Optional[str] = None
    planned_start_date: Optional[str] = None
    planned_end_date: Optional[str] = None

    budget: Optional[float] = Field(default=None, ge=0)
    actual_cost: Optional[float] = Field(default=None, ge=0)
    planned_value: Optional[float] = Field(default=None, ge=0)
    earned_value: Optional[float] = Field(default=None, ge=0)
    progress_percentage: Optional[float] = Field(default=None, ge=0, le=100)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Il nome del progetto non può essere vuoto")
        return v.strip() if v else v

    @field_validator(*DATE_FIELDS)
    @classmethod
    def validate_dates(cls, v):
        if v:
            try:
                parse_iso_date(v)
            except ValueError:
                raise ValueError(f"Data non valida: {v}")
        return v

