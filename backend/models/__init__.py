"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  CRM Projects - Models Package                                               ║
║                                                                              ║
║  Exports all models for easy import                                          ║
║  from models import ProjectCreate, TaskCreate, ProjectSnapshot, etc.         ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

# Auth
from .auth import (
    VALID_ROLES,
    UserLogin,
    UserCreate,
    UserUpdate,
)

# EVM
from .evm import (
    HealthStatus,
    ProjectSnapshot,
    EVMResult,
)

# Project
from .project import (
    ProjectStatus,
    VALID_PROJECT_STATUSES,
    ProjectCreate,
    ProjectUpdate,
    parse_iso_date,
    check_date_range,
)

# Task
from .task import (
    TaskStatus,
    TaskPriority,
    TaskCreate,
    TaskUpdate,
    DependencyType,
    TaskDependencyCreate,
)

# Timesheet
from .timesheet import (
    TimesheetStatus,
    ACTIVITY_TYPES,
    DEFAULT_HOURLY_RATE,
    TimesheetCreate,
    TimesheetReview,
)

__all__ = [
    # Auth
    "VALID_ROLES",
    "UserLogin",
    "UserCreate",
    "UserUpdate",
    # EVM
    "HealthStatus",
    "ProjectSnapshot",
    "EVMResult",
    # Project
    "ProjectStatus",
    "VALID_PROJECT_STATUSES",
    "ProjectCreate",
    "ProjectUpdate",
    "parse_iso_date",
    "check_date_range",
    # Task
    "TaskStatus",
    "TaskPriority",
    "TaskCreate",
    "TaskUpdate",
    "DependencyType",
    "TaskDependencyCreate",
    # Timesheet
    "TimesheetStatus",
    "ACTIVITY_TYPES",
    "DEFAULT_HOURLY_RATE",
    "TimesheetCreate",
    "TimesheetReview",
]
