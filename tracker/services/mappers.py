"""
Translation between Dataverse option-set values and application enums

Every function is total: unknown input falls back to a default, nothing raises.
Stored values arrive either as integer option codes or as their display labels
(the FormattedValue annotation), so both are accepted.
"""

from typing import Any, Optional
from tracker.config.constants import (
    TASK_STATUS_CODES,
    PRIORITY_CODES,
    PROJECT_STATUS_CODES,
    TECH_RESOURCE_TYPE_CODES,
)
from tracker.models.task import TaskStatus, TaskPriority
from tracker.models.project import ProjectStatus, ProjectCategory

# Display labels used by the platform for task status
_TASK_STATUS_LABELS = {
    "Not Start": TaskStatus.TODO,
    "In Progress": TaskStatus.IN_PROGRESS,
    "Review": TaskStatus.REVIEW,
    "Completed": TaskStatus.COMPLETED,
    "Pending": TaskStatus.PENDING,
}

_TASK_STATUS_BY_CODE = {code: TaskStatus(name) for name, code in TASK_STATUS_CODES.items()}
_PRIORITY_BY_CODE = {code: TaskPriority(name) for name, code in PRIORITY_CODES.items()}
_PROJECT_STATUS_BY_CODE = {code: ProjectStatus(name) for name, code in PROJECT_STATUS_CODES.items()}

_CATEGORY_BY_PROJECT_STATUS = {
    ProjectStatus.MAINTENANCE: ProjectCategory.MAINTENANCE,
    ProjectStatus.PLANNING: ProjectCategory.PLANNED,
    ProjectStatus.BACKLOG: ProjectCategory.PLANNED,
    ProjectStatus.COMPLETED: ProjectCategory.COMPLETED,
}


def _as_code(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def map_stored_status_to_status(value: Any) -> TaskStatus:
    """
    Map a stored task status (code or label) to TaskStatus
    
    Cancelled is never stored; see projection.effective_status.
    """
    code = _as_code(value)
    if code is not None:
        return _TASK_STATUS_BY_CODE.get(code, TaskStatus.UNKNOWN)
    if isinstance(value, str):
        return _TASK_STATUS_LABELS.get(value.strip(), TaskStatus.UNKNOWN)
    return TaskStatus.UNKNOWN


def map_status_to_stored_code(status: Optional[TaskStatus]) -> Optional[int]:
    """Cancelled and Unknown have no stored code"""
    if status is None:
        return None
    return TASK_STATUS_CODES.get(TaskStatus(status).value)


def map_stored_priority_to_priority(value: Any) -> TaskPriority:
    code = _as_code(value)
    if code is not None:
        return _PRIORITY_BY_CODE.get(code, TaskPriority.NA)
    if isinstance(value, str) and value.strip() in PRIORITY_CODES:
        return TaskPriority(value.strip())
    return TaskPriority.NA


def map_priority_to_stored_code(priority: Optional[TaskPriority]) -> Optional[int]:
    if priority is None:
        return None
    return PRIORITY_CODES.get(TaskPriority(priority).value)


def map_stored_project_status(value: Any) -> ProjectStatus:
    """Unknown project statuses fall back to Backlog"""
    code = _as_code(value)
    if code is not None:
        return _PROJECT_STATUS_BY_CODE.get(code, ProjectStatus.BACKLOG)
    if isinstance(value, str) and value.strip() in PROJECT_STATUS_CODES:
        return ProjectStatus(value.strip())
    return ProjectStatus.BACKLOG


def map_project_status_to_stored_code(status: Optional[ProjectStatus]) -> Optional[int]:
    if status is None:
        return None
    return PROJECT_STATUS_CODES.get(ProjectStatus(status).value)


def category_for_project_status(status: Any) -> ProjectCategory:
    """Active and anything unmapped land in ACTIVE"""
    try:
        status = ProjectStatus(status)
    except ValueError:
        return ProjectCategory.ACTIVE
    return _CATEGORY_BY_PROJECT_STATUS.get(status, ProjectCategory.ACTIVE)


def map_tech_resource_type_to_code(resource_type: Optional[str]) -> Optional[int]:
    if not resource_type:
        return None
    return TECH_RESOURCE_TYPE_CODES.get(resource_type)
