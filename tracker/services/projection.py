"""
Projection of raw Dataverse records into view models

effective_status() is the only place the inactive flag is interpreted; every
other consumer reads Task.status.
"""

from typing import Any, Dict, Optional
from tracker.config.constants import (
    FORMATTED_VALUE,
    STATE_INACTIVE,
    UNASSIGNED,
    UNNAMED_TASK,
    NOT_AVAILABLE,
    DEFAULT_DEPARTMENT,
    DEFAULT_SYSTEM,
)
from tracker.models.task import Task, TaskStatus, TechResource, ProductMember
from tracker.models.project import Project, WeCareSystem
from tracker.services.mappers import (
    map_stored_status_to_status,
    map_stored_priority_to_priority,
    map_stored_project_status,
    category_for_project_status,
)
from tracker.utils.date_utils import parse_iso, format_date_only


def formatted(record: Dict[str, Any], field: str) -> Optional[str]:
    """Display label of a choice/lookup column"""
    return record.get(f"{field}{FORMATTED_VALUE}")


def _stored_value(record: Dict[str, Any], field: str) -> Any:
    label = formatted(record, field)
    return label if label is not None else record.get(field)


def effective_status(stored_status: Any, inactive: bool) -> TaskStatus:
    """
    Collapse the stored status and the inactive flag into one status
    
    An inactive record is Completed when its stored status is Completed and
    Cancelled otherwise.
    """
    mapped = map_stored_status_to_status(stored_status)
    if inactive:
        return TaskStatus.COMPLETED if mapped == TaskStatus.COMPLETED else TaskStatus.CANCELLED
    return mapped


def _valid_raw_date(value: Any) -> Optional[str]:
    return value if parse_iso(value) is not None else None


def project_tech_resource(raw: Optional[Dict[str, Any]]) -> Optional[TechResource]:
    if not raw or not raw.get("crdfd_tech_resourceid"):
        return None

    resource_type = formatted(raw, "crdfd_type") or raw.get("crdfd_type")
    return TechResource(
        id=raw["crdfd_tech_resourceid"],
        name=raw.get("crdfd_name") or "",
        type=str(resource_type) if resource_type is not None else None,
        version=raw.get("crdfd_version"),
        description=raw.get("crdfd_description"),
        resource_link=raw.get("crdfd_resourcelink"),
        resource_json=raw.get("crdfd_resourcejson"),
    )


def project_task(raw: Dict[str, Any]) -> Task:
    """
    Transform one raw task record into a Task
    
    Args:
        raw: Record from the tasks entity set (with expanded assignee and resource)
        
    Returns:
        Task view model
    """
    inactive = raw.get("statecode") == STATE_INACTIVE
    status = effective_status(_stored_value(raw, "crdfd_taskstatus"), inactive)
    assignee = raw.get("crdfd_Assignedtask") or {}

    return Task(
        id=raw.get("crdfd_tech_tasksid") or "",
        name=raw.get("crdfd_name") or UNNAMED_TASK,
        status=status,
        priority=map_stored_priority_to_priority(_stored_value(raw, "crdfd_priority")),
        assignee=assignee.get("crdfd_name") or UNASSIGNED,
        assignee_id=raw.get("_crdfd_assignedtask_value"),
        due_date=format_date_only(raw.get("crdfd_enddate")),
        end_date_raw=_valid_raw_date(raw.get("crdfd_enddate")),
        start_date=format_date_only(raw.get("crdfd_start_date")),
        start_date_raw=_valid_raw_date(raw.get("crdfd_start_date")),
        project=formatted(raw, "_crdfd_process_value") or NOT_AVAILABLE,
        project_id=raw.get("_crdfd_process_value"),
        description=raw.get("crdfd_description") or "",
        created_on=formatted(raw, "createdon") or NOT_AVAILABLE,
        created_on_date=raw.get("createdon"),
        proof_of_complete=raw.get("crdfd_proof_of_complete_") or None,
        tech_resource=project_tech_resource(raw.get("crdfd_Tech_Resource")),
    )


def project_project(raw: Dict[str, Any]) -> Project:
    """Transform one raw project record into a Project with its category"""
    status_label = _stored_value(raw, "crdfd_processstatus")
    it_staff = raw.get("crdfd_user")
    
    return Project(
        id=raw.get("ai_processid") or "",
        name=raw.get("ai_name") or "",
        category=category_for_project_status(status_label),
        status=map_stored_project_status(status_label),
        description=raw.get("crdfd_description"),
        requester=raw.get("crdfd_requester") or NOT_AVAILABLE,
        priority=formatted(raw, "crdfd_priority") or NOT_AVAILABLE,
        department=formatted(raw, "crdfd_department_") or DEFAULT_DEPARTMENT,
        system=formatted(raw, "_crdfd_system_value") or DEFAULT_SYSTEM,
        owner=formatted(raw, "_ownerid_value") or NOT_AVAILABLE,
        it_staff=[it_staff] if it_staff else [NOT_AVAILABLE],
        start_date=formatted(raw, "crdfd_start_date") or format_date_only(raw.get("crdfd_start_date")),
        start_date_raw=_valid_raw_date(raw.get("crdfd_start_date")),
        end_date=formatted(raw, "crdfd_end_date") or format_date_only(raw.get("crdfd_end_date")),
        end_date_raw=_valid_raw_date(raw.get("crdfd_end_date")),
        created_on=formatted(raw, "createdon") or format_date_only(raw.get("createdon")),
        objectives=raw.get("crdfd_objectives"),
        full_context=raw.get("cr1bb_fullcontext"),
        process_url=raw.get("crdfd_processurl"),
        all_step_url=raw.get("crdfd_allstepurl"),
        group_chat=raw.get("crdfd_groupchat"),
        user_guide=raw.get("crdfd_user_guide"),
        technical_docs=raw.get("crdfd_technical_docs"),
    )


def project_member(raw: Dict[str, Any]) -> ProductMember:
    return ProductMember(id=raw.get("crdfd_productmemberid") or "", name=raw.get("crdfd_name") or "")


def project_system(raw: Dict[str, Any]) -> WeCareSystem:
    return WeCareSystem(id=raw.get("crdfd_wecaresystemid") or "", name=raw.get("crdfd_name") or "")
