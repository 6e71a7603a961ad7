"""
Dataverse Web API client
"""

from typing import Optional, Dict, Any, List
import httpx
from tracker.api.base_client import BaseAPIClient
from tracker.config.settings import settings
from tracker.config.constants import (
    PROJECTS_ENTITY_SET,
    TASKS_ENTITY_SET,
    TECH_RESOURCES_ENTITY_SET,
    PRODUCT_MEMBERS_ENTITY_SET,
    SYSTEMS_ENTITY_SET,
    PROJECT_STATUS_CODES,
    TASK_STATUS_CODES,
    GENERAL_DEPARTMENT_CODE,
    STATE_ACTIVE,
    STATE_INACTIVE,
    CANCELLED_PLACEHOLDER_STATUS_CODE,
)
from tracker.models.task import TaskCreate, TaskUpdate, TaskStatus, TechResourceCreate
from tracker.models.project import ProjectCreate, ProjectUpdate
from tracker.services.mappers import (
    map_status_to_stored_code,
    map_priority_to_stored_code,
    map_project_status_to_stored_code,
    map_tech_resource_type_to_code,
)
from tracker.utils.date_utils import convert_task_date
from tracker.utils.error_handler import APIError
from tracker.utils.logger import logger

TASK_SELECT_FIELDS = ",".join([
    "crdfd_tech_tasksid",
    "crdfd_name",
    "crdfd_description",
    "crdfd_taskstatus",
    "statecode",
    "_crdfd_assignedtask_value",
    "_crdfd_tech_resource_value",
    "crdfd_start_date",
    "crdfd_enddate",
    "crdfd_priority",
    "createdon",
    "crdfd_proof_of_complete_",
    "_crdfd_process_value",
])

TECH_RESOURCE_SELECT_FIELDS = (
    "crdfd_tech_resourceid,crdfd_name,crdfd_type,crdfd_version,"
    "crdfd_description,crdfd_resourcelink,crdfd_resourcejson"
)

TASK_EXPAND = (
    "crdfd_Assignedtask($select=crdfd_name),"
    f"crdfd_Tech_Resource($select={TECH_RESOURCE_SELECT_FIELDS})"
)

PROJECT_SELECT_FIELDS = ",".join([
    "ai_processid",
    "ai_name",
    "createdon",
    "_ownerid_value",
    "crdfd_user",
    "crdfd_department_",
    "_crdfd_system_value",
    "crdfd_requester",
    "crdfd_processurl",
    "crdfd_allstepurl",
    "crdfd_description",
    "crdfd_objectives",
    "cr1bb_fullcontext",
    "crdfd_groupchat",
    "crdfd_user_guide",
    "crdfd_technical_docs",
    "crdfd_priority",
    "crdfd_processstatus",
    "crdfd_start_date",
    "crdfd_end_date",
])

# Project form fields that are copied through unchanged
_PROJECT_TEXT_FIELDS = {
    "description": "crdfd_description",
    "requester": "crdfd_requester",
    "it_staff": "crdfd_user",
    "group_chat": "crdfd_groupchat",
    "user_guide": "crdfd_user_guide",
    "technical_docs": "crdfd_technical_docs",
    "process_url": "crdfd_processurl",
    "all_step_url": "crdfd_allstepurl",
}


def project_filter(department_value: Optional[int]) -> str:
    """
    OData filter for the project list

    With a department: active records of that department, any status but
    Planning. Without (guest): Active or Maintenance records of the General
    department.
    """
    planning = PROJECT_STATUS_CODES["Planning"]
    active = PROJECT_STATUS_CODES["Active"]
    maintenance = PROJECT_STATUS_CODES["Maintenance"]

    if department_value is not None:
        return (
            f"statecode eq {STATE_ACTIVE} and crdfd_processstatus ne {planning} "
            f"and crdfd_department_ eq {department_value}"
        )
    return (
        f"statecode eq {STATE_ACTIVE} and (crdfd_processstatus eq {active} or crdfd_processstatus eq {maintenance}) "
        f"and crdfd_department_ eq {GENERAL_DEPARTMENT_CODE}"
    )


def build_task_create_body(payload: TaskCreate) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "crdfd_name": payload.name,
        "crdfd_Process@odata.bind": f"/{PROJECTS_ENTITY_SET}({payload.project_id})",
    }
    if payload.description is not None:
        body["crdfd_description"] = payload.description
    if payload.assignee_id:
        body["crdfd_Assignedtask@odata.bind"] = f"/{PRODUCT_MEMBERS_ENTITY_SET}({payload.assignee_id})"

    start = convert_task_date(payload.start_date, "start")
    if start:
        body["crdfd_start_date"] = start
    end = convert_task_date(payload.end_date, "end")
    if end:
        body["crdfd_enddate"] = end

    status_code = map_status_to_stored_code(payload.status)
    if status_code is not None:
        body["crdfd_taskstatus"] = status_code
    priority_code = map_priority_to_stored_code(payload.priority)
    if priority_code is not None:
        body["crdfd_priority"] = priority_code
    return body


def build_task_update_body(payload: TaskUpdate) -> Dict[str, Any]:
    """
    PATCH body for the fields explicitly set on payload

    The assignee is not part of the body: binding is added here, unbinding is
    a separate DELETE on the relation.
    """
    fields = payload.model_fields_set
    body: Dict[str, Any] = {}

    if "name" in fields and payload.name is not None:
        body["crdfd_name"] = payload.name
    if "description" in fields and payload.description is not None:
        body["crdfd_description"] = payload.description
    if "proof_of_complete" in fields and payload.proof_of_complete is not None:
        body["crdfd_proof_of_complete_"] = payload.proof_of_complete

    for field, column, time_type in (
        ("start_date", "crdfd_start_date", "start"),
        ("end_date", "crdfd_enddate", "end"),
    ):
        if field not in fields:
            continue
        value = getattr(payload, field)
        if not value:
            body[column] = None
            continue
        converted = convert_task_date(value, time_type)
        if converted:
            body[column] = converted
        else:
            logger.warning(f"Ignoring unparsable {field} '{value}'")

    if "assignee_id" in fields and payload.assignee_id:
        body["crdfd_Assignedtask@odata.bind"] = f"/{PRODUCT_MEMBERS_ENTITY_SET}({payload.assignee_id})"

    status_code = map_status_to_stored_code(payload.status)
    if status_code is not None:
        body["crdfd_taskstatus"] = status_code
    priority_code = map_priority_to_stored_code(payload.priority)
    if priority_code is not None:
        body["crdfd_priority"] = priority_code
    return body


def build_project_create_body(payload: ProjectCreate) -> Dict[str, Any]:
    body: Dict[str, Any] = {"ai_name": payload.name}

    if payload.system_id:
        body["crdfd_System@odata.bind"] = f"/{SYSTEMS_ENTITY_SET}({payload.system_id})"
    if payload.department is not None:
        body["crdfd_department_"] = payload.department

    for field, column in _PROJECT_TEXT_FIELDS.items():
        value = getattr(payload, field)
        if value:
            body[column] = value
    if payload.start_date:
        body["crdfd_start_date"] = payload.start_date
    if payload.end_date:
        body["crdfd_end_date"] = payload.end_date

    priority_code = map_priority_to_stored_code(payload.priority)
    if priority_code is not None:
        body["crdfd_priority"] = priority_code
    status_code = map_project_status_to_stored_code(payload.status)
    if status_code is not None:
        body["crdfd_processstatus"] = status_code
    return body


def build_project_update_body(payload: ProjectUpdate) -> Dict[str, Any]:
    fields = payload.model_fields_set
    body: Dict[str, Any] = {}

    if "name" in fields and payload.name is not None:
        body["ai_name"] = payload.name
    for field, column in _PROJECT_TEXT_FIELDS.items():
        if field in fields:
            body[column] = getattr(payload, field)

    # Empty dates clear the column
    if "start_date" in fields:
        body["crdfd_start_date"] = payload.start_date or None
    if "end_date" in fields:
        body["crdfd_end_date"] = payload.end_date or None

    priority_code = map_priority_to_stored_code(payload.priority)
    if priority_code is not None:
        body["crdfd_priority"] = priority_code
    status_code = map_project_status_to_stored_code(payload.status)
    if status_code is not None:
        body["crdfd_processstatus"] = status_code
    return body


class DataverseClient(BaseAPIClient):
    """Client for the Dataverse Web API (OData v4)"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_url: Optional[str] = None,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Dataverse client"""
        super().__init__(
            base_url or settings.DATAVERSE_BASE_URL,
            timeout=settings.DATAVERSE_TIMEOUT,
            transport=transport,
        )
        self.token_url = token_url if token_url is not None else settings.DATAVERSE_TOKEN_URL
        self.access_token = access_token if access_token is not None else settings.DATAVERSE_ACCESS_TOKEN
        self.logger = logger

    async def authenticate(self) -> bool:
        """
        Obtain a bearer token

        A configured token is used as is; otherwise the token flow endpoint is
        called (POST, token in the body or under "access_token").

        Raises:
            APIError: If no token can be obtained
        """
        if self.access_token:
            self.logger.debug("Using provided access token")
            return True

        if not self.token_url:
            raise APIError("No access token or token URL configured")

        response = await self.post(self.token_url)
        token = response.get("access_token") if isinstance(response, dict) else response
        if not token or not isinstance(token, str):
            raise APIError("Failed to fetch access token")

        self.access_token = token
        self.logger.info("Obtained Dataverse access token")
        return True

    async def _ensure_token(self) -> None:
        if not self.access_token:
            await self.authenticate()

    def _get_headers(self, method: str = "GET", caller_id: Optional[str] = None) -> Dict[str, str]:
        """
        Request headers

        Display labels are always requested; POST asks for the created record
        back; writes carry the impersonated user id.
        """
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
            "OData-Version": "4.0",
        }

        prefer = ['odata.include-annotations="OData.Community.Display.V1.FormattedValue"']
        if method == "POST":
            prefer.append("return=representation")
        headers["Prefer"] = ",".join(prefer)

        if caller_id and method in ("POST", "PATCH", "DELETE"):
            headers["MSCRMCallerID"] = caller_id
        return headers

    async def _get_collection(self, endpoint: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        await self._ensure_token()
        response = await self.get(endpoint, headers=self._get_headers("GET"), params=params)
        return response.get("value", []) if isinstance(response, dict) else []

    async def _write(
        self,
        method: str,
        endpoint: str,
        body: Optional[Dict[str, Any]] = None,
        caller_id: Optional[str] = None,
    ) -> Any:
        await self._ensure_token()
        headers = self._get_headers(method, caller_id)
        if method == "POST":
            return await self.post(endpoint, headers=headers, json_data=body)
        if method == "PATCH":
            return await self.patch(endpoint, headers=headers, json_data=body)
        if method == "DELETE":
            return await self.delete(endpoint, headers=headers)
        raise ValueError(f"Unsupported write method {method}")

    # Reads

    async def get_projects(self, department_value: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get projects visible for a department (or for guests)

        Args:
            department_value: Department option code, None for guests

        Returns:
            Raw project records, newest first
        """
        params = {
            "$select": PROJECT_SELECT_FIELDS,
            "$filter": project_filter(department_value),
            "$orderby": "createdon desc",
        }
        projects = await self._get_collection(PROJECTS_ENTITY_SET, params)
        self.logger.debug(f"Retrieved {len(projects)} projects (department={department_value})")
        return projects

    async def _get_tasks(self, task_filter: Optional[str]) -> List[Dict[str, Any]]:
        params = {
            "$select": TASK_SELECT_FIELDS,
            "$expand": TASK_EXPAND,
            "$orderby": "createdon asc",
        }
        if task_filter:
            params["$filter"] = task_filter
        return await self._get_collection(TASKS_ENTITY_SET, params)

    async def get_all_tasks(self) -> List[Dict[str, Any]]:
        return await self._get_tasks(None)

    async def get_tasks_for_project(self, project_id: str) -> List[Dict[str, Any]]:
        return await self._get_tasks(f"_crdfd_process_value eq {project_id}")

    async def get_task_status_code(self, task_id: str) -> Optional[int]:
        """Stored status code of one task, None when it has none"""
        await self._ensure_token()
        record = await self.get(
            f"{TASKS_ENTITY_SET}({task_id})",
            headers=self._get_headers("GET"),
            params={"$select": "crdfd_taskstatus"},
        )
        return record.get("crdfd_taskstatus") if isinstance(record, dict) else None

    async def get_tasks_for_projects(self, project_ids: List[str]) -> List[Dict[str, Any]]:
        """
        Get tasks belonging to any of the given projects

        An empty id list returns [] without a request.
        """
        if not project_ids:
            return []
        clauses = " or ".join(f"_crdfd_process_value eq {pid}" for pid in project_ids)
        tasks = await self._get_tasks(f"({clauses})")
        self.logger.debug(f"Retrieved {len(tasks)} tasks for {len(project_ids)} projects")
        return tasks

    async def get_product_members(self) -> List[Dict[str, Any]]:
        params = {
            "$select": "crdfd_productmemberid,crdfd_name",
            "$orderby": "crdfd_name asc",
        }
        return await self._get_collection(PRODUCT_MEMBERS_ENTITY_SET, params)

    async def get_we_care_systems(self) -> List[Dict[str, Any]]:
        params = {
            "$select": "crdfd_wecaresystemid,crdfd_name",
            "$orderby": "crdfd_name asc",
        }
        return await self._get_collection(SYSTEMS_ENTITY_SET, params)

    async def get_tech_resources(self) -> List[Dict[str, Any]]:
        params = {
            "$select": TECH_RESOURCE_SELECT_FIELDS,
            "$orderby": "crdfd_name asc",
        }
        return await self._get_collection(TECH_RESOURCES_ENTITY_SET, params)

    # Writes

    async def create_task(self, payload: TaskCreate, caller_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a new task

        Args:
            payload: Task fields
            caller_id: User to impersonate

        Returns:
            Created task record
        """
        body = build_task_create_body(payload)
        self.logger.info(f"Creating task '{payload.name}' in project {payload.project_id}")
        return await self._write("POST", TASKS_ENTITY_SET, body, caller_id)

    async def update_task(
        self,
        task_id: str,
        payload: TaskUpdate,
        caller_id: Optional[str] = None,
        keep_completed: Optional[bool] = None,
    ) -> None:
        """
        Apply a partial update to a task

        Status Cancelled deactivates the record instead: the inactive state
        needs a status reason, so the stored status becomes a non-completed
        placeholder unless the task is stored as Completed. When keep_completed
        is None the stored status is read first.

        Args:
            task_id: Task ID
            payload: Fields to change (only explicitly set fields are sent)
            caller_id: User to impersonate
            keep_completed: Whether the task is currently Completed (None: unknown)
        """
        endpoint = f"{TASKS_ENTITY_SET}({task_id})"

        if payload.status == TaskStatus.CANCELLED:
            if keep_completed is None:
                keep_completed = await self.get_task_status_code(task_id) == TASK_STATUS_CODES["Completed"]
            stored = TASK_STATUS_CODES["Completed"] if keep_completed else CANCELLED_PLACEHOLDER_STATUS_CODE
            self.logger.info(f"Deactivating task {task_id}")
            await self._write("PATCH", endpoint, {"statecode": STATE_INACTIVE, "crdfd_taskstatus": stored}, caller_id)
            return

        if "assignee_id" in payload.model_fields_set and not payload.assignee_id:
            await self.disassociate_assignee(task_id, caller_id)

        body = build_task_update_body(payload)
        if body:
            self.logger.info(f"Updating task {task_id}: {sorted(body)}")
            await self._write("PATCH", endpoint, body, caller_id)

    async def disassociate_assignee(self, task_id: str, caller_id: Optional[str] = None) -> None:
        """Remove the assignee reference; an already-empty reference counts as success"""
        endpoint = f"{TASKS_ENTITY_SET}({task_id})/crdfd_Assignedtask/$ref"
        try:
            await self._write("DELETE", endpoint, caller_id=caller_id)
        except APIError as e:
            if not e.is_not_found:
                raise
            self.logger.debug(f"Task {task_id} had no assignee to remove")

    async def create_project(self, payload: ProjectCreate, caller_id: Optional[str] = None) -> Dict[str, Any]:
        body = build_project_create_body(payload)
        self.logger.info(f"Creating project '{payload.name}'")
        return await self._write("POST", PROJECTS_ENTITY_SET, body, caller_id)

    async def update_project(
        self,
        project_id: str,
        payload: ProjectUpdate,
        caller_id: Optional[str] = None,
    ) -> None:
        body = build_project_update_body(payload)
        if body:
            self.logger.info(f"Updating project {project_id}: {sorted(body)}")
            await self._write("PATCH", f"{PROJECTS_ENTITY_SET}({project_id})", body, caller_id)

    async def create_tech_resource(
        self,
        payload: TechResourceCreate,
        caller_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"crdfd_name": payload.name}
        type_code = map_tech_resource_type_to_code(payload.type)
        if type_code is not None:
            body["crdfd_type"] = type_code
        for field, column in (
            ("version", "crdfd_version"),
            ("description", "crdfd_description"),
            ("resource_link", "crdfd_resourcelink"),
            ("resource_json", "crdfd_resourcejson"),
        ):
            value = getattr(payload, field)
            if value:
                body[column] = value
        self.logger.info(f"Creating tech resource '{payload.name}'")
        return await self._write("POST", TECH_RESOURCES_ENTITY_SET, body, caller_id)
