"""
Data Provider: typed surface over the Dataverse client
"""

from typing import List, Optional
from tracker.api.dataverse_client import DataverseClient
from tracker.models.project import Project, ProjectCreate, ProjectUpdate, WeCareSystem
from tracker.models.task import (
    Task,
    TaskCreate,
    TaskUpdate,
    TaskStatus,
    TechResource,
    TechResourceCreate,
    ProductMember,
)
from tracker.services.projection import (
    project_task,
    project_project,
    project_member,
    project_system,
    project_tech_resource,
)
from tracker.utils.logger import logger


class DataProvider:
    """
    Projected reads and writes against the platform

    Every failure propagates as APIError; nothing here retries or swallows.
    """

    def __init__(self, client: DataverseClient):
        """
        Initialize data provider

        Args:
            client: Dataverse API client
        """
        self.client = client
        self.logger = logger

    async def list_projects(self, department_value: Optional[int] = None) -> List[Project]:
        raw = await self.client.get_projects(department_value)
        return [project_project(r) for r in raw]

    async def list_tasks_for_projects(self, project_ids: List[str]) -> List[Task]:
        raw = await self.client.get_tasks_for_projects(project_ids)
        return [project_task(r) for r in raw]

    async def list_tasks_for_project(self, project_id: str) -> List[Task]:
        raw = await self.client.get_tasks_for_project(project_id)
        return [project_task(r) for r in raw]

    async def list_all_tasks(self) -> List[Task]:
        raw = await self.client.get_all_tasks()
        return [project_task(r) for r in raw]

    async def list_product_members(self) -> List[ProductMember]:
        raw = await self.client.get_product_members()
        return [project_member(r) for r in raw]

    async def list_systems(self) -> List[WeCareSystem]:
        raw = await self.client.get_we_care_systems()
        return [project_system(r) for r in raw]

    async def list_tech_resources(self) -> List[TechResource]:
        raw = await self.client.get_tech_resources()
        resources = [project_tech_resource(r) for r in raw]
        return [r for r in resources if r is not None]

    async def create_task(self, payload: TaskCreate, caller_id: Optional[str] = None) -> Optional[Task]:
        """
        Create a task

        Returns:
            The created task when the platform echoes it back, else None
        """
        created = await self.client.create_task(payload, caller_id)
        if created and created.get("crdfd_tech_tasksid"):
            return project_task(created)
        return None

    async def update_task(
        self,
        task_id: str,
        payload: TaskUpdate,
        caller_id: Optional[str] = None,
        current: Optional[Task] = None,
    ) -> None:
        """
        Apply a partial update

        Args:
            task_id: Task ID
            payload: Only explicitly set fields are changed
            caller_id: User to impersonate
            current: Task as last read; a Completed task keeps its stored
                completion when cancelled. Without it the client reads the
                stored status before a cancel.
        """
        keep_completed = None if current is None else current.status == TaskStatus.COMPLETED
        await self.client.update_task(task_id, payload, caller_id, keep_completed=keep_completed)

    async def create_project(self, payload: ProjectCreate, caller_id: Optional[str] = None) -> Project:
        created = await self.client.create_project(payload, caller_id)
        return project_project(created)

    async def update_project(
        self,
        project_id: str,
        payload: ProjectUpdate,
        caller_id: Optional[str] = None,
    ) -> None:
        await self.client.update_project(project_id, payload, caller_id)

    async def create_tech_resource(
        self,
        payload: TechResourceCreate,
        caller_id: Optional[str] = None,
    ) -> Optional[TechResource]:
        created = await self.client.create_tech_resource(payload, caller_id)
        return project_tech_resource(created)
