"""
Tracker service: snapshot loading, read views and write orchestration
"""

import asyncio
from datetime import date, tzinfo
from typing import Dict, List, Optional, Tuple
from tracker.config.constants import USERS, DEFAULT_TASKS
from tracker.models.project import Project, ProjectCategory, ProjectCreate, ProjectUpdate, WeCareSystem
from tracker.models.task import (
    Task,
    TaskCreate,
    TaskUpdate,
    TaskStatus,
    TaskPriority,
    TechResource,
    TechResourceCreate,
    ProductMember,
)
from tracker.models.views import (
    Snapshot,
    TaskFilter,
    KanbanBoard,
    TimelineGrid,
    DashboardView,
    ProjectCard,
    ProjectDetailView,
    ProjectGroups,
)
from tracker.services.aggregation import (
    visible_tasks,
    progress_percentage,
    summarize_progress,
    blocker_roster,
    group_tech_stack,
    tab_counts,
)
from tracker.services.data_provider import DataProvider
from tracker.services.task_views import build_list, build_kanban, build_timeline, kanban_drop_status, sort_tasks
from tracker.utils.error_handler import ValidationError, NotFoundError
from tracker.utils.logger import logger


class TrackerService:
    """
    Application service over the Data Provider

    Reads produce immutable snapshots; every write is followed by a fresh
    snapshot instead of patching the old one.
    """

    def __init__(
        self,
        provider: DataProvider,
        department_map: Optional[Dict[str, int]] = None,
        users: Optional[List[Dict[str, str]]] = None,
    ):
        """
        Initialize tracker service

        Args:
            provider: Data Provider
            department_map: User id -> department option code
            users: Users that may be impersonated
        """
        self.provider = provider
        self.department_map = dict(department_map or {})
        self.users = list(users if users is not None else USERS)
        self.logger = logger

    # Users

    def resolve_user(self, user_id: Optional[str]) -> Optional[Dict[str, str]]:
        """
        Look up an impersonated user

        Returns:
            The user entry, or None for guests (no user id)

        Raises:
            ValidationError: If the id is not a known user
        """
        if not user_id:
            return None
        for user in self.users:
            if user["id"] == user_id:
                return user
        raise ValidationError(f"Unknown user '{user_id}'")

    def _require_user(self, user_id: Optional[str]) -> str:
        user = self.resolve_user(user_id)
        if user is None:
            raise ValidationError("Sign in to make changes")
        return user["id"]

    def department_for(self, user_id: Optional[str]) -> Optional[int]:
        """Department filter for a user; None means the guest listing"""
        user = self.resolve_user(user_id)
        if user is None:
            return None
        return self.department_map.get(user["id"])

    # Reads

    async def load_snapshot(self, user_id: Optional[str] = None) -> Snapshot:
        """
        Fetch everything the UI shows for a user

        Members and systems are fetched concurrently, then projects for the
        user's department, then tasks of those projects only.
        """
        department = self.department_for(user_id)

        members, systems = await asyncio.gather(
            self.provider.list_product_members(),
            self.provider.list_systems(),
        )
        projects = await self.provider.list_projects(department)
        tasks = await self.provider.list_tasks_for_projects([p.id for p in projects])

        self.logger.debug(
            f"Loaded snapshot for {user_id or 'guest'}: "
            f"{len(projects)} projects, {len(tasks)} tasks"
        )
        return Snapshot(
            user_id=user_id,
            projects=projects,
            tasks=tasks,
            members=members,
            systems=systems,
        )

    def dashboard(self, snapshot: Snapshot) -> DashboardView:
        """Active project cards with their progress, plus the blocker roster"""
        cards = [
            ProjectCard(project=p, progress=progress_percentage(snapshot.tasks_for_project(p.id)))
            for p in snapshot.projects
            if p.category == ProjectCategory.ACTIVE
        ]
        return DashboardView(
            active_projects=cards,
            blockers=blocker_roster(snapshot.projects, snapshot.tasks),
        )

    def projects_by_category(self, snapshot: Snapshot) -> ProjectGroups:
        """Active, maintenance and planned projects in listing order"""
        def in_category(category: ProjectCategory) -> List[Project]:
            return [p for p in snapshot.projects if p.category == category]

        return ProjectGroups(
            active=in_category(ProjectCategory.ACTIVE),
            maintenance=in_category(ProjectCategory.MAINTENANCE),
            planned=in_category(ProjectCategory.PLANNED),
        )

    def get_project(self, project_id: str, snapshot: Snapshot) -> Project:
        project = snapshot.find_project(project_id)
        if project is None:
            raise NotFoundError(f"Project '{project_id}'")
        return project

    def get_task(self, task_id: str, snapshot: Snapshot) -> Task:
        task = snapshot.find_task(task_id)
        if task is None:
            raise NotFoundError(f"Task '{task_id}'")
        return task

    def project_detail(self, project_id: str, snapshot: Snapshot) -> ProjectDetailView:
        """
        Project page: visible tasks, progress, narrative, tech stack, tab counts

        Raises:
            NotFoundError: If the project is not in the snapshot
        """
        project = self.get_project(project_id, snapshot)
        tasks = snapshot.tasks_for_project(project_id)

        return ProjectDetailView(
            project=project,
            tasks=visible_tasks(tasks),
            progress=progress_percentage(tasks),
            summary=summarize_progress(tasks),
            tech_stack=group_tech_stack(tasks),
            tab_counts=tab_counts(tasks),
        )

    def task_list(self, project_id: str, snapshot: Snapshot, task_filter: Optional[TaskFilter] = None) -> List[Task]:
        self.get_project(project_id, snapshot)
        return build_list(snapshot.tasks_for_project(project_id), task_filter)

    def task_board(self, project_id: str, snapshot: Snapshot, task_filter: Optional[TaskFilter] = None) -> KanbanBoard:
        self.get_project(project_id, snapshot)
        return build_kanban(sort_tasks(snapshot.tasks_for_project(project_id)), task_filter)

    def task_timeline(
        self,
        project_id: str,
        snapshot: Snapshot,
        task_filter: Optional[TaskFilter] = None,
        today: Optional[date] = None,
        tz: Optional[tzinfo] = None,
    ) -> TimelineGrid:
        self.get_project(project_id, snapshot)
        return build_timeline(snapshot.tasks_for_project(project_id), task_filter, today=today, tz=tz)

    # Task writes

    async def create_task(self, payload: TaskCreate, user_id: Optional[str]) -> Snapshot:
        """
        Create a task and return a fresh snapshot

        Raises:
            ValidationError: On an empty name, a missing project or no user
        """
        caller_id = self._require_user(user_id)
        if not payload.name or not payload.name.strip():
            raise ValidationError("Task name is required")
        if not payload.project_id:
            raise ValidationError("Task project is required")

        await self.provider.create_task(payload, caller_id)
        return await self.load_snapshot(user_id)

    async def update_task(
        self,
        task_id: str,
        payload: TaskUpdate,
        user_id: Optional[str],
        snapshot: Optional[Snapshot] = None,
    ) -> Snapshot:
        """
        Apply a partial update and return a fresh snapshot

        Args:
            task_id: Task ID
            payload: Fields to change
            user_id: Impersonated user
            snapshot: Snapshot the edit was made against (to know the current status)
        """
        caller_id = self._require_user(user_id)
        if "name" in payload.model_fields_set and not (payload.name or "").strip():
            raise ValidationError("Task name cannot be empty")

        current = snapshot.find_task(task_id) if snapshot is not None else None
        await self.provider.update_task(task_id, payload, caller_id, current=current)
        return await self.load_snapshot(user_id)

    async def cancel_task(
        self,
        task_id: str,
        user_id: Optional[str],
        snapshot: Optional[Snapshot] = None,
    ) -> Snapshot:
        """Soft-delete a task; the record stays fetchable"""
        self.logger.info(f"Cancelling task {task_id}")
        return await self.update_task(task_id, TaskUpdate(status=TaskStatus.CANCELLED), user_id, snapshot)

    async def toggle_complete(self, task_id: str, user_id: Optional[str], snapshot: Snapshot) -> Snapshot:
        """Completed goes back to To Do; anything else becomes Completed"""
        task = self.get_task(task_id, snapshot)
        status = TaskStatus.TODO if task.status == TaskStatus.COMPLETED else TaskStatus.COMPLETED
        return await self.update_task(task_id, TaskUpdate(status=status), user_id, snapshot)

    async def move_task_on_board(
        self,
        task_id: str,
        destination: TaskStatus,
        user_id: Optional[str],
        snapshot: Snapshot,
    ) -> Snapshot:
        """
        Kanban drop: one status write, or nothing when the column is unchanged

        Raises:
            ValidationError: If destination is not a board column
        """
        self._require_user(user_id)
        task = self.get_task(task_id, snapshot)
        try:
            status = kanban_drop_status(task, destination)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if status is None:
            self.logger.debug(f"Task {task_id} dropped on its own column")
            return snapshot
        return await self.update_task(task_id, TaskUpdate(status=status), user_id, snapshot)

    # Project writes

    async def create_project_with_default_tasks(
        self,
        payload: ProjectCreate,
        user_id: Optional[str],
    ) -> Tuple[Project, Snapshot]:
        """
        Create a project and seed the default tasks

        The default tasks (To Do, Medium) are created concurrently once the
        project exists.

        Returns:
            (created project, fresh snapshot)
        """
        caller_id = self._require_user(user_id)
        if not payload.name or not payload.name.strip():
            raise ValidationError("Project name is required")

        project = await self.provider.create_project(payload, caller_id)
        if not project.id:
            raise ValidationError("Project was created without an id")

        self.logger.info(f"Seeding {len(DEFAULT_TASKS)} default tasks into project {project.id}")
        await asyncio.gather(*[
            self.provider.create_task(
                TaskCreate(
                    name=task["name"],
                    description=task["description"],
                    project_id=project.id,
                    status=TaskStatus.TODO,
                    priority=TaskPriority.MEDIUM,
                ),
                caller_id,
            )
            for task in DEFAULT_TASKS
        ])

        return project, await self.load_snapshot(user_id)

    async def update_project(self, project_id: str, payload: ProjectUpdate, user_id: Optional[str]) -> Snapshot:
        caller_id = self._require_user(user_id)
        if "name" in payload.model_fields_set and not (payload.name or "").strip():
            raise ValidationError("Project name cannot be empty")

        await self.provider.update_project(project_id, payload, caller_id)
        return await self.load_snapshot(user_id)

    # Lookups

    async def list_members(self) -> List[ProductMember]:
        return await self.provider.list_product_members()

    async def list_systems(self) -> List[WeCareSystem]:
        return await self.provider.list_systems()

    # Tech resources

    async def list_tech_resources(self) -> List[TechResource]:
        return await self.provider.list_tech_resources()

    async def create_tech_resource(self, payload: TechResourceCreate, user_id: Optional[str]) -> Optional[TechResource]:
        caller_id = self._require_user(user_id)
        if not payload.name or not payload.name.strip():
            raise ValidationError("Resource name is required")
        return await self.provider.create_tech_resource(payload, caller_id)

    # Reports

    def find_member(self, member_id: str, snapshot: Snapshot) -> ProductMember:
        for member in snapshot.members:
            if member.id == member_id:
                return member
        raise NotFoundError(f"Member '{member_id}'")
