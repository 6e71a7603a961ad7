"""
Web API for the project tracker
"""

from contextlib import asynccontextmanager
from datetime import date
from typing import Any, List, Optional
from fastapi import FastAPI, Request, Header, Query, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from tracker.api.dataverse_client import DataverseClient
from tracker.api.openai_client import OpenAIClient
from tracker.config.constants import USER_DEPARTMENTS
from tracker.config.settings import settings
from tracker.models.project import ProjectCreate, ProjectUpdate
from tracker.models.report import DocumentRequest, WeeklyReportRequest
from tracker.models.response import ApiResponse
from tracker.models.task import TaskCreate, TaskUpdate, TaskMove, TaskStatus, TaskPriority, TechResourceCreate
from tracker.models.views import TaskFilter
from tracker.services.data_provider import DataProvider
from tracker.services.report_service import ReportService
from tracker.services.task_views import status_tab_filter
from tracker.services.tracker_service import TrackerService
from tracker.utils.error_handler import (
    TrackerError,
    APIError,
    ValidationError,
    NotFoundError,
    TextGenerationError,
    handle_error,
)
from tracker.utils.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the clients and services once and keep them on app.state"""
    logger.info("[Startup] Initializing tracker services...")
    settings.validate()

    client = DataverseClient()
    await client.authenticate()

    department_map = dict(USER_DEPARTMENTS)
    department_map.update(settings.USER_DEPARTMENT_MAP)

    app.state.tracker = TrackerService(DataProvider(client), department_map=department_map)
    app.state.reports = ReportService(OpenAIClient())
    logger.info("[Startup] Tracker services initialized")

    yield

    await client.close()
    logger.info("[Shutdown] Dataverse client closed")


app = FastAPI(title="Project Tracker API", lifespan=lifespan)


_ERROR_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (APIError, 502),
    (TextGenerationError, 502),
)


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    status_code = 500
    for error_type, code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code = code
            break
    return JSONResponse(status_code=status_code, content=handle_error(exc).model_dump())


def get_tracker(request: Request) -> TrackerService:
    return request.app.state.tracker


def get_reports(request: Request) -> ReportService:
    return request.app.state.reports


def _ok(data: Any = None, message: Optional[str] = None) -> dict:
    return jsonable_encoder(ApiResponse(message=message, data=data), by_alias=True)


def _task_filter(
    text: str = Query("", description="Matches task name or assignee"),
    assignee_id: Optional[str] = Query(None, alias="assigneeId"),
    status: Optional[List[TaskStatus]] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    tab: Optional[str] = Query(None, description="Status tab; 'All' shows every status"),
) -> TaskFilter:
    if not status and tab:
        try:
            status = status_tab_filter(tab).status
        except ValueError as e:
            raise ValidationError(f"Unknown tab '{tab}'") from e
    return TaskFilter(text=text, assignee_id=assignee_id, status=status or None, priority=priority)


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}


@app.get("/api/users")
async def list_users(tracker: TrackerService = Depends(get_tracker)):
    """Users that can be impersonated"""
    return _ok(tracker.users)


@app.get("/api/members")
async def list_members(tracker: TrackerService = Depends(get_tracker)):
    return _ok(await tracker.list_members())


@app.get("/api/systems")
async def list_systems(tracker: TrackerService = Depends(get_tracker)):
    return _ok(await tracker.list_systems())


@app.get("/api/dashboard")
async def dashboard(
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    """Active projects and the blocker roster"""
    snapshot = await tracker.load_snapshot(x_user_id)
    return _ok(tracker.dashboard(snapshot))


@app.get("/api/projects")
async def list_projects(
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    """Project navigation: active, maintenance and planned projects"""
    snapshot = await tracker.load_snapshot(x_user_id)
    return _ok(tracker.projects_by_category(snapshot))


@app.get("/api/projects/{project_id}")
async def project_detail(
    project_id: str,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    snapshot = await tracker.load_snapshot(x_user_id)
    return _ok(tracker.project_detail(project_id, snapshot))


@app.get("/api/projects/{project_id}/tasks/list")
async def task_list(
    project_id: str,
    task_filter: TaskFilter = Depends(_task_filter),
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    snapshot = await tracker.load_snapshot(x_user_id)
    return _ok(tracker.task_list(project_id, snapshot, task_filter))


@app.get("/api/projects/{project_id}/tasks/kanban")
async def task_board(
    project_id: str,
    task_filter: TaskFilter = Depends(_task_filter),
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    snapshot = await tracker.load_snapshot(x_user_id)
    return _ok(tracker.task_board(project_id, snapshot, task_filter))


@app.get("/api/projects/{project_id}/tasks/timeline")
async def task_timeline(
    project_id: str,
    task_filter: TaskFilter = Depends(_task_filter),
    today: Optional[date] = Query(None),
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    snapshot = await tracker.load_snapshot(x_user_id)
    return _ok(tracker.task_timeline(project_id, snapshot, task_filter, today=today))


@app.post("/api/projects")
async def create_project(
    payload: ProjectCreate,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    """Create a project with its default tasks"""
    project, snapshot = await tracker.create_project_with_default_tasks(payload, x_user_id)
    message = f"Project '{project.name}' created"

    # A new project outside the user's listing filter is returned bare
    if snapshot.find_project(project.id) is None:
        return _ok(project, message=message)
    return _ok(tracker.project_detail(project.id, snapshot), message=message)


@app.patch("/api/projects/{project_id}")
async def update_project(
    project_id: str,
    payload: ProjectUpdate,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    snapshot = await tracker.update_project(project_id, payload, x_user_id)
    return _ok(snapshot.find_project(project_id), message="Project updated")


@app.post("/api/tasks")
async def create_task(
    payload: TaskCreate,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    snapshot = await tracker.create_task(payload, x_user_id)
    return _ok(tracker.project_detail(payload.project_id, snapshot), message="Task created")


@app.patch("/api/tasks/{task_id}")
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    current = await tracker.load_snapshot(x_user_id)
    snapshot = await tracker.update_task(task_id, payload, x_user_id, current)
    return _ok(snapshot.find_task(task_id), message="Task updated")


@app.post("/api/tasks/{task_id}/move")
async def move_task(
    task_id: str,
    payload: TaskMove,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    """Kanban drop onto another status column"""
    current = await tracker.load_snapshot(x_user_id)
    snapshot = await tracker.move_task_on_board(task_id, payload.status, x_user_id, current)
    return _ok(snapshot.find_task(task_id))


@app.post("/api/tasks/{task_id}/toggle")
async def toggle_task(
    task_id: str,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    current = await tracker.load_snapshot(x_user_id)
    snapshot = await tracker.toggle_complete(task_id, x_user_id, current)
    return _ok(snapshot.find_task(task_id))


@app.delete("/api/tasks/{task_id}")
async def cancel_task(
    task_id: str,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    """Cancel (soft-delete) a task"""
    current = await tracker.load_snapshot(x_user_id)
    await tracker.cancel_task(task_id, x_user_id, current)
    return _ok(message="Task cancelled")


@app.get("/api/tech-resources")
async def list_tech_resources(tracker: TrackerService = Depends(get_tracker)):
    return _ok(await tracker.list_tech_resources())


@app.post("/api/tech-resources")
async def create_tech_resource(
    payload: TechResourceCreate,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
):
    resource = await tracker.create_tech_resource(payload, x_user_id)
    return _ok(resource, message="Tech resource created")


@app.post("/api/projects/{project_id}/documents")
async def generate_document(
    project_id: str,
    payload: DocumentRequest,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
    reports: ReportService = Depends(get_reports),
):
    """Draft a Requirement, Technical or User Guide document"""
    snapshot = await tracker.load_snapshot(x_user_id)
    project = tracker.get_project(project_id, snapshot)
    document = await reports.generate_project_document(
        project,
        snapshot.tasks_for_project(project_id),
        payload.doc_type,
    )
    return _ok(document)


@app.post("/api/reports/weekly")
async def weekly_report(
    payload: WeeklyReportRequest,
    x_user_id: Optional[str] = Header(None),
    tracker: TrackerService = Depends(get_tracker),
    reports: ReportService = Depends(get_reports),
):
    """Completed-work report for one assignee"""
    snapshot = await tracker.load_snapshot(x_user_id)
    member = tracker.find_member(payload.assignee_id, snapshot)
    document = await reports.generate_weekly_report(
        member,
        snapshot.tasks,
        payload.start_date,
        payload.end_date,
        department=payload.department,
    )
    return _ok(document)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.WEB_PORT)
