"""
Tests for the tracker service
"""

import pytest
from unittest.mock import AsyncMock
from tracker.models.project import Project, ProjectCategory, ProjectCreate, ProjectUpdate
from tracker.models.task import TaskCreate, TaskUpdate, TaskStatus, TaskPriority, ProductMember
from tracker.models.views import Snapshot
from tracker.services.data_provider import DataProvider
from tracker.utils.error_handler import ValidationError, NotFoundError, APIError


@pytest.mark.asyncio
async def test_load_snapshot_uses_department(tracker_service, mock_provider, user_id, make_task):
    """Test snapshot loading for a signed-in user"""
    mock_provider.list_projects.return_value = [Project(id="p1", name="One"), Project(id="p2", name="Two")]
    mock_provider.list_tasks_for_projects.return_value = [make_task("a", project_id="p1")]
    mock_provider.list_product_members.return_value = [ProductMember(id="m1", name="Alice")]

    snapshot = await tracker_service.load_snapshot(user_id)

    mock_provider.list_projects.assert_awaited_once_with(191920006)
    mock_provider.list_tasks_for_projects.assert_awaited_once_with(["p1", "p2"])
    assert snapshot.user_id == user_id
    assert [t.name for t in snapshot.tasks] == ["a"]
    assert snapshot.members[0].name == "Alice"


@pytest.mark.asyncio
async def test_load_snapshot_guest(tracker_service, mock_provider):
    await tracker_service.load_snapshot(None)
    mock_provider.list_projects.assert_awaited_once_with(None)


@pytest.mark.asyncio
async def test_user_without_department_gets_guest_listing(tracker_service, mock_provider):
    await tracker_service.load_snapshot("654a811b-7a8f-f011-b4cc-0022485a6354")
    mock_provider.list_projects.assert_awaited_once_with(None)


@pytest.mark.asyncio
async def test_unknown_user_rejected(tracker_service, mock_provider):
    with pytest.raises(ValidationError):
        await tracker_service.load_snapshot("intruder")
    mock_provider.list_projects.assert_not_called()


@pytest.mark.asyncio
async def test_provider_failure_propagates(tracker_service, mock_provider):
    mock_provider.list_product_members.side_effect = APIError("Throttled", error_code="429")

    with pytest.raises(APIError):
        await tracker_service.load_snapshot(None)


def test_dashboard(tracker_service, make_task):
    projects = [
        Project(id="p1", name="Live", category=ProjectCategory.ACTIVE),
        Project(id="p2", name="Old", category=ProjectCategory.COMPLETED),
    ]
    tasks = [
        make_task("stuck", TaskStatus.PENDING, project_id="p1"),
        make_task("done", TaskStatus.COMPLETED, project_id="p1"),
        make_task("dropped", TaskStatus.CANCELLED, project_id="p1"),
        make_task("stale", TaskStatus.PENDING, project_id="p2"),
    ]
    view = tracker_service.dashboard(Snapshot(projects=projects, tasks=tasks))

    assert [card.project.name for card in view.active_projects] == ["Live"]
    assert view.active_projects[0].progress == 50.0
    assert [b.project_name for b in view.blockers] == ["Live"]


def test_dashboard_card_without_tasks(tracker_service):
    view = tracker_service.dashboard(Snapshot(projects=[Project(id="p1", name="Empty")]))
    assert view.active_projects[0].progress == 0.0


def test_projects_by_category(tracker_service):
    projects = [
        Project(id="p1", name="Live", category=ProjectCategory.ACTIVE),
        Project(id="p2", name="Fixes", category=ProjectCategory.MAINTENANCE),
        Project(id="p3", name="Later", category=ProjectCategory.PLANNED),
        Project(id="p4", name="Done", category=ProjectCategory.COMPLETED),
        Project(id="p5", name="Next", category=ProjectCategory.PLANNED),
    ]

    groups = tracker_service.projects_by_category(Snapshot(projects=projects))

    assert [p.name for p in groups.active] == ["Live"]
    assert [p.name for p in groups.maintenance] == ["Fixes"]
    assert [p.name for p in groups.planned] == ["Later", "Next"]


def test_task_board_columns_are_chronological(tracker_service, project, make_task):
    tasks = [
        make_task("Late", TaskStatus.TODO, end_date_raw="2024-03-10T00:00:00Z"),
        make_task("Undated", TaskStatus.TODO),
        make_task("Early", TaskStatus.TODO, end_date_raw="2024-03-01T00:00:00Z"),
    ]

    board = tracker_service.task_board("proj-1", Snapshot(projects=[project], tasks=tasks))

    assert [t.name for t in board.column(TaskStatus.TODO).tasks] == ["Early", "Late", "Undated"]


def test_project_detail(tracker_service, snapshot, make_task):
    tasks = snapshot.tasks + [make_task("Dropped", TaskStatus.CANCELLED)]
    view = tracker_service.project_detail("proj-1", snapshot.model_copy(update={"tasks": tasks}))

    assert view.project.name == "Portal"
    assert [t.name for t in view.tasks] == ["Kickoff", "Build", "Blocked"]
    assert view.progress == pytest.approx(100 / 3)
    assert view.summary.current_step == "Build"
    assert view.summary.blockers == "Blocked"
    assert view.tab_counts["All"] == 3


def test_project_detail_unknown_project(tracker_service, snapshot):
    with pytest.raises(NotFoundError):
        tracker_service.project_detail("missing", snapshot)


@pytest.mark.asyncio
async def test_create_task_reloads_snapshot(tracker_service, mock_provider, user_id):
    payload = TaskCreate(name="New", project_id="proj-1")

    snapshot = await tracker_service.create_task(payload, user_id)

    mock_provider.create_task.assert_awaited_once_with(payload, user_id)
    mock_provider.list_projects.assert_awaited_once()
    assert isinstance(snapshot, Snapshot)


@pytest.mark.asyncio
async def test_create_task_requires_name(tracker_service, mock_provider, user_id):
    with pytest.raises(ValidationError):
        await tracker_service.create_task(TaskCreate(name="  ", project_id="proj-1"), user_id)
    mock_provider.create_task.assert_not_called()


@pytest.mark.asyncio
async def test_writes_require_signed_in_user(tracker_service, mock_provider):
    with pytest.raises(ValidationError, match="Sign in"):
        await tracker_service.create_task(TaskCreate(name="New", project_id="proj-1"), None)
    mock_provider.create_task.assert_not_called()


@pytest.mark.asyncio
async def test_failed_write_does_not_reload(tracker_service, mock_provider, user_id):
    mock_provider.update_task.side_effect = APIError("Bad field", error_code="400")

    with pytest.raises(APIError):
        await tracker_service.update_task("task-1", TaskUpdate(name="x"), user_id)

    mock_provider.list_projects.assert_not_called()


@pytest.mark.asyncio
async def test_cancel_task_passes_current_task(tracker_service, mock_provider, user_id, snapshot):
    await tracker_service.cancel_task("task-1", user_id, snapshot)

    args, kwargs = mock_provider.update_task.call_args
    assert args[0] == "task-1"
    assert args[1].status == TaskStatus.CANCELLED
    assert kwargs["current"].status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_toggle_complete(tracker_service, mock_provider, user_id, snapshot):
    await tracker_service.toggle_complete("task-1", user_id, snapshot)
    assert mock_provider.update_task.call_args[0][1].status == TaskStatus.TODO

    await tracker_service.toggle_complete("task-2", user_id, snapshot)
    assert mock_provider.update_task.call_args[0][1].status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_move_task_on_board(tracker_service, mock_provider, user_id, snapshot):
    await tracker_service.move_task_on_board("task-2", TaskStatus.REVIEW, user_id, snapshot)

    mock_provider.update_task.assert_awaited_once()
    assert mock_provider.update_task.call_args[0][1].status == TaskStatus.REVIEW


@pytest.mark.asyncio
async def test_move_to_same_column_is_noop(tracker_service, mock_provider, user_id, snapshot):
    result = await tracker_service.move_task_on_board("task-2", TaskStatus.IN_PROGRESS, user_id, snapshot)

    assert result is snapshot
    mock_provider.update_task.assert_not_called()


@pytest.mark.asyncio
async def test_move_to_non_column_rejected(tracker_service, mock_provider, user_id, snapshot):
    with pytest.raises(ValidationError):
        await tracker_service.move_task_on_board("task-2", TaskStatus.CANCELLED, user_id, snapshot)
    mock_provider.update_task.assert_not_called()


@pytest.mark.asyncio
async def test_create_project_seeds_default_tasks(tracker_service, mock_provider, user_id):
    mock_provider.create_project.return_value = Project(id="new-project", name="Portal")

    project, _ = await tracker_service.create_project_with_default_tasks(ProjectCreate(name="Portal"), user_id)

    assert project.id == "new-project"
    assert mock_provider.create_task.await_count == 5
    for call in mock_provider.create_task.call_args_list:
        payload, caller = call.args
        assert payload.project_id == "new-project"
        assert payload.status == TaskStatus.TODO
        assert payload.priority == TaskPriority.MEDIUM
        assert caller == user_id
    assert mock_provider.create_task.call_args_list[0].args[0].name == "Requirement Gathering & Analysis"


@pytest.mark.asyncio
async def test_update_project(tracker_service, mock_provider, user_id):
    payload = ProjectUpdate(requester="Eve")
    await tracker_service.update_project("proj-1", payload, user_id)
    mock_provider.update_project.assert_awaited_once_with("proj-1", payload, user_id)


@pytest.mark.asyncio
async def test_data_provider_projects_records(mock_dataverse_client, make_raw_task):
    """DataProvider returns projected models and forwards completion state on cancel"""
    mock_dataverse_client.get_tasks_for_projects = AsyncMock(return_value=[make_raw_task()])
    provider = DataProvider(mock_dataverse_client)

    tasks = await provider.list_tasks_for_projects(["proj-1"])
    assert tasks[0].status == TaskStatus.IN_PROGRESS

    created = await provider.create_task(TaskCreate(name="New", project_id="proj-1"))
    assert created.id == "new-task"

    completed = tasks[0].model_copy(update={"status": TaskStatus.COMPLETED})
    await provider.update_task("task-1", TaskUpdate(status=TaskStatus.CANCELLED), "caller", current=completed)
    assert mock_dataverse_client.update_task.call_args.kwargs["keep_completed"] is True

    await provider.update_task("task-1", TaskUpdate(status=TaskStatus.CANCELLED), "caller")
    assert mock_dataverse_client.update_task.call_args.kwargs["keep_completed"] is None


@pytest.mark.asyncio
async def test_data_provider_task_reads(mock_dataverse_client, make_raw_task):
    mock_dataverse_client.get_tasks_for_project = AsyncMock(return_value=[make_raw_task()])
    mock_dataverse_client.get_all_tasks = AsyncMock(return_value=[make_raw_task(), make_raw_task(statecode=1)])
    provider = DataProvider(mock_dataverse_client)

    assert [t.id for t in await provider.list_tasks_for_project("proj-1")] == ["task-1"]
    mock_dataverse_client.get_tasks_for_project.assert_awaited_once_with("proj-1")

    statuses = [t.status for t in await provider.list_all_tasks()]
    assert statuses == [TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED]
