"""
Pytest configuration and fixtures
"""

import itertools
import pytest
from unittest.mock import AsyncMock, MagicMock
from tracker.api.dataverse_client import DataverseClient
from tracker.api.openai_client import OpenAIClient
from tracker.config.constants import FORMATTED_VALUE
from tracker.models.project import Project, ProjectCategory, ProjectStatus
from tracker.models.task import Task, TaskStatus, ProductMember
from tracker.models.views import Snapshot
from tracker.services.data_provider import DataProvider
from tracker.services.tracker_service import TrackerService

USER_ID = "399bde80-1c54-ed11-9562-000d3ac7ccec"
PROJECT_ID = "proj-1"


@pytest.fixture
def user_id():
    return USER_ID


@pytest.fixture
def make_task():
    """Factory for Task view models with sensible defaults"""
    counter = itertools.count(1)

    def _make(name="Task", status=TaskStatus.TODO, **fields):
        fields.setdefault("id", f"task-{next(counter)}")
        fields.setdefault("project_id", PROJECT_ID)
        return Task(name=name, status=status, **fields)

    return _make


@pytest.fixture
def make_raw_task():
    """Factory for raw task records as returned by the Web API"""

    def _make(**overrides):
        record = {
            "crdfd_tech_tasksid": "task-1",
            "crdfd_name": "Write specs",
            "crdfd_description": "<p>Draft</p>",
            "crdfd_taskstatus": 191920001,
            f"crdfd_taskstatus{FORMATTED_VALUE}": "In Progress",
            "statecode": 0,
            "crdfd_priority": 191920000,
            f"crdfd_priority{FORMATTED_VALUE}": "High",
            "_crdfd_assignedtask_value": "member-1",
            "crdfd_Assignedtask": {"crdfd_name": "Alice"},
            "crdfd_start_date": "2024-03-01T01:00:00Z",
            "crdfd_enddate": "2024-03-05T10:00:00Z",
            "createdon": "2024-02-20T08:00:00Z",
            f"createdon{FORMATTED_VALUE}": "2/20/2024 3:00 PM",
            "_crdfd_process_value": PROJECT_ID,
            f"_crdfd_process_value{FORMATTED_VALUE}": "Portal",
            "crdfd_proof_of_complete_": None,
            "crdfd_Tech_Resource": None,
        }
        record.update(overrides)
        return record

    return _make


@pytest.fixture
def make_raw_project():
    """Factory for raw project records"""

    def _make(**overrides):
        record = {
            "ai_processid": PROJECT_ID,
            "ai_name": "Portal",
            "crdfd_description": "Customer portal",
            "crdfd_requester": "Bob",
            "crdfd_user": "Carol",
            "crdfd_processstatus": 191920001,
            f"crdfd_processstatus{FORMATTED_VALUE}": "Active",
            f"crdfd_priority{FORMATTED_VALUE}": "High",
            f"crdfd_department_{FORMATTED_VALUE}": "Logistics",
            f"_crdfd_system_value{FORMATTED_VALUE}": "ERP",
            f"_ownerid_value{FORMATTED_VALUE}": "Dana",
            "crdfd_start_date": "2024-03-01T00:00:00Z",
            "crdfd_end_date": "2024-04-01T00:00:00Z",
            "createdon": "2024-02-01T00:00:00Z",
        }
        record.update(overrides)
        return record

    return _make


@pytest.fixture
def project():
    return Project(
        id=PROJECT_ID,
        name="Portal",
        category=ProjectCategory.ACTIVE,
        status=ProjectStatus.ACTIVE,
        description="<p>Customer portal</p>",
        requester="Bob",
    )


@pytest.fixture
def member():
    return ProductMember(id="member-1", name="Alice_R&D")


@pytest.fixture
def snapshot(project, member, make_task):
    tasks = [
        make_task("Kickoff", TaskStatus.COMPLETED, id="task-1"),
        make_task("Build", TaskStatus.IN_PROGRESS, id="task-2"),
        make_task("Blocked", TaskStatus.PENDING, id="task-3"),
    ]
    return Snapshot(user_id=USER_ID, projects=[project], tasks=tasks, members=[member])


@pytest.fixture
def mock_dataverse_client():
    """Mock Dataverse client"""
    client = MagicMock(spec=DataverseClient)
    client.access_token = "test_token"
    client.authenticate = AsyncMock(return_value=True)
    client.get_projects = AsyncMock(return_value=[])
    client.get_tasks_for_projects = AsyncMock(return_value=[])
    client.get_tasks_for_project = AsyncMock(return_value=[])
    client.get_all_tasks = AsyncMock(return_value=[])
    client.get_product_members = AsyncMock(return_value=[])
    client.get_we_care_systems = AsyncMock(return_value=[])
    client.get_tech_resources = AsyncMock(return_value=[])
    client.create_task = AsyncMock(return_value={"crdfd_tech_tasksid": "new-task", "crdfd_name": "New"})
    client.update_task = AsyncMock(return_value=None)
    client.create_project = AsyncMock(return_value={"ai_processid": "new-project", "ai_name": "New project"})
    client.update_project = AsyncMock(return_value=None)
    client.create_tech_resource = AsyncMock(return_value={"crdfd_tech_resourceid": "res-1", "crdfd_name": "Flow"})
    return client


@pytest.fixture
def mock_provider():
    """Mock Data Provider"""
    provider = MagicMock(spec=DataProvider)
    provider.list_projects = AsyncMock(return_value=[])
    provider.list_tasks_for_projects = AsyncMock(return_value=[])
    provider.list_product_members = AsyncMock(return_value=[])
    provider.list_systems = AsyncMock(return_value=[])
    provider.list_tech_resources = AsyncMock(return_value=[])
    provider.create_task = AsyncMock(return_value=None)
    provider.update_task = AsyncMock(return_value=None)
    provider.create_project = AsyncMock()
    provider.update_project = AsyncMock(return_value=None)
    provider.create_tech_resource = AsyncMock(return_value=None)
    return provider


@pytest.fixture
def tracker_service(mock_provider):
    return TrackerService(mock_provider, department_map={USER_ID: 191920006})


@pytest.fixture
def mock_openai_client():
    """Mock OpenAI client"""
    client = MagicMock(spec=OpenAIClient)
    client.generate = AsyncMock(return_value="```html\n<h1>Report</h1>\n```")
    return client
