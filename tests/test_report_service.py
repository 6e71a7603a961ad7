"""
Tests for document and weekly report drafting
"""

from datetime import date, timezone
import pytest
from unittest.mock import AsyncMock, MagicMock
from openai import OpenAIError
from tracker.api.openai_client import OpenAIClient
from tracker.models.report import DocumentType
from tracker.models.task import TaskStatus
from tracker.services.report_service import ReportService, clean_generated_html
from tracker.utils.error_handler import ValidationError, TextGenerationError


@pytest.mark.parametrize("raw,expected", [
    ("```html\n<h1>Doc</h1>\n```", "<h1>Doc</h1>"),
    ("  <p>Plain</p>  ", "<p>Plain</p>"),
    ("```html<p>x</p>```  \n", "<p>x</p>"),
    ("", ""),
])
def test_clean_generated_html(raw, expected):
    assert clean_generated_html(raw) == expected


@pytest.mark.asyncio
async def test_project_document(mock_openai_client, project, make_task):
    service = ReportService(mock_openai_client)
    tasks = [
        make_task("Collect needs", TaskStatus.COMPLETED, description="<b>Talk</b> to users", assignee="Alice"),
        make_task("Secret", TaskStatus.CANCELLED),
    ]

    document = await service.generate_project_document(project, tasks, DocumentType.TECHNICAL)

    assert document.title == "Technical Document: Portal"
    assert document.content == "<h1>Report</h1>"
    prompt = mock_openai_client.generate.call_args.args[0]
    assert 'Technical Document: Portal' in prompt
    assert "Collect needs" in prompt
    assert "<b>" not in prompt
    assert "Secret" not in prompt


@pytest.mark.asyncio
async def test_weekly_report_without_completed_tasks(mock_openai_client, member, make_task):
    service = ReportService(mock_openai_client)
    tasks = [make_task("Open", TaskStatus.IN_PROGRESS, assignee_id=member.id, end_date_raw="2024-03-05T09:00:00Z")]

    document = await service.generate_weekly_report(member, tasks, date(2024, 3, 4), date(2024, 3, 8))

    assert document.generated is False
    assert "No completed tasks found for the selected user and period." in document.content
    mock_openai_client.generate.assert_not_called()


@pytest.mark.asyncio
async def test_weekly_report_prompt(mock_openai_client, member, make_task):
    service = ReportService(mock_openai_client)
    tasks = [
        make_task("Second", TaskStatus.COMPLETED, assignee_id=member.id, end_date_raw="2024-03-06T09:00:00Z",
                  project="Portal"),
        make_task("First", TaskStatus.COMPLETED, assignee_id=member.id, end_date_raw="2024-03-04T09:00:00Z",
                  project="Portal"),
    ]

    document = await service.generate_weekly_report(
        member, tasks, date(2024, 3, 4), date(2024, 3, 8), department="HR", tz=timezone.utc,
    )

    assert document.content == "<h1>Report</h1>"
    prompt = mock_openai_client.generate.call_args.args[0]
    assert prompt.index("First") < prompt.index("Second")
    assert "Assignee: Alice" in prompt
    assert "Department: HR" in prompt
    assert "04/03/2024 - 08/03/2024" in prompt


@pytest.mark.asyncio
async def test_weekly_report_inverted_period(mock_openai_client, member):
    service = ReportService(mock_openai_client)
    with pytest.raises(ValidationError):
        await service.generate_weekly_report(member, [], date(2024, 3, 8), date(2024, 3, 4))


@pytest.mark.asyncio
async def test_openai_client_falls_back_then_raises():
    """Test fallback model retry and error conversion"""
    sdk = MagicMock()
    sdk.chat.completions.create = AsyncMock(side_effect=OpenAIError("quota"))
    client = OpenAIClient(client=sdk)

    with pytest.raises(TextGenerationError):
        await client.generate("hello", model="gpt-4o")

    models = [call.kwargs["model"] for call in sdk.chat.completions.create.call_args_list]
    assert models == ["gpt-4o", client.fallback_model]


@pytest.mark.asyncio
async def test_openai_client_generate():
    sdk = MagicMock()
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content="<p>Hi</p>"))]
    sdk.chat.completions.create = AsyncMock(return_value=response)
    client = OpenAIClient(client=sdk)

    assert await client.generate("hello") == "<p>Hi</p>"
    assert sdk.chat.completions.create.call_args.kwargs["messages"] == [{"role": "user", "content": "hello"}]


@pytest.mark.asyncio
async def test_weekly_report_unknown_department(mock_openai_client, member):
    service = ReportService(mock_openai_client)
    with pytest.raises(ValidationError, match="department"):
        await service.generate_weekly_report(member, [], date(2024, 3, 4), date(2024, 3, 8), department="Marketing")
