"""
Document and weekly report drafting through the text generator
"""

import re
from datetime import date, tzinfo
from typing import List, Optional
from tracker.api.openai_client import OpenAIClient
from tracker.config.constants import (
    WEEKLY_REPORT_TITLE,
    NO_COMPLETED_TASKS_REPORT,
    REPORT_DEPARTMENTS,
    DEFAULT_REPORT_DEPARTMENT,
    NOT_AVAILABLE,
    OPENAI_DOCS_MODEL,
)
from tracker.config.settings import settings
from tracker.models.project import Project
from tracker.models.report import DocumentType, GeneratedDocument
from tracker.models.task import Task, ProductMember
from tracker.services.aggregation import visible_tasks, completed_in_period
from tracker.services.prompt_manager import PromptManager
from tracker.utils.error_handler import ValidationError
from tracker.utils.logger import logger

_LEADING_FENCE = re.compile(r"^```html\s*")
_TRAILING_FENCE = re.compile(r"```\s*$")


def clean_generated_html(content: str) -> str:
    """Remove a leading ```html fence and a trailing ``` fence"""
    content = _LEADING_FENCE.sub("", content or "")
    content = _TRAILING_FENCE.sub("", content)
    return content.strip()


def _display_name(member: ProductMember) -> str:
    # Member names may carry a "_suffix" (e.g. department)
    return member.name.split("_")[0] or member.name or NOT_AVAILABLE


class ReportService:
    """Service for drafting project documents and weekly reports"""

    def __init__(self, text_generator: OpenAIClient, prompt_manager: Optional[PromptManager] = None):
        """
        Initialize report service

        Args:
            text_generator: Client exposing generate(prompt, model=None)
            prompt_manager: Prompt builder
        """
        self.text_generator = text_generator
        self.prompt_manager = prompt_manager or PromptManager()
        self.logger = logger

    async def generate_project_document(
        self,
        project: Project,
        tasks: List[Task],
        doc_type: DocumentType = DocumentType.REQUIREMENT,
    ) -> GeneratedDocument:
        """
        Draft a Requirement, Technical or User Guide document for a project

        Args:
            project: Project to document
            tasks: Project tasks (cancelled ones are left out)
            doc_type: Kind of document

        Returns:
            GeneratedDocument with cleaned HTML content
        """
        doc_type = DocumentType(doc_type)
        prompt = self.prompt_manager.build_document_prompt(project, visible_tasks(tasks), doc_type)

        self.logger.info(f"Generating {doc_type.value} document for project {project.id}")
        content = await self.text_generator.generate(prompt, model=settings.OPENAI_DOCS_MODEL or OPENAI_DOCS_MODEL)

        return GeneratedDocument(
            title=f"{doc_type.value} Document: {project.name}",
            content=clean_generated_html(content),
        )

    async def generate_weekly_report(
        self,
        assignee: ProductMember,
        tasks: List[Task],
        start: date,
        end: date,
        department: Optional[str] = None,
        tz: Optional[tzinfo] = None,
    ) -> GeneratedDocument:
        """
        Draft the completed-work report of one assignee

        Only Completed tasks whose end date falls within [start, end] (whole
        local days) are reported. Without any, a fixed "nothing completed"
        block is returned and the generator is not called.

        Raises:
            ValidationError: If the period is inverted or the department unknown
        """
        if end < start:
            raise ValidationError("Report end date is before its start date")
        if department and department not in REPORT_DEPARTMENTS:
            raise ValidationError(f"Unknown department '{department}'")

        completed = completed_in_period(tasks, assignee.id, start, end, tz=tz)
        if not completed:
            self.logger.info(f"No completed tasks for {assignee.id} between {start} and {end}")
            return GeneratedDocument(title=WEEKLY_REPORT_TITLE, content=NO_COMPLETED_TASKS_REPORT, generated=False)

        period = f"{start.strftime('%d/%m/%Y')} - {end.strftime('%d/%m/%Y')}"
        prompt = self.prompt_manager.build_weekly_report_prompt(
            title=WEEKLY_REPORT_TITLE,
            assignee=_display_name(assignee),
            period=period,
            department=department or DEFAULT_REPORT_DEPARTMENT,
            tasks=completed,
        )

        self.logger.info(f"Generating weekly report for {assignee.id} ({len(completed)} tasks)")
        content = await self.text_generator.generate(prompt)
        return GeneratedDocument(title=WEEKLY_REPORT_TITLE, content=clean_generated_html(content))
