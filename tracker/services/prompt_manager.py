"""
Prompt management for document and report drafting
"""

import json
import re
from typing import List, Optional
from tracker.models.project import Project
from tracker.models.report import DocumentType
from tracker.models.task import Task
from tracker.utils.logger import logger

_HTML_TAG = re.compile(r"<[^>]*>")


def strip_html(text: Optional[str]) -> str:
    """Replace HTML tags with spaces"""
    if not text:
        return ""
    return _HTML_TAG.sub(" ", text)


class PromptManager:
    """Manager for text generator prompts"""

    DOCUMENT_BASE_PROMPT = """Act as a professional Business Analyst.
Using the project information and task list below, write a document.

GENERAL REQUIREMENTS:
- Output must be a plain HTML string ready to display. Use <h1>, <h2>, <ul>, <li>, <p>, <strong>, and <pre> for ASCII diagrams. Keep a clear, professional style.
- Do NOT include ```html, <html>, <head>, or <body> tags.
- Keep the content clear and concise.
- Use ASCII diagrams for technical sections.

Project and task information:
```
{project_info}

{task_info}
```
---
"""

    DOCUMENT_SECTIONS = {
        DocumentType.REQUIREMENT: """DOCUMENT TO CREATE: Requirement Document
IMPORTANT:
1. The main title must be "Requirement Document: {name}".
2. Do NOT repeat general project information (name, requester, IT staff, dates) in the body. Start directly with the requirement sections.
3. Keep the content short and focused on the main points.

Include these sections:
- Business Requirements (BRD)
- System Requirements Specification (SRS)
  - Functional Requirements
  - Non-functional Requirements
- Use Cases or User Stories, with an ASCII flow for each
- As-Is and To-Be process flow in ASCII
- ERD in ASCII
- Assumptions and Constraints
""",
        DocumentType.TECHNICAL: """DOCUMENT TO CREATE: Technical Document
IMPORTANT: The main title must be "Technical Document: {name}".
Focus on ASCII diagrams to describe flows. Keep prose short and technical.

Include these sections, in this order:
- Solution Overview
- Architecture Diagram (ASCII)
- Module or Component Design
- Process Flow Diagram (ASCII)
- UI Wireframe (ASCII, main screens)
- Data Model or Table Structure
- Integration Design, if any
- Security and Access Control
""",
        DocumentType.USER_GUIDE: """DOCUMENT TO CREATE: User Guide Document
IMPORTANT:
1. The main title must be "User Guide Document: {name}".
2. Write short, clear sentences. Use bullet points and clear headings.

Include these sections:
- Introduction
- System Access
- Feature guide: each function, with ASCII illustrations where useful
- Tips and Troubleshooting
- FAQ and Support
""",
    }

    WEEKLY_REPORT_PROMPT = """You are a professional project management assistant. Using the COMPLETED tasks below (JSON, already sorted by completion time), write a "{title}". Return a plain HTML string.

Task data (JSON):
{tasks_json}

Report information:
- Assignee: {assignee}
- Period: {period}
- Department: {department}

Output format (HTML):
- The whole result is an HTML string. Do NOT include ```html, <html>, <head> or <body>. Return only body content.
- Do NOT use Markdown.
- Main title: <h1>{title}</h1>.
- Wrap "Assignee", "Period" and "Department" in a <div class="report-meta">, one <p> per item with the label in <strong>.
- Section "1. Summary of completed work" as <h2>, followed by a <ul> of very short key results.
- Section "2. Details" as <h2>, followed by a <table> with columns "Project", "Completed work", "Difficulties", "Next steps".
  - One row per project. "Completed work" holds a nested <ul>, one <li> per task, keeping the input order.
  - Infer short "Difficulties" (write "None" if there are none) and "Next steps" (write "Done" when nothing follows).
"""

    def __init__(self):
        """Initialize prompt manager"""
        self.logger = logger

    def build_document_prompt(self, project: Project, tasks: List[Task], doc_type: DocumentType) -> str:
        """
        Build the prompt for a project document

        Args:
            project: Project to document
            tasks: Tasks of the project (already filtered)
            doc_type: Kind of document

        Returns:
            Prompt text
        """
        project_info = "\n".join([
            f"Project: {project.name}",
            f"Description: {strip_html(project.description)}",
            f"Requester: {project.requester}",
            f"IT staff: {', '.join(project.it_staff)}",
            f"Start date: {project.start_date}",
            f"End date: {project.end_date}",
            f"Status: {project.status.value}",
        ])
        task_info = "\n".join(
            f"- Task: {t.name}\n  Description: {strip_html(t.description)}\n"
            f"  Status: {t.status.value}\n  Assignee: {t.assignee}"
            for t in tasks
        )

        base = self.DOCUMENT_BASE_PROMPT.format(project_info=project_info, task_info=task_info)
        section = self.DOCUMENT_SECTIONS[DocumentType(doc_type)].format(name=project.name)
        self.logger.debug(f"Built {doc_type.value} prompt for project {project.id}")
        return f"{base}\n{section}"

    def build_weekly_report_prompt(
        self,
        title: str,
        assignee: str,
        period: str,
        department: str,
        tasks: List[Task],
    ) -> str:
        rows = [
            {"project": t.project, "task": t.name, "description": strip_html(t.description)}
            for t in tasks
        ]
        return self.WEEKLY_REPORT_PROMPT.format(
            title=title,
            tasks_json=json.dumps(rows, ensure_ascii=False),
            assignee=assignee,
            period=period,
            department=department,
        )
