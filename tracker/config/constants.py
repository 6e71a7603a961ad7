"""
Application constants
"""

# Dataverse entity sets
PROJECTS_ENTITY_SET = "ai_processes"
TASKS_ENTITY_SET = "crdfd_tech_taskses"
TECH_RESOURCES_ENTITY_SET = "crdfd_tech_resources"
PRODUCT_MEMBERS_ENTITY_SET = "crdfd_productmembers"
SYSTEMS_ENTITY_SET = "crdfd_wecaresystems"

# OData annotation suffix for display values of choice/lookup columns
FORMATTED_VALUE = "@OData.Community.Display.V1.FormattedValue"

# Task status option set (crdfd_taskstatus)
TASK_STATUS_CODES = {
    "To Do": 191920000,  # "Not Start"
    "In Progress": 191920001,
    "Review": 191920002,
    "Completed": 191920003,
    "Pending": 191920004,
}

# Stored status used when deactivating (cancelling) a task
CANCELLED_PLACEHOLDER_STATUS_CODE = 191920002

# Priority option set (tasks and projects share it)
PRIORITY_CODES = {
    "High": 191920000,
    "Medium": 191920001,
    "Low": 191920002,
}

# Project status option set (crdfd_processstatus)
PROJECT_STATUS_CODES = {
    "Planning": 191920000,
    "Active": 191920001,
    "Backlog": 191920002,
    "Maintenance": 191920003,
    "Completed / Closed": 100000001,
}

# Record state (statecode)
STATE_ACTIVE = 0
STATE_INACTIVE = 1

# Departments
GENERAL_DEPARTMENT_CODE = 191920006

# Tech resource type option set (crdfd_type)
TECH_RESOURCE_TYPE_CODES = {
    "Model driven": 191920000,
    "Canvas app": 191920001,
    "Automate flow": 191920002,
    "Data flow": 191920003,
    "Report": 191920004,
    "HTML/JS": 191920005,
    "Web": 191920006,
    "Others": 191920007,
    "Calculated Column": 191920008,
}
TECH_RESOURCE_DEFAULT_GROUP = "Others"

# Task dates are entered as calendar days and stored at fixed local hours (UTC+7)
TASK_DATE_UTC_OFFSET = 7
TASK_START_TIME = "08:00:00"
TASK_END_TIME = "17:00:00"

# Sentinels for the project progress narrative
NOTHING_IN_PROGRESS = "No tasks are currently in progress."
NO_UPCOMING_TASKS = "No upcoming tasks planned."
REVIEW_OR_PLAN_NEXT = "Review completed tasks or plan next steps."
NO_BLOCKERS = "None"
UNKNOWN_PROJECT = "Unknown Project"

# Display fallbacks
UNASSIGNED = "Unassigned"
UNNAMED_TASK = "Unnamed Task"
NOT_AVAILABLE = "N/A"
DEFAULT_DEPARTMENT = "General"
DEFAULT_SYSTEM = "General"

# Timeline grid padding (days)
TIMELINE_LEAD_IN_DAYS = 7
TIMELINE_TRAIL_DAYS = 14

# Tasks seeded into every new project
DEFAULT_TASKS = [
    {
        "name": "Requirement Gathering & Analysis",
        "description": "Gather requirements from users/business teams, define scope, data, roles, risks.",
    },
    {
        "name": "Design & Solution Definition",
        "description": "Design the solution, data model, processing flow, API, UX/UI, integration diagrams.",
    },
    {
        "name": "Testing & Quality Review",
        "description": "Test functionality, data, and performance; internal QA; confirm results with stakeholders.",
    },
    {
        "name": "Documentation & Demo",
        "description": "Write technical documentation, user guides; prepare for demo and handover sessions.",
    },
    {
        "name": "Feedback & Revision",
        "description": "Collect feedback after the demo, update & refine the system.",
    },
]

# Users that can be impersonated (named-user role toggle)
USERS = [
    {"id": "399bde80-1c54-ed11-9562-000d3ac7ccec", "name": "Hieu Le Hoang"},
    {"id": "829bde80-1c54-ed11-9562-000d3ac7ccec", "name": "Hoàng Trần"},
    {"id": "12b2dda8-e49f-ef11-8a69-000d3ac8d88c", "name": "Thông Cao Văn"},
    {"id": "106ab015-d788-ee11-be36-000d3aa3f53e", "name": "Hoàng Nguyễn Minh"},
    {"id": "dced0234-5bb0-ef11-b8e8-000d3ac7ae9c", "name": "Nghĩa Phan Trọng"},
    {"id": "654a811b-7a8f-f011-b4cc-0022485a6354", "name": "Thơ Lê Văn"},
]

# Default department per user (option codes); USER_DEPARTMENT_MAP overrides
USER_DEPARTMENTS = {
    "399bde80-1c54-ed11-9562-000d3ac7ccec": 191920006,  # General
    "829bde80-1c54-ed11-9562-000d3ac7ccec": 191920006,  # General
    "12b2dda8-e49f-ef11-8a69-000d3ac8d88c": 191920002,  # Logistics
    "106ab015-d788-ee11-be36-000d3aa3f53e": 191920001,  # Procurement
    "dced0234-5bb0-ef11-b8e8-000d3ac7ae9c": 191920001,  # Procurement
}

# OpenAI
OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
OPENAI_DOCS_MODEL = "gpt-4o"
OPENAI_FALLBACK_MODEL = "gpt-4-turbo"
OPENAI_MAX_TOKENS = 4000
OPENAI_TEMPERATURE = 0.7

# Reads are retried on transport errors; writes never are
MAX_READ_RETRIES = 3
RETRY_DELAY = 1  # seconds

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "tracker.log"
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Reports
WEEKLY_REPORT_TITLE = "Completed Work Report"
NO_COMPLETED_TASKS_REPORT = (
    f"<h1>{WEEKLY_REPORT_TITLE}</h1>"
    "<div class='report-meta'><p>No completed tasks found for the selected user and period.</p></div>"
)
REPORT_DEPARTMENTS = ["R&D", "Sale", "Sourcing", "Logistic", "HR", "Accounting", "Finance"]
DEFAULT_REPORT_DEPARTMENT = "R&D"
