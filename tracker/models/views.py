"""
Read models produced by the aggregation engine and the task view builders
"""

from datetime import date
from typing import Optional, List, Dict, Union
from pydantic import BaseModel, Field, ConfigDict
from tracker.models.task import Task, TaskStatus, TaskPriority, TechResource, ProductMember
from tracker.models.project import Project, WeCareSystem


class TaskFilter(BaseModel):
    """
    Composable task filter; every criterion is optional.
    
    status may be a single status or a collection of statuses.
    """
    
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    
    text: str = ""
    assignee_id: Optional[str] = Field(None, alias="assigneeId")
    status: Optional[Union[TaskStatus, List[TaskStatus]]] = None
    priority: Optional[TaskPriority] = None


class ProgressSummary(BaseModel):
    """Current step / next step / blockers narrative for one project"""
    current_step: str = Field(..., alias="currentStep")
    next_step: str = Field(..., alias="nextStep")
    blockers: str
    
    model_config = ConfigDict(populate_by_name=True)


class ProjectBlockers(BaseModel):
    """Pending tasks of one project, for the dashboard"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    project_id: str = Field(..., alias="projectId")
    project_name: str = Field(..., alias="projectName")
    blocker_tasks: List[str] = Field(default_factory=list, alias="blockerTasks")


class KanbanColumn(BaseModel):
    status: TaskStatus
    tasks: List[Task] = Field(default_factory=list)


class KanbanBoard(BaseModel):
    columns: List[KanbanColumn] = Field(default_factory=list)
    
    def column(self, status: TaskStatus) -> Optional[KanbanColumn]:
        for col in self.columns:
            if col.status == status:
                return col
        return None


class TimelineBar(BaseModel):
    """Horizontal bar placement on the day grid, in whole days"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    task: Task
    start: date
    end: date
    offset: int
    width: int


class TimelineGrid(BaseModel):
    """Day-indexed timeline view model"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    min_date: Optional[date] = Field(None, alias="minDate")
    max_date: Optional[date] = Field(None, alias="maxDate")
    days: List[date] = Field(default_factory=list)
    today_index: Optional[int] = Field(None, alias="todayIndex")
    bars: List[TimelineBar] = Field(default_factory=list)


class Snapshot(BaseModel):
    """
    Immutable in-memory copy of everything the UI shows.
    
    Writes never patch a snapshot; they trigger a new one.
    """
    
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    
    user_id: Optional[str] = Field(None, alias="userId")
    projects: List[Project] = Field(default_factory=list)
    tasks: List[Task] = Field(default_factory=list)
    members: List[ProductMember] = Field(default_factory=list)
    systems: List[WeCareSystem] = Field(default_factory=list)
    
    def find_project(self, project_id: str) -> Optional[Project]:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None
    
    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None
    
    def tasks_for_project(self, project_id: str) -> List[Task]:
        return [t for t in self.tasks if t.project_id == project_id]


class ProjectCard(BaseModel):
    """Dashboard card: one project with its own completion percentage"""
    
    project: Project
    progress: float = 0.0


class ProjectGroups(BaseModel):
    """Project navigation grouped by category; completed projects are not listed"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    active: List[Project] = Field(default_factory=list)
    maintenance: List[Project] = Field(default_factory=list)
    planned: List[Project] = Field(default_factory=list)


class DashboardView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    active_projects: List[ProjectCard] = Field(default_factory=list, alias="activeProjects")
    blockers: List[ProjectBlockers] = Field(default_factory=list)


class ProjectDetailView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    
    project: Project
    tasks: List[Task] = Field(default_factory=list)
    progress: float = 0.0
    summary: ProgressSummary
    tech_stack: Dict[str, List[TechResource]] = Field(default_factory=dict, alias="techStack")
    tab_counts: Dict[str, int] = Field(default_factory=dict, alias="tabCounts")
