"""
Task model
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class TaskStatus(str, Enum):
    """Effective task status"""
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    COMPLETED = "Completed"
    PENDING = "Pending"
    CANCELLED = "Cancelled"
    UNKNOWN = "Unknown"


class TaskPriority(str, Enum):
    """Task priority"""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    NA = "N/A"


class TechResource(BaseModel):
    """Deliverable or reference artifact linked to tasks"""
    
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    
    id: str
    name: str
    type: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    resource_link: Optional[str] = Field(None, alias="resourceLink")
    resource_json: Optional[str] = Field(None, alias="resourceJson")


class ProductMember(BaseModel):
    """Person who can be assigned to a task"""
    
    model_config = ConfigDict(frozen=True)
    
    id: str
    name: str


class Task(BaseModel):
    """Task view model"""
    
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    
    id: str
    name: str
    status: TaskStatus = TaskStatus.UNKNOWN
    priority: TaskPriority = TaskPriority.NA
    assignee: str = "Unassigned"
    assignee_id: Optional[str] = Field(None, alias="assigneeId")
    due_date: str = Field("", alias="dueDate")
    end_date_raw: Optional[str] = Field(None, alias="endDateRaw")
    start_date: str = Field("", alias="startDate")
    start_date_raw: Optional[str] = Field(None, alias="startDateRaw")
    project: str = "N/A"
    project_id: Optional[str] = Field(None, alias="projectId")
    description: str = ""
    created_on: str = Field("N/A", alias="createdOn")
    created_on_date: Optional[str] = Field(None, alias="createdOnDate")
    proof_of_complete: Optional[str] = Field(None, alias="proofOfComplete")
    tech_resource: Optional[TechResource] = Field(None, alias="techResource")


class TaskCreate(BaseModel):
    """Task creation model"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    name: str
    project_id: str = Field(..., alias="projectId")
    description: Optional[str] = None
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    assignee_id: Optional[str] = Field(None, alias="assigneeId")
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None


class TaskUpdate(BaseModel):
    """
    Partial task update model
    
    Only fields explicitly set are sent. An explicit assignee_id of None (or "")
    unassigns the task; an explicit empty date clears it.
    """
    
    model_config = ConfigDict(populate_by_name=True)
    
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    assignee_id: Optional[str] = Field(None, alias="assigneeId")
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    proof_of_complete: Optional[str] = Field(None, alias="proofOfComplete")


class TechResourceCreate(BaseModel):
    """Tech resource creation model"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    name: str
    type: Optional[str] = None
    version: Optional[str] = None
    description: Optional[str] = None
    resource_link: Optional[str] = Field(None, alias="resourceLink")
    resource_json: Optional[str] = Field(None, alias="resourceJson")


class TaskMove(BaseModel):
    """Kanban drop onto a status column"""
    
    status: TaskStatus
