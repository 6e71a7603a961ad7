"""
Project model
"""

from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict
from tracker.models.task import TaskPriority


class ProjectStatus(str, Enum):
    """Project lifecycle status"""
    PLANNING = "Planning"
    ACTIVE = "Active"
    BACKLOG = "Backlog"
    MAINTENANCE = "Maintenance"
    COMPLETED = "Completed / Closed"


class ProjectCategory(str, Enum):
    """Dashboard grouping derived from ProjectStatus"""
    ACTIVE = "ACTIVE"
    MAINTENANCE = "MAINTENANCE"
    PLANNED = "PLANNED"
    COMPLETED = "COMPLETED"


class WeCareSystem(BaseModel):
    """System a project can be linked to"""
    
    model_config = ConfigDict(frozen=True)
    
    id: str
    name: str


class Project(BaseModel):
    """Project view model"""
    
    model_config = ConfigDict(populate_by_name=True, frozen=True)
    
    id: str
    name: str
    category: ProjectCategory = ProjectCategory.ACTIVE
    status: ProjectStatus = ProjectStatus.BACKLOG
    description: Optional[str] = None
    requester: str = "N/A"
    priority: str = "N/A"
    department: str = "General"
    system: str = "General"
    owner: str = "N/A"
    it_staff: List[str] = Field(default_factory=lambda: ["N/A"], alias="itStaff")
    start_date: str = Field("", alias="startDate")
    start_date_raw: Optional[str] = Field(None, alias="startDateRaw")
    end_date: str = Field("", alias="endDate")
    end_date_raw: Optional[str] = Field(None, alias="endDateRaw")
    created_on: str = Field("", alias="createdOn")
    objectives: Optional[str] = None
    full_context: Optional[str] = Field(None, alias="fullContext")
    process_url: Optional[str] = Field(None, alias="processUrl")
    all_step_url: Optional[str] = Field(None, alias="allStepUrl")
    group_chat: Optional[str] = Field(None, alias="groupChat")
    user_guide: Optional[str] = Field(None, alias="userGuide")
    technical_docs: Optional[str] = Field(None, alias="technicalDocs")


class ProjectCreate(BaseModel):
    """Project creation model"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    name: str
    description: Optional[str] = None
    requester: Optional[str] = None
    priority: Optional[TaskPriority] = None
    it_staff: Optional[str] = Field(None, alias="itStaff")
    group_chat: Optional[str] = Field(None, alias="groupChat")
    user_guide: Optional[str] = Field(None, alias="userGuide")
    technical_docs: Optional[str] = Field(None, alias="technicalDocs")
    process_url: Optional[str] = Field(None, alias="processUrl")
    all_step_url: Optional[str] = Field(None, alias="allStepUrl")
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    system_id: Optional[str] = Field(None, alias="systemId")
    department: Optional[int] = None
    status: Optional[ProjectStatus] = None


class ProjectUpdate(BaseModel):
    """Partial project update model; only explicitly set fields are sent"""
    
    model_config = ConfigDict(populate_by_name=True)
    
    name: Optional[str] = None
    description: Optional[str] = None
    requester: Optional[str] = None
    priority: Optional[TaskPriority] = None
    it_staff: Optional[str] = Field(None, alias="itStaff")
    group_chat: Optional[str] = Field(None, alias="groupChat")
    user_guide: Optional[str] = Field(None, alias="userGuide")
    technical_docs: Optional[str] = Field(None, alias="technicalDocs")
    process_url: Optional[str] = Field(None, alias="processUrl")
    all_step_url: Optional[str] = Field(None, alias="allStepUrl")
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    status: Optional[ProjectStatus] = None
