"""
Document and report models
"""

from datetime import date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class DocumentType(str, Enum):
    """Project document kinds the text generator can draft"""
    REQUIREMENT = "Requirement"
    TECHNICAL = "Technical"
    USER_GUIDE = "User Guide"


class DocumentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    doc_type: DocumentType = Field(DocumentType.REQUIREMENT, alias="docType")


class WeeklyReportRequest(BaseModel):
    """Completed-work report for one assignee over a date range"""

    model_config = ConfigDict(populate_by_name=True)

    assignee_id: str = Field(..., alias="assigneeId")
    start_date: date = Field(..., alias="startDate")
    end_date: date = Field(..., alias="endDate")
    department: Optional[str] = None


class GeneratedDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    content: str
    generated: bool = True
