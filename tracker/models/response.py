"""
Response models for the web API
"""

from typing import Optional, Any
from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Successful API response"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Error response model"""
    message: str
    success: bool = False
    error_code: Optional[str] = None
    details: Optional[dict] = None
