"""
Error handling utilities
"""

from typing import Optional
from tracker.models.response import ErrorResponse
from tracker.utils.logger import logger


class TrackerError(Exception):
    """Base exception for tracker errors"""
    pass


class APIError(TrackerError):
    """Data Provider call failed (transport, remote validation, authorization)"""
    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)
    
    @property
    def is_not_found(self) -> bool:
        return self.error_code == "404"


class ValidationError(TrackerError):
    """Validation error exception"""
    pass


class NotFoundError(TrackerError):
    """Requested project or task is not in the current snapshot"""
    pass


class TextGenerationError(TrackerError):
    """Text Generator call failed"""
    pass


def handle_error(error: Exception) -> ErrorResponse:
    """
    Handle error and return user-friendly message
    
    Args:
        error: Exception to handle
        
    Returns:
        ErrorResponse with user-friendly message
    """
    logger.error(f"Error occurred: {error}", exc_info=True)
    
    if isinstance(error, APIError):
        return ErrorResponse(
            message=f"Dataverse API Error: {error.message}",
            error_code=error.error_code,
        )
    
    if isinstance(error, ValidationError):
        return ErrorResponse(
            message=f"Validation error: {str(error)}",
        )
    
    if isinstance(error, NotFoundError):
        return ErrorResponse(
            message=f"Not found: {str(error)}",
        )

    if isinstance(error, TextGenerationError):
        return ErrorResponse(
            message=f"Text generation failed: {str(error)}",
        )
    
    # Generic error message
    return ErrorResponse(
        message="An unknown error occurred. Please try again later.",
    )
