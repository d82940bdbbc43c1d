"""
Custom exception classes
"""
from fastapi import HTTPException


class CaseNotFoundError(HTTPException):
    """Raised when case doesn't exist"""
    def __init__(self, case_id=None):
        super().__init__(
            status_code=404,
            detail="Case not found"
        )
        self.case_id = case_id


class ParticipantNotFoundError(HTTPException):
    """Raised when participant doesn't exist or belongs to another case"""
    def __init__(self, participant_id=None):
        super().__init__(
            status_code=404,
            detail="Participant not found"
        )
        self.participant_id = participant_id


class InteractionNotFoundError(HTTPException):
    """Raised when interaction doesn't exist"""
    def __init__(self, interaction_id=None):
        super().__init__(
            status_code=404,
            detail="Interaction not found"
        )
        self.interaction_id = interaction_id


class TaskNotFoundError(HTTPException):
    """Raised when task doesn't exist"""
    def __init__(self, task_id=None):
        super().__init__(
            status_code=404,
            detail="Task not found"
        )
        self.task_id = task_id


class ReportNotFoundError(HTTPException):
    """Raised when report doesn't exist"""
    def __init__(self, report_id=None):
        super().__init__(
            status_code=404,
            detail="Report not found"
        )
        self.report_id = report_id


class BadRequestError(HTTPException):
    """Raised for request-level problems pydantic can't catch"""
    def __init__(self, message: str):
        super().__init__(
            status_code=400,
            detail=message
        )


class AIServiceError(HTTPException):
    """Raised when AI service fails"""
    def __init__(self, reason: str = "Failed to process AI request"):
        super().__init__(
            status_code=500,
            detail=reason
        )
