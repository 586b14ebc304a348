"""
Error taxonomy for the order desk.

Every error is an HTTPException so FastAPI answers it with the right status
code wherever it is raised (endpoint, dependency or service).
"""
from typing import Optional
from fastapi import HTTPException, status


class DeskError(HTTPException):
    """Base class: subclasses only pick a status code and a default detail"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal Server Error"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class Unauthorized(DeskError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class Forbidden(DeskError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You don't have permission to perform this operation"


class NotFound(DeskError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Conflict(DeskError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class InvalidTransition(DeskError):
    """Status change not allowed from the order's current status"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Invalid status transition"


class ValidationError(DeskError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class InternalError(DeskError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal Server Error"
