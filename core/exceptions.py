"""
Scheduling errors.

Each one is an HTTPException so services raise them directly and FastAPI
renders them; callers that need to tell a conflict apart from other
failures catch the subclass.
"""
from fastapi import HTTPException, status


class InvalidRequest(HTTPException):
    def __init__(self, detail: str = "invalid request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = "not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail: str = "not authorized"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class BookingConflict(HTTPException):
    """Another scheduled session of the tutor already occupies the range."""

    def __init__(self, detail: str = "session conflicts with an existing booking"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
