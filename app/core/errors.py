"""Error taxonomy shared by services and routers.

Every error is an ``HTTPException`` so the global handler in ``app.main``
renders it as ``ErrorResponse``. Policy denials carry one generic message
and never name the rule that rejected the caller.
"""
from fastapi import HTTPException, status


class AuthError(HTTPException):
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PolicyDenied(HTTPException):
    def __init__(self):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail="Not permitted")


class NotFound(HTTPException):
    def __init__(self, what: str = "Resource"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


class Conflict(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ValidationFailed(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=422, detail=detail)
