"""
Error taxonomy for the service.

Every error is an ``HTTPException`` so FastAPI renders it as ``{"detail": ...}``
with the right status code, exactly like the routers' own ``HTTPException``s.
Services raise these directly; the unit-of-work rolls back on any of them.
"""

from __future__ import annotations

from fastapi import HTTPException


class ValidationError(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=400, detail=detail)


class ForbiddenError(HTTPException):
    def __init__(self, detail: str = "insufficient permissions") -> None:
        super().__init__(status_code=403, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, resource: str = "resource") -> None:
        super().__init__(status_code=404, detail=f"{resource} not found")


class ConflictError(HTTPException):
    def __init__(self, detail: str) -> None:
        super().__init__(status_code=409, detail=detail)


class StorageBusyError(HTTPException):
    """Storage contention outlasted the retry budget; the caller may retry."""

    def __init__(self, detail: str = "storage busy, retry the request") -> None:
        super().__init__(status_code=503, detail=detail, headers={"Retry-After": "1"})
