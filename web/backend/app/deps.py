"""Request-scoped access to the running moderation service."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from contentguard.errors import ContentGuardError, NotFoundError, StorageError, ValidationError
from contentguard.service import ModerationService


def get_service(request: Request) -> ModerationService:
    return request.app.state.service


def http_error(exc: ContentGuardError) -> HTTPException:
    """Map a domain error to the HTTP status the API reports for it."""
    if isinstance(exc, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, StorageError):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HTTPException(status_code=code, detail=str(exc))
