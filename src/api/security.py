import uuid
from typing import Optional

from fastapi import Request

from src.database.store import Identity

class ApiError(Exception):
    """Rendered as ``{"error": message}`` (plus ``details`` when given)."""

    def __init__(self, status_code: int, message: str, details=None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

def parse_uuid(value) -> Optional[uuid.UUID]:
    """Return value as a UUID, or None if it is not one."""
    if not isinstance(value, str):
        return None
    try:
        return uuid.UUID(value)
    except ValueError:
        return None

def require_api_key(request: Request):
    expected = request.app.state.api_key
    provided = request.headers.get("x-api-key")
    if not provided or not expected or provided != expected:
        raise ApiError(401, "Unauthorized: invalid or missing x-api-key")

def extract_identity(request: Request) -> Identity:
    # Each header is optional on its own; anything that is not a UUID is ignored
    return Identity(
        org_id=parse_uuid(request.headers.get("x-org-id")),
        user_id=parse_uuid(request.headers.get("x-user-id")),
    )
