"""
Component error codes -> HTTP responses.
"""

from collections.abc import Sequence
from typing import NoReturn, Protocol

from fastapi import HTTPException

ERROR_STATUS: dict[str, int] = {
    "auth_required": 401,
    "forbidden": 403,
    "not_found": 404,
    "validation": 400,
    "slug_exists": 400,
    "rate_limited": 429,
    "delete_failed": 500,
    "generation_failed": 500,
}


class ComponentError(Protocol):
    code: str
    message: str


def raise_for_errors(errors: Sequence[ComponentError]) -> NoReturn:
    """Raise the HTTPException for the first component error."""
    if not errors:
        raise HTTPException(status_code=500, detail="Internal server error")
    err = errors[0]
    raise HTTPException(status_code=ERROR_STATUS.get(err.code, 400), detail=err.message)
