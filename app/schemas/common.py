"""
Shared schema primitives used across the API.
"""
from typing import Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope returned for all 4xx/5xx responses."""
    code: str
    message: str
    details: Optional[dict[str, Any]] = None


def error_responses(**descriptions: str) -> dict[int | str, dict[str, Any]]:
    """OpenAPI `responses=` entries keyed by status, e.g. error_responses(r404="...")."""
    return {
        int(key.lstrip("r")): {"model": ErrorResponse, "description": text}
        for key, text in descriptions.items()
    }
