"""Pydantic models for API responses."""

from typing import Any

from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Envelope returned by every /k8s-images action.

    Successful calls carry `data`; failed calls carry `error` instead.
    """

    success: bool
    message: str
    data: Any = None
    error: str | None = None
