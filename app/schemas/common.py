# app/schemas/common.py
from pydantic import BaseModel
from typing import Any, Optional


class ApiResponse(BaseModel):
    """Envelope for every API response. Failures carry only success + message."""
    success: bool
    message: str
    data: Optional[Any] = None
