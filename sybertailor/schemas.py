"""Response models shared across domains"""

from typing import Optional

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    message: str
    errors: Optional[dict[str, str]] = None
