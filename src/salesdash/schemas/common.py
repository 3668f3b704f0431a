from typing import Optional

from pydantic import BaseModel


class ActionResponse(BaseModel):
    """Generic response for mutations without a payload."""

    success: bool = True
    message: Optional[str] = None
