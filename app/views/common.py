"""Response bodies shared by several routers."""

from typing import Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Shape of every `HTTPException` body, documented on routes that raise them."""

    detail: str


class SuccessResponse(BaseModel):
    message: str
    data: Optional[dict] = None
