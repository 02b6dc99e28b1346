"""
SegaSurvey Common Schemas
Shared response models
"""

from typing import Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error response"""
    message: str
    detail: Optional[str] = None
