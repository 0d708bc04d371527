from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from .base import ORMModel
from .user import UserResponse


class AttachmentUpdate(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)


class AttachmentResponse(ORMModel):
    id: int
    user_id: int
    disk: str
    path: str
    file_name: str
    file_size: int
    formatted_size: str
    mime_type: Optional[str] = None
    attachable_type: str
    attachable_id: int
    user: Optional[UserResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
