from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from models import COMMENTABLE_TYPES
from .base import ORMModel, closed_choice
from .user import UserResponse
from .project import ProjectAttachmentBrief


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    commentable_type: str
    commentable_id: int

    @field_validator('commentable_type')
    @classmethod
    def validate_commentable_type(cls, v):
        return closed_choice(v, COMMENTABLE_TYPES, 'The commentable type must be either "project" or "task".')


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentResponse(ORMModel):
    id: int
    user_id: int
    content: str
    commentable_type: str
    commentable_id: int
    user: Optional[UserResponse] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CommentDetail(CommentResponse):
    attachments: List[ProjectAttachmentBrief] = []
