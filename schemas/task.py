from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from models import TaskStatus, TaskPriority, ASSIGNABLE_TASK_STATUSES
from .base import ORMModel, closed_choice, not_in_past
from .user import UserResponse
from .project import TeamBrief, ProjectCommentBrief, ProjectAttachmentBrief


def _validate_status(v):
    return closed_choice(v, ASSIGNABLE_TASK_STATUSES, "The selected status is invalid.")


def _validate_priority(v):
    return closed_choice(v, TaskPriority, "The selected priority is invalid.")


# 任务创建模式
class TaskCreate(BaseModel):
    project_id: int
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    assigned_to_user_id: Optional[int] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        return _validate_status(v)

    @field_validator('priority')
    @classmethod
    def validate_priority(cls, v):
        return _validate_priority(v)

    @field_validator('due_date')
    @classmethod
    def validate_due_date(cls, v):
        return not_in_past(v)


# 任务更新模式（部分更新，只处理请求中出现的字段）
class TaskUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)  # 任务名称
    description: Optional[str] = None  # 任务描述
    assigned_to_user_id: Optional[int] = None  # 负责人ID，显式传 null 表示取消分配
    status: Optional[str] = None  # 任务状态
    priority: Optional[str] = None  # 任务优先级
    due_date: Optional[datetime] = None  # 截止日期

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        return _validate_status(v)

    @field_validator('priority')
    @classmethod
    def validate_priority(cls, v):
        return _validate_priority(v)

    @field_validator('due_date')
    @classmethod
    def validate_due_date(cls, v):
        return not_in_past(v)


class TaskProjectBrief(ORMModel):
    id: int
    name: str
    team_id: int
    created_by_user_id: int
    team: Optional[TeamBrief] = None


class TaskResponse(ORMModel):
    id: int
    project_id: int
    assigned_to_user_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskListItem(TaskResponse):
    project: Optional[TaskProjectBrief] = None
    assignee: Optional[UserResponse] = None
    comments_count: int = 0


class TaskDetail(TaskResponse):
    project: Optional[TaskProjectBrief] = None
    assignee: Optional[UserResponse] = None
    comments: List[ProjectCommentBrief] = []
    attachments: List[ProjectAttachmentBrief] = []


def task_list_item(task) -> dict:
    data = TaskListItem.model_validate(task)
    data.comments_count = len(task.comments)
    return data.model_dump(mode="json")
