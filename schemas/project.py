from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from models import ProjectStatus, ProjectRole, TaskStatus, TaskPriority
from .base import ORMModel, closed_choice, not_in_past
from .user import UserResponse, MemberResponse
from .team import member_list


# 项目相关模式
class ProjectCreate(BaseModel):
    team_id: int
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        return closed_choice(v, ProjectStatus, "The selected status is invalid.")

    @field_validator('due_date')
    @classmethod
    def validate_due_date(cls, v):
        return not_in_past(v, "The due date cannot be in the past.")


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        return closed_choice(v, ProjectStatus, "The selected status is invalid.")

    @field_validator('due_date')
    @classmethod
    def validate_due_date(cls, v):
        return not_in_past(v, "The due date cannot be in the past.")


class ProjectMemberAdd(BaseModel):
    user_id: int
    role: str = ProjectRole.MEMBER.value

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        return closed_choice(v, ProjectRole, "The selected role is invalid.")


class ProjectMemberRoleUpdate(BaseModel):
    role: str

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        return closed_choice(v, ProjectRole, "The selected role is invalid.")


class TeamBrief(ORMModel):
    id: int
    name: str
    owner_id: int


class TeamWithOwner(TeamBrief):
    owner: Optional[UserResponse] = None


class ProjectTaskBrief(ORMModel):
    id: int
    name: str
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime] = None
    assigned_to_user_id: Optional[int] = None
    assignee: Optional[UserResponse] = None


class ProjectCommentBrief(ORMModel):
    id: int
    content: str
    user_id: int
    user: Optional[UserResponse] = None
    created_at: Optional[datetime] = None


class ProjectAttachmentBrief(ORMModel):
    id: int
    file_name: str
    file_size: int
    formatted_size: str
    mime_type: Optional[str] = None
    user_id: int


class ProjectResponse(ORMModel):
    id: int
    team_id: int
    name: str
    description: Optional[str] = None
    status: ProjectStatus
    due_date: Optional[datetime] = None
    created_by_user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectWithMembers(ProjectResponse):
    team: Optional[TeamBrief] = None
    creator: Optional[UserResponse] = None
    members: List[MemberResponse] = []


class ProjectListItem(ProjectWithMembers):
    tasks_count: int = 0
    comments_count: int = 0


class ProjectDetail(ProjectResponse):
    team: Optional[TeamWithOwner] = None
    creator: Optional[UserResponse] = None
    members: List[MemberResponse] = []
    tasks: List[ProjectTaskBrief] = []
    comments: List[ProjectCommentBrief] = []
    attachments: List[ProjectAttachmentBrief] = []
    tasks_count: int = 0
    comments_count: int = 0
    completed_tasks_count: int = 0


def project_with_members(project) -> dict:
    data = ProjectWithMembers.model_validate(project)
    data.members = member_list(project.members, project.member_roles())
    return data.model_dump(mode="json")


def project_list_item(project) -> dict:
    data = ProjectListItem.model_validate(project)
    data.members = member_list(project.members, project.member_roles())
    data.tasks_count = len(project.tasks)
    data.comments_count = len(project.comments)
    return data.model_dump(mode="json")


def project_detail(project) -> dict:
    """项目详情快照，缓存中保存的就是它"""
    data = ProjectDetail.model_validate(project)
    data.members = member_list(project.members, project.member_roles())
    data.tasks_count = len(project.tasks)
    data.comments_count = len(project.comments)
    data.completed_tasks_count = sum(1 for task in project.tasks if task.status == TaskStatus.COMPLETED)
    return data.model_dump(mode="json")
