from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from models import TeamRole, ProjectStatus
from .base import ORMModel, closed_choice
from .user import UserResponse, MemberResponse


# 团队相关模式
class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class TeamUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class TeamMemberAdd(BaseModel):
    user_id: int
    role: str = TeamRole.MEMBER.value

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        return closed_choice(v, TeamRole, "The selected role is invalid.")


class TeamMemberRoleUpdate(BaseModel):
    role: str

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        return closed_choice(v, TeamRole, "The selected role is invalid.")


class TeamProjectBrief(ORMModel):
    id: int
    name: str
    status: ProjectStatus
    due_date: Optional[datetime] = None
    created_by_user_id: int


class TeamResponse(ORMModel):
    id: int
    name: str
    owner_id: int
    owner: Optional[UserResponse] = None
    members: List[MemberResponse] = []
    projects: List[TeamProjectBrief] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def member_list(users, roles: dict) -> List[MemberResponse]:
    """成员列表，附带关联表中的角色"""
    result = []
    for user in users:
        member = MemberResponse.model_validate(user)
        member.member_role = roles.get(user.id)
        result.append(member)
    return result


def team_snapshot(team) -> dict:
    """团队（含所有者、成员、项目）的JSON快照"""
    response = TeamResponse(
        id=team.id,
        name=team.name,
        owner_id=team.owner_id,
        owner=UserResponse.model_validate(team.owner) if team.owner else None,
        members=member_list(team.members, team.member_roles()),
        projects=[TeamProjectBrief.model_validate(project) for project in team.projects],
        created_at=team.created_at,
        updated_at=team.updated_at,
    )
    return response.model_dump(mode="json")
