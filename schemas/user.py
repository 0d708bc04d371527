from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from models import UserRole
from .base import ORMModel, closed_choice


# 用户返回体定义
class UserResponse(ORMModel):
    id: int
    name: str
    email: str
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# 成员返回体：带团队/项目内角色
class MemberResponse(UserResponse):
    member_role: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserCreate(BaseModel):
    """管理员创建用户"""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Optional[str] = UserRole.MEMBER.value

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        return closed_choice(v, UserRole, "The selected role is invalid.") or UserRole.MEMBER.value
