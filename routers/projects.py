from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from models import User, Project
from schemas.project import (
    ProjectCreate, ProjectUpdate, ProjectMemberAdd, ProjectMemberRoleUpdate,
    project_with_members, project_list_item
)
from services.project_service import ProjectService
from utils.auth import get_current_user
from utils.dependencies import get_project, get_member, get_project_service

router = APIRouter()


@router.get("")
async def list_projects(
    status: Optional[str] = Query(None, description="项目状态筛选，active 表示未完成"),
    current_user: User = Depends(get_current_user),
    project_service: ProjectService = Depends(get_project_service)
):
    """获取项目列表"""
    projects = project_service.list_for(current_user, status)
    return {"projects": [project_list_item(project) for project in projects]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_project(
    project_data: ProjectCreate,
    current_user: User = Depends(get_current_user),
    project_service: ProjectService = Depends(get_project_service)
):
    """创建项目"""
    project = project_service.create(project_data, current_user)
    return {"message": "Project created successfully", "project": project_with_members(project)}


@router.get("/{project_id}")
async def get_project_detail(
    current_user: User = Depends(get_current_user),
    project: Project = Depends(get_project),
    project_service: ProjectService = Depends(get_project_service)
):
    """获取项目详情"""
    return {"project": project_service.get_detail(project, current_user)}


@router.put("/{project_id}")
async def update_project(
    project_data: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    project: Project = Depends(get_project),
    project_service: ProjectService = Depends(get_project_service)
):
    """更新项目（部分更新）"""
    project = project_service.update(project, project_data, current_user)
    return {"message": "Project updated successfully", "project": project_with_members(project)}


@router.delete("/{project_id}")
async def delete_project(
    current_user: User = Depends(get_current_user),
    project: Project = Depends(get_project),
    project_service: ProjectService = Depends(get_project_service)
):
    """删除项目及其任务、评论和附件"""
    project_service.delete(project, current_user)
    return {"message": "Project deleted successfully"}


@router.post("/{project_id}/members")
async def add_project_member(
    member_data: ProjectMemberAdd,
    current_user: User = Depends(get_current_user),
    project: Project = Depends(get_project),
    project_service: ProjectService = Depends(get_project_service)
):
    """添加项目成员"""
    project = project_service.add_member(project, member_data.user_id, member_data.role, current_user)
    return {"message": "Member added to project successfully", "project": project_with_members(project)}


@router.put("/{project_id}/members/{user_id}")
async def update_project_member_role(
    role_data: ProjectMemberRoleUpdate,
    current_user: User = Depends(get_current_user),
    project: Project = Depends(get_project),
    member: User = Depends(get_member),
    project_service: ProjectService = Depends(get_project_service)
):
    """更新项目成员角色"""
    project = project_service.update_member_role(project, member, role_data.role, current_user)
    return {"message": "Member role updated successfully", "project": project_with_members(project)}


@router.delete("/{project_id}/members/{user_id}")
async def remove_project_member(
    current_user: User = Depends(get_current_user),
    project: Project = Depends(get_project),
    member: User = Depends(get_member),
    project_service: ProjectService = Depends(get_project_service)
):
    """移除项目成员"""
    project_service.remove_member(project, member, current_user)
    return {"message": "Member removed from project successfully"}
