from fastapi import APIRouter, Depends, status

from models import User, Team
from schemas.team import TeamCreate, TeamUpdate, TeamMemberAdd, TeamMemberRoleUpdate, team_snapshot
from services.team_service import TeamService
from utils.auth import get_current_user
from utils.dependencies import get_team, get_member, get_team_service

router = APIRouter()


@router.get("")
async def list_teams(
    current_user: User = Depends(get_current_user),
    team_service: TeamService = Depends(get_team_service)
):
    """获取团队列表"""
    return {"teams": team_service.list_for(current_user)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_team(
    team_data: TeamCreate,
    current_user: User = Depends(get_current_user),
    team_service: TeamService = Depends(get_team_service)
):
    """创建团队"""
    team = team_service.create(team_data.name, current_user)
    return {"message": "Team created successfully", "team": team_snapshot(team)}


@router.get("/{team_id}")
async def get_team_detail(
    current_user: User = Depends(get_current_user),
    team: Team = Depends(get_team),
    team_service: TeamService = Depends(get_team_service)
):
    """获取团队详情"""
    return {"team": team_snapshot(team_service.get(team, current_user))}


@router.put("/{team_id}")
async def update_team(
    team_data: TeamUpdate,
    current_user: User = Depends(get_current_user),
    team: Team = Depends(get_team),
    team_service: TeamService = Depends(get_team_service)
):
    """更新团队"""
    team = team_service.update(team, team_data.name, current_user)
    return {"message": "Team updated successfully", "team": team_snapshot(team)}


@router.delete("/{team_id}")
async def delete_team(
    current_user: User = Depends(get_current_user),
    team: Team = Depends(get_team),
    team_service: TeamService = Depends(get_team_service)
):
    """删除团队及其项目"""
    team_service.delete(team, current_user)
    return {"message": "Team deleted successfully"}


@router.post("/{team_id}/members")
async def add_team_member(
    member_data: TeamMemberAdd,
    current_user: User = Depends(get_current_user),
    team: Team = Depends(get_team),
    team_service: TeamService = Depends(get_team_service)
):
    """添加团队成员"""
    team = team_service.add_member(team, member_data.user_id, member_data.role, current_user)
    return {"message": "Member added to team successfully", "team": team_snapshot(team)}


@router.put("/{team_id}/members/{user_id}")
async def update_team_member_role(
    role_data: TeamMemberRoleUpdate,
    current_user: User = Depends(get_current_user),
    team: Team = Depends(get_team),
    member: User = Depends(get_member),
    team_service: TeamService = Depends(get_team_service)
):
    """更新团队成员角色"""
    team = team_service.update_member_role(team, member, role_data.role, current_user)
    return {"message": "Member role updated successfully", "team": team_snapshot(team)}


@router.delete("/{team_id}/members/{user_id}")
async def remove_team_member(
    current_user: User = Depends(get_current_user),
    team: Team = Depends(get_team),
    member: User = Depends(get_member),
    team_service: TeamService = Depends(get_team_service)
):
    """移除团队成员"""
    team_service.remove_member(team, member, current_user)
    return {"message": "Member removed from team successfully"}
