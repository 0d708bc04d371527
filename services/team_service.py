"""团队服务模块

包含团队、团队成员相关的业务逻辑处理，以及用户团队列表的读穿透缓存
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, insert, update, or_
from sqlalchemy.orm import Session, joinedload, selectinload

from config.settings import settings
from models import Team, User, TeamRole, team_members
from schemas.team import team_snapshot
from services.cache_invalidation import forget_project, forget_team_listings, team_user_ids
from services.project_service import ProjectService
from utils.cache_manager import CacheManager, get_cache, user_teams_key
from utils.exceptions import (
    ResourceNotFoundException, ResourceConflictException, InvariantViolationException
)
from utils.permissions import Action, authorize

logger = logging.getLogger(__name__)

NAME_TAKEN = "The team name has already been taken."
ALREADY_MEMBER = "User is already a member of this team."
NOT_MEMBER = "User is not a member of this team."
OWNER_REMOVAL = "Team owner cannot be removed as a member. Transfer ownership first or delete the team."


class TeamService:
    """团队服务类"""

    def __init__(self, db: Session, cache: Optional[CacheManager] = None, projects: Optional[ProjectService] = None):
        self.db = db
        self.cache = cache or get_cache()
        self.projects = projects or ProjectService(db, cache=self.cache)

    def _query(self):
        return self.db.query(Team).options(
            joinedload(Team.owner),
            selectinload(Team.members),
            selectinload(Team.projects)
        ).order_by(Team.id)

    def list_for(self, user: User) -> List[dict]:
        """管理员获取全部团队；其他用户获取所拥有和所加入的团队（缓存）"""
        authorize(user, Action.VIEW_ANY, Team)
        if user.is_admin():
            return [team_snapshot(team) for team in self._query().all()]

        def _load():
            logger.info(f"从数据库加载用户 {user.id} 的团队列表（未命中缓存）")
            teams = self._query().filter(or_(
                Team.owner_id == user.id,
                Team.members.any(User.id == user.id)
            )).all()
            return [team_snapshot(team) for team in teams]

        return self.cache.remember(user_teams_key(user.id), settings.TEAM_CACHE_TTL, _load)

    def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        query = self.db.query(Team.id).filter(Team.name == name)
        if exclude_id is not None:
            query = query.filter(Team.id != exclude_id)
        if query.first() is not None:
            raise ResourceConflictException(NAME_TAKEN)

    def create(self, name: str, owner: User) -> Team:
        """创建团队，所有者自动成为团队管理员"""
        authorize(owner, Action.CREATE, Team)
        self._ensure_unique_name(name)

        team = Team(name=name, owner_id=owner.id)
        self.db.add(team)
        self.db.flush()
        self.db.execute(insert(team_members).values(
            team_id=team.id, user_id=owner.id, role=TeamRole.TEAM_ADMIN.value
        ))
        self.db.commit()
        self.db.refresh(team)
        logger.info(f"团队 '{team.name}' 已创建，ID: {team.id}，所有者: {owner.id}")

        forget_team_listings(self.cache, [owner.id])
        return team

    def get(self, team: Team, actor: User) -> Team:
        authorize(actor, Action.VIEW, team)
        return team

    def update(self, team: Team, name: str, actor: User) -> Team:
        authorize(actor, Action.UPDATE, team)
        self._ensure_unique_name(name, exclude_id=team.id)
        old_name = team.name
        team.name = name
        self.db.commit()
        self.db.refresh(team)
        logger.info(f"团队 ID {team.id} 名称已更新: '{old_name}' -> '{name}'")

        forget_team_listings(self.cache, team_user_ids(team) | {actor.id})
        # 项目详情内嵌团队名称
        for project in team.projects:
            forget_project(self.cache, project, [actor.id])
        return team

    def delete(self, team: Team, actor: User) -> None:
        authorize(actor, Action.DELETE, team)
        affected = team_user_ids(team) | {actor.id}
        logger.info(f"删除团队 '{team.name}' (ID: {team.id})，操作人: {actor.id}")

        for project in list(team.projects):
            self.projects.invalidate(project, actor.id)
            self.projects.release(project)
        self.db.delete(team)
        self.db.commit()

        forget_team_listings(self.cache, affected)

    def add_member(self, team: Team, user_id: int, role: str, actor: User) -> Team:
        authorize(actor, Action.ADD_MEMBER, team)
        user = self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundException("User not found.")
        if team.role_of(user.id) is not None:
            raise ResourceConflictException(ALREADY_MEMBER)

        self.db.execute(insert(team_members).values(
            team_id=team.id, user_id=user.id, role=TeamRole(role).value
        ))
        self.db.commit()
        logger.info(f"用户 {user.id} 以 {role} 身份加入团队 {team.id}")

        forget_team_listings(self.cache, team_user_ids(team) | {user.id, actor.id})
        return team

    def update_member_role(self, team: Team, member: User, role: str, actor: User) -> Team:
        authorize(actor, Action.MANAGE_MEMBERS, team)
        if team.role_of(member.id) is None:
            raise ResourceNotFoundException(NOT_MEMBER)

        self.db.execute(
            update(team_members)
            .where(team_members.c.team_id == team.id, team_members.c.user_id == member.id)
            .values(role=TeamRole(role).value)
        )
        self.db.commit()
        logger.info(f"团队 {team.id} 成员 {member.id} 角色已更新为 {role}")

        forget_team_listings(self.cache, team_user_ids(team) | {member.id, actor.id})
        return team

    def remove_member(self, team: Team, member: User, actor: User) -> None:
        authorize(actor, Action.ADD_MEMBER, team)
        if team.owner_id == member.id:
            raise InvariantViolationException(OWNER_REMOVAL)
        if team.role_of(member.id) is None:
            raise ResourceNotFoundException(NOT_MEMBER)
        affected = team_user_ids(team) | {actor.id}

        self.db.execute(
            delete(team_members)
            .where(team_members.c.team_id == team.id, team_members.c.user_id == member.id)
        )
        self.db.commit()
        logger.info(f"成员 {member.id} 已从团队 {team.id} 移除")

        forget_team_listings(self.cache, affected)
        for project in team.projects:
            forget_project(self.cache, project, [member.id])
