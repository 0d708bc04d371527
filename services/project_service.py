"""项目服务模块

包含项目、项目成员相关的业务逻辑处理，以及项目详情的读穿透缓存
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, insert, update
from sqlalchemy.orm import Session, joinedload, selectinload

from config.settings import settings
from models import Project, Team, User, ProjectStatus, ProjectRole, project_members
from schemas.project import ProjectCreate, ProjectUpdate, project_detail
from services.attachment_service import AttachmentService
from services.cache_invalidation import forget_project, forget_team_listings, team_user_ids
from services.comment_service import CommentService
from services.events import EventDispatcher, ProjectCompleted
from services.task_service import TaskService, accessible_project_filter
from utils.cache_manager import CacheManager, get_cache, project_detail_key
from utils.exceptions import (
    PermissionException, ResourceNotFoundException, ResourceConflictException,
    InvariantViolationException, ValidationException
)
from utils.permissions import Action, authorize

logger = logging.getLogger(__name__)

ALREADY_MEMBER = "User is already a member of this project."
NOT_MEMBER = "User is not a member of this project."
NOT_TEAM_MEMBER = "User must be a member of the project's team to be added to the project."
SOLE_MANAGER = "Cannot remove the sole project manager. Assign another manager first or delete the project."


class ProjectService:
    """项目服务类"""

    def __init__(self, db: Session, cache: Optional[CacheManager] = None, tasks: Optional[TaskService] = None):
        self.db = db
        self.cache = cache or get_cache()
        self.tasks = tasks or TaskService(db, cache=self.cache)

    @property
    def comments(self) -> CommentService:
        return self.tasks.comments

    @property
    def attachments(self) -> AttachmentService:
        return self.tasks.attachments

    @property
    def dispatcher(self) -> EventDispatcher:
        return self.tasks.dispatcher

    def invalidate(self, project: Project, *extra_user_ids) -> None:
        """失效项目详情缓存，以及嵌入项目的团队列表缓存"""
        forget_project(self.cache, project, extra_user_ids)
        forget_team_listings(self.cache, team_user_ids(project.team) | set(extra_user_ids))

    def list_for(self, user: User, status: Optional[str] = None) -> List[Project]:
        """获取项目列表，status=active 时排除已完成项目"""
        query = self.db.query(Project).options(
            joinedload(Project.team),
            selectinload(Project.members),
            selectinload(Project.tasks),
            selectinload(Project.comments)
        )
        if not user.is_admin():
            query = query.filter(accessible_project_filter(user))
        if status == "active":
            query = query.filter(Project.status != ProjectStatus.COMPLETED)
        return query.order_by(Project.id).all()

    def create(self, project_data: ProjectCreate, creator: User) -> Project:
        """创建项目，创建者自动成为项目经理"""
        team = self.db.get(Team, project_data.team_id)
        if team is None:
            raise PermissionException()
        authorize(creator, Action.CREATE, Project, team)

        project = Project(
            team_id=team.id,
            name=project_data.name,
            description=project_data.description,
            status=ProjectStatus(project_data.status) if project_data.status else ProjectStatus.PENDING,
            due_date=project_data.due_date,
            created_by_user_id=creator.id
        )
        self.db.add(project)
        self.db.flush()
        self.db.execute(insert(project_members).values(
            project_id=project.id, user_id=creator.id, role=ProjectRole.PROJECT_MANAGER.value
        ))
        self.db.commit()
        self.db.refresh(project)
        logger.info(f"项目 '{project.name}' 已创建，ID: {project.id}，创建者: {creator.id}")

        self.invalidate(project, creator.id)
        return project

    def get_detail(self, project: Project, user: User) -> dict:
        """项目详情；非管理员走 (项目, 用户) 维度的读穿透缓存"""
        authorize(user, Action.VIEW, project)
        if user.is_admin():
            return project_detail(project)

        def _load():
            logger.info(f"从数据库加载项目 {project.id} 详情（未命中缓存）")
            return project_detail(project)

        return self.cache.remember(project_detail_key(project.id, user.id), settings.PROJECT_CACHE_TTL, _load)

    def update(self, project: Project, project_data: ProjectUpdate, actor: User) -> Project:
        authorize(actor, Action.UPDATE, project)
        update_data = project_data.model_dump(exclude_unset=True)
        old_status = project.status
        for field, value in update_data.items():
            if field == "status":
                if value is None:
                    continue
                value = ProjectStatus(value)
            elif field == "name" and value is None:
                continue
            setattr(project, field, value)

        self.db.commit()
        self.db.refresh(project)
        logger.info(f"项目 ID {project.id} 已更新: {list(update_data.keys())}")

        if old_status != ProjectStatus.COMPLETED and project.status == ProjectStatus.COMPLETED:
            self.dispatcher.dispatch(ProjectCompleted(project_id=project.id, completer_id=actor.id))

        self.invalidate(project, actor.id)
        return project

    def delete(self, project: Project, actor: User) -> None:
        authorize(actor, Action.DELETE, project)
        self.invalidate(project, actor.id)
        self.release(project)
        self.db.commit()

    def release(self, project: Project) -> None:
        """删除项目及其任务、评论、附件（不提交）"""
        logger.info(f"删除项目 '{project.name}' (ID: {project.id})")
        for task in list(project.tasks):
            self.tasks.release(task)
        self.comments.purge_for(project)
        self.attachments.purge_for(project)
        self.db.delete(project)

    def add_member(self, project: Project, user_id: int, role: str, actor: User) -> Project:
        authorize(actor, Action.ADD_MEMBER, project)
        user = self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundException("User not found.")
        if project.role_of(user.id) is not None:
            raise ResourceConflictException(ALREADY_MEMBER)
        team = project.team
        if not (user.owns_team(team) or user.belongs_to_team(team)):
            raise ValidationException(NOT_TEAM_MEMBER, {"user_id": [NOT_TEAM_MEMBER]})

        self.db.execute(insert(project_members).values(
            project_id=project.id, user_id=user.id, role=ProjectRole(role).value
        ))
        self.db.commit()
        self.db.expire(project, ["members"])
        logger.info(f"用户 {user.id} 以 {role} 身份加入项目 {project.id}")

        self.invalidate(project, user.id, actor.id)
        return project

    def _ensure_member(self, project: Project, member: User) -> str:
        role = project.role_of(member.id)
        if role is None:
            raise ResourceNotFoundException(NOT_MEMBER)
        return role

    def _is_sole_manager(self, project: Project, member: User, current_role: str) -> bool:
        return current_role == ProjectRole.PROJECT_MANAGER.value and project.manager_ids() == [member.id]

    def update_member_role(self, project: Project, member: User, role: str, actor: User) -> Project:
        authorize(actor, Action.MANAGE_MEMBERS, project)
        current_role = self._ensure_member(project, member)
        new_role = ProjectRole(role).value
        if new_role != ProjectRole.PROJECT_MANAGER.value and self._is_sole_manager(project, member, current_role):
            raise InvariantViolationException(SOLE_MANAGER)

        self.db.execute(
            update(project_members)
            .where(project_members.c.project_id == project.id, project_members.c.user_id == member.id)
            .values(role=new_role)
        )
        self.db.commit()
        logger.info(f"项目 {project.id} 成员 {member.id} 角色: {current_role} -> {new_role}")

        self.invalidate(project, member.id, actor.id)
        return project

    def remove_member(self, project: Project, member: User, actor: User) -> None:
        authorize(actor, Action.MANAGE_MEMBERS, project)
        current_role = self._ensure_member(project, member)
        if self._is_sole_manager(project, member, current_role):
            raise InvariantViolationException(SOLE_MANAGER)

        # 先失效，移除后该成员不再出现在成员列表中
        self.invalidate(project, member.id, actor.id)
        self.db.execute(
            delete(project_members)
            .where(project_members.c.project_id == project.id, project_members.c.user_id == member.id)
        )
        self.db.commit()
        self.db.expire(project, ["members"])
        logger.info(f"成员 {member.id} 已从项目 {project.id} 移除")
