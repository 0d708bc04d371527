"""权限检查工具模块

授权引擎：can(actor, action, target, extra) 先经过统一的管理员放行检查，
再按目标实体类型分派到对应的策略类。策略方法均为无副作用的纯判断，
只做简单的关系查询。
"""
import enum
import logging
from typing import Any, Optional

from sqlalchemy import select, exists
from sqlalchemy.orm import object_session

from models.associations import team_members
from models.enums import UserRole, TeamRole, ProjectRole
from models.user import User
from models.team import Team
from models.project import Project
from models.task import Task
from models.comment import Comment
from models.attachment import Attachment
from models.notification import Notification
from models.targets import resolve_target
from utils.exceptions import PermissionException

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "This action is unauthorized."


class Action(str, enum.Enum):
    """授权动作"""
    VIEW_ANY = "view_any"
    VIEW = "view"
    CREATE = "create"
    CREATE_ON = "create_on"
    UPDATE = "update"
    DELETE = "delete"
    RESTORE = "restore"
    MANAGE_MEMBERS = "manage_members"
    ADD_MEMBER = "add_member"


def admin_bypass(actor: User) -> bool:
    """全局管理员对任何实体的任何动作直接放行"""
    return actor is not None and actor.role == UserRole.ADMIN


def _is_manager_tier(actor: User, project: Optional[Project]) -> bool:
    """全局项目经理、团队所有者、项目内项目经理或项目创建者"""
    if project is None:
        return False
    return (
        actor.has_role(UserRole.PROJECT_MANAGER)
        or actor.owns_team(project.team)
        or actor.has_project_role(project, ProjectRole.PROJECT_MANAGER)
        or actor.id == project.created_by_user_id
    )


class BasePolicy:
    """策略基类：未定义的动作一律拒绝"""

    def view_any(self, actor: User, target=None, extra=None) -> bool:
        return True

    def check(self, action: str, actor: User, target, extra=None) -> bool:
        rule = getattr(self, action, None)
        if rule is None or action == "check":
            return False
        return bool(rule(actor, target, extra))


class TeamPolicy(BasePolicy):

    def view(self, actor, team: Team, extra=None):
        return actor.owns_team(team) or actor.belongs_to_team(team)

    def create(self, actor, target=None, extra=None):
        if actor.has_role(UserRole.PROJECT_MANAGER) or len(actor.owned_teams) > 0:
            return True
        session = object_session(actor)
        return bool(session.execute(
            select(exists().where(
                team_members.c.user_id == actor.id,
                team_members.c.role == TeamRole.TEAM_ADMIN.value
            ))
        ).scalar())

    def update(self, actor, team: Team, extra=None):
        return actor.owns_team(team)

    def delete(self, actor, team: Team, extra=None):
        return actor.owns_team(team)

    def restore(self, actor, team: Team, extra=None):
        return actor.owns_team(team)

    def manage_members(self, actor, team: Team, extra=None):
        return actor.owns_team(team) or actor.has_team_role(team, TeamRole.TEAM_ADMIN)

    def add_member(self, actor, team: Team, extra=None):
        return self.manage_members(actor, team)


class ProjectPolicy(BasePolicy):

    def view(self, actor, project: Project, extra=None):
        return (
            actor.id == project.created_by_user_id
            or actor.owns_team(project.team)
            or actor.belongs_to_team(project.team)
            or actor.belongs_to_project(project)
        )

    def create(self, actor, target=None, team: Optional[Team] = None):
        """extra 为目标团队，团队必须接纳该用户（所有者或成员）"""
        if not (actor.has_role(UserRole.PROJECT_MANAGER) or len(actor.owned_teams) > 0):
            return False
        if team is None:
            return False
        return actor.owns_team(team) or actor.belongs_to_team(team)

    def update(self, actor, project: Project, extra=None):
        return _is_manager_tier(actor, project)

    def delete(self, actor, project: Project, extra=None):
        return _is_manager_tier(actor, project)

    def manage_members(self, actor, project: Project, extra=None):
        return _is_manager_tier(actor, project)

    def add_member(self, actor, project: Project, extra=None):
        return _is_manager_tier(actor, project)

    def restore(self, actor, project: Project, extra=None):
        return actor.owns_team(project.team)


class TaskPolicy(BasePolicy):

    def view(self, actor, task: Task, extra=None):
        project = task.project
        return (
            actor.belongs_to_project(project)
            or actor.owns_team(project.team)
            or actor.id == project.created_by_user_id
            or actor.id == task.assigned_to_user_id
        )

    def create(self, actor, target=None, project: Optional[Project] = None):
        """extra 为目标项目"""
        if project is None:
            return False
        return (
            actor.has_role(UserRole.PROJECT_MANAGER)
            or actor.owns_team(project.team)
            or actor.has_project_role(project, ProjectRole.PROJECT_MANAGER)
            or actor.belongs_to_project(project)
        )

    def update(self, actor, task: Task, extra=None):
        project = task.project
        return (
            actor.has_role(UserRole.PROJECT_MANAGER)
            or actor.owns_team(project.team)
            or actor.has_project_role(project, ProjectRole.PROJECT_MANAGER)
            or actor.belongs_to_project(project)
            or actor.id == task.assigned_to_user_id
        )

    def delete(self, actor, task: Task, extra=None):
        return _is_manager_tier(actor, task.project)

    def restore(self, actor, task: Task, extra=None):
        return actor.owns_team(task.project.team)


class CommentPolicy(BasePolicy):

    @staticmethod
    def _commentable(comment: Comment):
        return resolve_target(object_session(comment), comment.commentable_type, comment.commentable_id)

    @staticmethod
    def _can_see(actor, commentable) -> bool:
        if isinstance(commentable, Project):
            return (
                actor.belongs_to_project(commentable)
                or actor.owns_team(commentable.team)
                or actor.id == commentable.created_by_user_id
            )
        if isinstance(commentable, Task):
            project = commentable.project
            return (
                actor.belongs_to_project(project)
                or actor.owns_team(project.team)
                or actor.id == project.created_by_user_id
                or actor.id == commentable.assigned_to_user_id
            )
        return False

    def view(self, actor, comment: Comment, extra=None):
        return self._can_see(actor, self._commentable(comment))

    def create(self, actor, target=None, extra=None):
        return True

    def create_on(self, actor, target=None, commentable=None):
        """extra 为被评论的项目或任务"""
        if isinstance(commentable, Project):
            project = commentable
        elif isinstance(commentable, Task):
            project = commentable.project
        else:
            return False
        return (
            self._can_see(actor, commentable)
            or actor.has_project_role(project, ProjectRole.PROJECT_MANAGER)
        )

    def _author_or_manager(self, actor, comment: Comment) -> bool:
        if actor.id == comment.user_id:
            return True
        commentable = self._commentable(comment)
        if isinstance(commentable, Project):
            return _is_manager_tier(actor, commentable)
        if isinstance(commentable, Task):
            return _is_manager_tier(actor, commentable.project)
        return False

    def update(self, actor, comment: Comment, extra=None):
        return self._author_or_manager(actor, comment)

    def delete(self, actor, comment: Comment, extra=None):
        return self._author_or_manager(actor, comment)


class AttachmentPolicy(BasePolicy):
    """上传者可查看、修改和删除自己的附件，其余情况委托给挂载对象的 view / update 规则"""

    @staticmethod
    def _attachable(attachment: Attachment):
        return resolve_target(object_session(attachment), attachment.attachable_type, attachment.attachable_id)

    def view(self, actor, attachment: Attachment, extra=None):
        if actor.id == attachment.user_id:
            return True
        attachable = self._attachable(attachment)
        if attachable is None:
            return False
        return can(actor, Action.VIEW, attachable)

    def create(self, actor, target=None, extra=None):
        return True

    def create_on(self, actor, target=None, attachable=None):
        if attachable is None:
            return False
        return can(actor, Action.UPDATE, attachable)

    def update(self, actor, attachment: Attachment, extra=None):
        if actor.id == attachment.user_id:
            return True
        attachable = self._attachable(attachment)
        if attachable is None:
            return False
        return can(actor, Action.UPDATE, attachable)

    def delete(self, actor, attachment: Attachment, extra=None):
        return self.update(actor, attachment)


class NotificationPolicy(BasePolicy):
    """通知只允许接收人本人操作"""

    def view(self, actor, notification: Notification, extra=None):
        return actor.id == notification.user_id

    def create(self, actor, target=None, extra=None):
        return False

    def update(self, actor, notification: Notification, extra=None):
        return actor.id == notification.user_id

    def delete(self, actor, notification: Notification, extra=None):
        return actor.id == notification.user_id


# 实体类型 -> 策略
POLICIES = {
    Team: TeamPolicy(),
    Project: ProjectPolicy(),
    Task: TaskPolicy(),
    Comment: CommentPolicy(),
    Attachment: AttachmentPolicy(),
    Notification: NotificationPolicy(),
}


def policy_for(target) -> Optional[BasePolicy]:
    """按实体实例或实体类查找策略"""
    model = target if isinstance(target, type) else type(target)
    return POLICIES.get(model)


def can(actor: User, action, target: Any, extra: Any = None) -> bool:
    """判断 actor 能否对 target 执行 action

    target 可以是实体实例，也可以是实体类（如 create 这类不针对实例的动作）；
    extra 为次要参数，例如创建项目时的目标团队、创建任务时的目标项目。
    """
    if actor is None:
        return False
    if admin_bypass(actor):
        return True
    policy = policy_for(target)
    if policy is None:
        return False
    action_name = action.value if isinstance(action, Action) else str(action)
    return policy.check(action_name, actor, target, extra)


def authorize(actor: User, action, target: Any, extra: Any = None) -> None:
    """授权失败时抛出 PermissionException"""
    if not can(actor, action, target, extra):
        model = target if isinstance(target, type) else type(target)
        logger.info(
            f"拒绝授权: user={getattr(actor, 'id', None)} action={getattr(action, 'value', action)} "
            f"target={model.__name__}#{getattr(target, 'id', '-')}"
        )
        raise PermissionException(UNAUTHORIZED_MESSAGE)
