"""任务服务模块

包含任务相关的业务逻辑处理
"""
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from models import Task, User, Project, Team, TaskStatus, TaskPriority
from schemas.task import TaskCreate, TaskUpdate
from services.attachment_service import AttachmentService
from services.cache_invalidation import forget_project
from services.comment_service import CommentService
from services.events import EventDispatcher, TaskAssigned, TaskCompleted
from utils.cache_manager import CacheManager, get_cache
from utils.exceptions import PermissionException, ValidationException
from utils.job_queue import get_job_queue
from utils.permissions import Action, authorize

logger = logging.getLogger(__name__)

ASSIGNEE_NOT_MEMBER = "Assigned user must be a member of the project."
NEW_ASSIGNEE_NOT_MEMBER = "New assigned user must be a member of the project."


def accessible_project_filter(user: User):
    """用户可访问的项目：项目成员、创建者、团队所有者、团队成员"""
    return or_(
        Project.members.any(User.id == user.id),
        Project.created_by_user_id == user.id,
        Project.team.has(Team.owner_id == user.id),
        Project.team.has(Team.members.any(User.id == user.id))
    )


class TaskService:
    """任务服务类"""

    def __init__(self, db: Session, cache: Optional[CacheManager] = None,
                 dispatcher: Optional[EventDispatcher] = None,
                 comments: Optional[CommentService] = None,
                 attachments: Optional[AttachmentService] = None):
        self.db = db
        self.cache = cache or get_cache()
        self.dispatcher = dispatcher or EventDispatcher(db, get_job_queue())
        self.attachments = attachments or AttachmentService(db, cache=self.cache)
        self.comments = comments or CommentService(
            db, cache=self.cache, dispatcher=self.dispatcher, attachments=self.attachments
        )

    def list_for(self, user: User, status: Optional[str] = None) -> List[Task]:
        """获取任务列表，status=overdue 时只返回逾期任务"""
        query = self.db.query(Task).options(
            joinedload(Task.project),
            joinedload(Task.assignee),
            selectinload(Task.comments)
        )
        if not user.is_admin():
            accessible_ids = self.db.query(Project.id).filter(accessible_project_filter(user))
            query = query.filter(Task.project_id.in_(accessible_ids.scalar_subquery()))
        if status == TaskStatus.OVERDUE.value:
            query = query.filter(Task.overdue_filter())
        return query.order_by(Task.id).all()

    def _is_project_member(self, project: Project, user_id: int) -> bool:
        return self.db.get(User, user_id) is not None and project.role_of(user_id) is not None

    def create(self, task_data: TaskCreate, actor: User) -> Task:
        """创建新任务"""
        project = self.db.get(Project, task_data.project_id)
        if project is None:
            raise PermissionException()
        authorize(actor, Action.CREATE, Task, project)

        assignee_id = task_data.assigned_to_user_id
        if assignee_id is not None and not self._is_project_member(project, assignee_id):
            raise ValidationException(ASSIGNEE_NOT_MEMBER, {"assigned_to_user_id": [ASSIGNEE_NOT_MEMBER]})

        task = Task(
            project_id=project.id,
            name=task_data.name,
            description=task_data.description,
            assigned_to_user_id=assignee_id,
            status=TaskStatus(task_data.status) if task_data.status else TaskStatus.OPEN,
            priority=TaskPriority(task_data.priority) if task_data.priority else TaskPriority.MEDIUM,
            due_date=task_data.due_date
        )
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        logger.info(f"新任务 '{task.name}' 已创建，ID: {task.id}")

        if task.assigned_to_user_id is not None:
            self.dispatcher.dispatch(TaskAssigned(
                task_id=task.id, assignee_id=task.assigned_to_user_id, assigner_id=actor.id
            ))
        forget_project(self.cache, project, [actor.id])
        return task

    def get(self, task: Task, actor: User) -> Task:
        authorize(actor, Action.VIEW, task)
        return task

    def update(self, task: Task, task_data: TaskUpdate, actor: User) -> Task:
        """部分更新任务，只处理请求中出现的字段"""
        authorize(actor, Action.UPDATE, task)
        update_data = task_data.model_dump(exclude_unset=True)

        old_status = task.status
        old_assignee_id = task.assigned_to_user_id

        if "assigned_to_user_id" in update_data:
            new_assignee_id = update_data["assigned_to_user_id"]
            if new_assignee_id is not None and new_assignee_id != old_assignee_id \
                    and not self._is_project_member(task.project, new_assignee_id):
                raise ValidationException(NEW_ASSIGNEE_NOT_MEMBER, {"assigned_to_user_id": [NEW_ASSIGNEE_NOT_MEMBER]})

        for field, value in update_data.items():
            if field == "status" and value is not None:
                value = TaskStatus(value)
            elif field == "priority" and value is not None:
                value = TaskPriority(value)
            elif field in ("name", "status", "priority") and value is None:
                continue
            setattr(task, field, value)

        self.db.commit()
        self.db.refresh(task)
        logger.info(f"任务 ID {task.id} 已更新，状态: {old_status.value} -> {task.status.value}")

        if old_status != TaskStatus.COMPLETED and task.status == TaskStatus.COMPLETED:
            self.dispatcher.dispatch(TaskCompleted(task_id=task.id, completer_id=actor.id))
        if task.assigned_to_user_id is not None and task.assigned_to_user_id != old_assignee_id:
            self.dispatcher.dispatch(TaskAssigned(
                task_id=task.id, assignee_id=task.assigned_to_user_id, assigner_id=actor.id
            ))

        forget_project(self.cache, task.project, [actor.id])
        return task

    def delete(self, task: Task, actor: User) -> None:
        authorize(actor, Action.DELETE, task)
        project = task.project
        self.release(task)
        self.db.commit()
        forget_project(self.cache, project, [actor.id])

    def release(self, task: Task) -> None:
        """删除任务及其评论、附件（不提交）"""
        self.comments.purge_for(task)
        self.attachments.purge_for(task)
        self.db.delete(task)
        logger.info(f"任务已删除: '{task.name}' (ID: {task.id})")
