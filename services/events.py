"""领域事件模块

业务服务在变更落库后构造事件，EventDispatcher 按当前数据库状态计算收件人和负载，
每个收件人生成一条 DeliveryJob 放入任务队列。服务的职责到入队为止。
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from models import User, Project, Task, Comment, TargetType, NotificationType
from models.targets import resolve_target, project_of, target_name
from utils.job_queue import DeliveryJob

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"


@dataclass
class TaskCompleted:
    task_id: int
    completer_id: Optional[int] = None


@dataclass
class ProjectCompleted:
    project_id: int
    completer_id: Optional[int] = None


@dataclass
class TaskAssigned:
    task_id: int
    assignee_id: int
    assigner_id: Optional[int] = None


@dataclass
class CommentCreated:
    comment_id: int


def _unique(ids: Iterable[Optional[int]], exclude: Iterable[Optional[int]] = ()) -> List[int]:
    """去重并保持顺序，剔除空值和排除项"""
    excluded = {user_id for user_id in exclude if user_id is not None}
    result = []
    for user_id in ids:
        if user_id is None or user_id in excluded or user_id in result:
            continue
        result.append(user_id)
    return result


def _format_date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "N/A"


def _enum_value(value) -> str:
    return getattr(value, "value", value) or "N/A"


def task_assigned_mail(task: Task, assignee: User) -> str:
    """任务分配邮件正文"""
    project_name = task.project.name if task.project else "N/A"
    return (
        f"Hello {assignee.name},\n\n"
        f"A new task has been assigned to you: {task.name} in project {project_name}.\n\n"
        f"Description: {task.description or 'N/A'}\n"
        f"Due Date: {_format_date(task.due_date)}\n"
        f"Priority: {_enum_value(task.priority)}\n\n"
        f"Thanks"
    )


def new_comment_mail(commenter_name: str, commentable_label: str, commentable_name: str, content: str) -> str:
    """新评论邮件正文"""
    return (
        f"# New Comment from {commenter_name}\n\n"
        f"A new comment has been added by {commenter_name} on your {commentable_label}: {commentable_name}\n\n"
        f"{content}\n\n"
        f"Thanks"
    )


class EventDispatcher:
    """事件分发器：计算收件人并投递到队列"""

    def __init__(self, db: Session, queue):
        self.db = db
        self.queue = queue

    def dispatch(self, event) -> List[DeliveryJob]:
        if isinstance(event, TaskCompleted):
            jobs = self._task_completed(event)
        elif isinstance(event, ProjectCompleted):
            jobs = self._project_completed(event)
        elif isinstance(event, TaskAssigned):
            jobs = self._task_assigned(event)
        elif isinstance(event, CommentCreated):
            jobs = self._comment_created(event)
        else:
            raise TypeError(f"Unsupported event: {type(event).__name__}")

        for job in jobs:
            self.queue.enqueue(job)
        logger.info(f"事件 {type(event).__name__} 已入队 {len(jobs)} 个投递任务")
        return jobs

    def _user(self, user_id) -> Optional[User]:
        return self.db.get(User, user_id) if user_id is not None else None

    def _task_completed(self, event: TaskCompleted) -> List[DeliveryJob]:
        task = self.db.get(Task, event.task_id)
        if task is None:
            logger.warning(f"任务完成事件的任务不存在: {event.task_id}")
            return []
        project = task.project
        team = project.team

        recipient_ids = _unique(
            [project.created_by_user_id, *project.manager_ids(), team.owner_id if team else None],
            exclude=[event.completer_id, task.assigned_to_user_id]
        )

        completer = self._user(event.completer_id)
        if completer is not None:
            completed_by = completer.name
        elif task.assignee is not None:
            completed_by = task.assignee.name
        else:
            completed_by = UNKNOWN_USER

        payload = {
            "task_id": task.id,
            "task_name": task.name,
            "project_id": project.id,
            "project_name": project.name,
            "completed_by": completed_by,
            "message": f"Task '{task.name}' has been completed by {completed_by}.",
        }
        return [
            DeliveryJob(recipient_id=user_id, notification_type=NotificationType.TASK_COMPLETED.value, payload=payload)
            for user_id in recipient_ids
        ]

    def _project_completed(self, event: ProjectCompleted) -> List[DeliveryJob]:
        project = self.db.get(Project, event.project_id)
        if project is None:
            logger.warning(f"项目完成事件的项目不存在: {event.project_id}")
            return []
        team = project.team

        recipient_ids = _unique(
            [project.created_by_user_id, *project.manager_ids(), team.owner_id if team else None],
            exclude=[event.completer_id]
        )

        completer = self._user(event.completer_id)
        completed_by = completer.name if completer else UNKNOWN_USER
        payload = {
            "project_id": project.id,
            "project_name": project.name,
            "team_id": project.team_id,
            "completed_by": completed_by,
            "message": f"Project '{project.name}' has been completed by {completed_by}.",
        }
        return [
            DeliveryJob(recipient_id=user_id, notification_type=NotificationType.PROJECT_COMPLETED.value, payload=payload)
            for user_id in recipient_ids
        ]

    def _task_assigned(self, event: TaskAssigned) -> List[DeliveryJob]:
        task = self.db.get(Task, event.task_id)
        assignee = self._user(event.assignee_id)
        if task is None or assignee is None:
            logger.warning(f"任务分配事件无法解析: task={event.task_id} assignee={event.assignee_id}")
            return []

        assigner = self._user(event.assigner_id)
        assigned_by = assigner.name if assigner else UNKNOWN_USER
        payload = {
            "task_id": task.id,
            "task_name": task.name,
            "project_id": task.project_id,
            "project_name": task.project.name,
            "assigned_by": assigned_by,
            "message": f"You have been assigned to task '{task.name}' by {assigned_by}.",
        }
        return [DeliveryJob(
            recipient_id=assignee.id,
            notification_type=NotificationType.TASK_ASSIGNED.value,
            payload=payload,
            mail_subject=f"New Task Assigned: {task.name}",
            mail_body=task_assigned_mail(task, assignee),
        )]

    def _comment_created(self, event: CommentCreated) -> List[DeliveryJob]:
        comment = self.db.get(Comment, event.comment_id)
        if comment is None:
            logger.warning(f"评论事件的评论不存在: {event.comment_id}")
            return []
        commentable = resolve_target(self.db, comment.commentable_type, comment.commentable_id)
        if commentable is None:
            logger.warning(f"评论 {comment.id} 的挂载对象不存在")
            return []

        project = project_of(commentable)
        candidates = [project.created_by_user_id]
        if isinstance(commentable, Task):
            candidates.append(commentable.assigned_to_user_id)
        candidates.extend(project.member_roles().keys())
        recipient_ids = _unique(candidates, exclude=[comment.user_id])

        commenter_name = comment.user.name if comment.user else UNKNOWN_USER
        label = "task" if comment.commentable_type == TargetType.TASK.value else "project"
        name = target_name(commentable)
        payload = {
            "comment_id": comment.id,
            "commenter_id": comment.user_id,
            "commenter_name": commenter_name,
            "commentable_type": comment.commentable_type,
            "commentable_id": comment.commentable_id,
            "commentable_name": name,
            "message": f"New comment from {commenter_name} on {label}: {name}",
        }
        subject = f"New Comment on {label.capitalize()}: {name}"
        body = new_comment_mail(commenter_name, label, name, comment.content)
        return [
            DeliveryJob(
                recipient_id=user_id,
                notification_type=NotificationType.NEW_COMMENT.value,
                payload=payload,
                mail_subject=subject,
                mail_body=body,
            )
            for user_id in recipient_ids
        ]
