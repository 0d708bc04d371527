"""路由依赖模块

按路径参数加载实体，不存在时返回404；授权检查在服务层进行，
因此“不存在”(404) 总是先于“无权限”(403) 判定
"""
from fastapi import Depends, Path
from sqlalchemy.orm import Session

from models.database import get_db
from models import User, Team, Project, Task, Comment, Attachment, Notification
from services.attachment_service import AttachmentService
from services.auth_service import AuthService
from services.comment_service import CommentService
from services.events import EventDispatcher
from services.notification_service import NotificationService
from services.project_service import ProjectService
from services.task_service import TaskService
from services.team_service import TeamService
from utils.cache_manager import CacheManager, get_cache
from utils.exceptions import ResourceNotFoundException
from utils.job_queue import get_job_queue
from utils.security_utils import ContentSanitizer, get_sanitizer
from utils.storage import StorageRegistry, get_storage


def _get_or_404(db: Session, model, entity_id, label: str):
    entity = db.get(model, entity_id)
    if entity is None:
        raise ResourceNotFoundException(f"{label} not found.")
    return entity


def get_team(team_id: int = Path(...), db: Session = Depends(get_db)) -> Team:
    return _get_or_404(db, Team, team_id, "Team")


def get_project(project_id: int = Path(...), db: Session = Depends(get_db)) -> Project:
    return _get_or_404(db, Project, project_id, "Project")


def get_task(task_id: int = Path(...), db: Session = Depends(get_db)) -> Task:
    return _get_or_404(db, Task, task_id, "Task")


def get_comment(comment_id: int = Path(...), db: Session = Depends(get_db)) -> Comment:
    return _get_or_404(db, Comment, comment_id, "Comment")


def get_attachment(attachment_id: int = Path(...), db: Session = Depends(get_db)) -> Attachment:
    return _get_or_404(db, Attachment, attachment_id, "Attachment")


def get_notification(notification_id: str = Path(...), db: Session = Depends(get_db)) -> Notification:
    return _get_or_404(db, Notification, notification_id, "Notification")


def get_member(user_id: int = Path(...), db: Session = Depends(get_db)) -> User:
    return _get_or_404(db, User, user_id, "User")


# 服务装配：缓存、队列、存储、清洗器均通过依赖注入，便于测试替换

def get_task_service(
    db: Session = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    queue=Depends(get_job_queue),
    storage: StorageRegistry = Depends(get_storage),
    sanitizer: ContentSanitizer = Depends(get_sanitizer)
) -> TaskService:
    dispatcher = EventDispatcher(db, queue)
    attachments = AttachmentService(db, storage=storage, cache=cache)
    comments = CommentService(db, cache=cache, dispatcher=dispatcher, sanitizer=sanitizer, attachments=attachments)
    return TaskService(db, cache=cache, dispatcher=dispatcher, comments=comments, attachments=attachments)


def get_comment_service(tasks: TaskService = Depends(get_task_service)) -> CommentService:
    return tasks.comments


def get_attachment_service(tasks: TaskService = Depends(get_task_service)) -> AttachmentService:
    return tasks.attachments


def get_project_service(
    db: Session = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    tasks: TaskService = Depends(get_task_service)
) -> ProjectService:
    return ProjectService(db, cache=cache, tasks=tasks)


def get_team_service(
    db: Session = Depends(get_db),
    cache: CacheManager = Depends(get_cache),
    projects: ProjectService = Depends(get_project_service)
) -> TeamService:
    return TeamService(db, cache=cache, projects=projects)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)
