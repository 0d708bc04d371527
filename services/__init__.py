"""服务层模块初始化文件

提供服务层的统一导入接口
"""

from .auth_service import AuthService
from .team_service import TeamService
from .project_service import ProjectService
from .task_service import TaskService
from .comment_service import CommentService
from .attachment_service import AttachmentService
from .notification_service import NotificationService
from .events import EventDispatcher, TaskCompleted, TaskAssigned, CommentCreated

__all__ = [
    "AuthService",
    "TeamService",
    "ProjectService",
    "TaskService",
    "CommentService",
    "AttachmentService",
    "NotificationService",
    "EventDispatcher",
    "TaskCompleted",
    "TaskAssigned",
    "CommentCreated",
]
