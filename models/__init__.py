"""
模型模块初始化文件
提供统一的导入接口
"""

# 导入数据库基础配置
from .database import Base, engine, SessionLocal, get_db

# 导入枚举类型
from .enums import (
    UserRole, TeamRole, ProjectRole,
    ProjectStatus, TaskStatus, TaskPriority,
    TargetType, NotificationType,
    COMMENTABLE_TYPES, ATTACHABLE_TYPES, ASSIGNABLE_TASK_STATUSES
)

# 导入关联表
from .associations import team_members, project_members

# 导入模型类
from .user import User, AccessToken
from .team import Team
from .project import Project
from .task import Task
from .comment import Comment
from .attachment import Attachment, format_file_size
from .notification import Notification
from .targets import TARGET_MODELS, resolve_target, target_type_of, project_of

__all__ = [
    # 数据库配置
    'Base', 'engine', 'SessionLocal', 'get_db',

    # 枚举类型
    'UserRole', 'TeamRole', 'ProjectRole',
    'ProjectStatus', 'TaskStatus', 'TaskPriority',
    'TargetType', 'NotificationType',
    'COMMENTABLE_TYPES', 'ATTACHABLE_TYPES', 'ASSIGNABLE_TASK_STATUSES',

    # 关联表
    'team_members', 'project_members',

    # 模型类
    'User', 'AccessToken', 'Team', 'Project', 'Task',
    'Comment', 'Attachment', 'Notification', 'format_file_size',

    # 多态目标
    'TARGET_MODELS', 'resolve_target', 'target_type_of', 'project_of',
]
