"""
枚举定义模块
包含系统中所有的枚举类型定义
"""
import enum


class UserRole(str, enum.Enum):
    """用户全局角色枚举"""
    ADMIN = "admin"                      # 系统管理员，拥有全部权限
    PROJECT_MANAGER = "project_manager"  # 项目经理
    MEMBER = "member"                    # 普通成员


class TeamRole(str, enum.Enum):
    """团队成员角色枚举"""
    TEAM_ADMIN = "team_admin"  # 团队管理员
    MEMBER = "member"          # 普通成员


class ProjectRole(str, enum.Enum):
    """项目成员角色枚举"""
    PROJECT_MANAGER = "project_manager"  # 项目经理
    MEMBER = "member"                    # 普通成员


class ProjectStatus(str, enum.Enum):
    """项目状态枚举"""
    PENDING = "pending"            # 待开始
    IN_PROGRESS = "in_progress"    # 进行中
    COMPLETED = "completed"        # 已完成


class TaskStatus(str, enum.Enum):
    """任务状态枚举"""
    OPEN = "open"                  # 待处理
    IN_PROGRESS = "in_progress"    # 进行中
    COMPLETED = "completed"        # 已完成
    OVERDUE = "overdue"            # 已逾期，仅由定时扫描设置
    CANCELLED = "cancelled"        # 已取消


class TaskPriority(str, enum.Enum):
    """任务优先级枚举"""
    LOW = "low"        # 低优先级
    MEDIUM = "medium"  # 中等优先级
    HIGH = "high"      # 高优先级


class TargetType(str, enum.Enum):
    """评论 / 附件的多态目标类型"""
    PROJECT = "project"
    TASK = "task"
    COMMENT = "comment"


# 可以被评论的目标类型
COMMENTABLE_TYPES = (TargetType.PROJECT, TargetType.TASK)

# 可以挂载附件的目标类型
ATTACHABLE_TYPES = (TargetType.PROJECT, TargetType.TASK, TargetType.COMMENT)

# 通过接口可设置的任务状态（overdue 只能由扫描设置）
ASSIGNABLE_TASK_STATUSES = (
    TaskStatus.OPEN, TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED, TaskStatus.CANCELLED
)


class NotificationType(str, enum.Enum):
    """通知类型枚举"""
    TASK_COMPLETED = "task_completed"
    PROJECT_COMPLETED = "project_completed"
    TASK_ASSIGNED = "task_assigned"
    NEW_COMMENT = "new_comment"
