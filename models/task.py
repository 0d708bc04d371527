"""
任务模型模块
包含任务相关的数据模型定义
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship
from .database import Base
from .base import TimestampMixin
from .enums import TaskStatus, TaskPriority
from .user import enum_values


class Task(Base, TimestampMixin):
    """任务表模型"""
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True, comment='任务ID')
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True, comment='任务所属项目ID')
    assigned_to_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True, comment='任务负责人ID')
    name = Column(String(255), nullable=False, comment='任务名称')
    description = Column(Text, comment='任务描述')
    status = Column(
        Enum(TaskStatus, values_callable=enum_values, native_enum=False, length=32),
        nullable=False, default=TaskStatus.OPEN, comment='任务状态'
    )
    priority = Column(
        Enum(TaskPriority, values_callable=enum_values, native_enum=False, length=32),
        nullable=False, default=TaskPriority.MEDIUM, comment='任务优先级'
    )
    due_date = Column(DateTime, comment='任务截止时间')

    # 关系
    project = relationship("Project", back_populates="tasks")
    assignee = relationship("User", back_populates="assigned_tasks", foreign_keys=[assigned_to_user_id])
    comments = relationship(
        "Comment",
        primaryjoin="and_(foreign(Comment.commentable_id) == Task.id, Comment.commentable_type == 'task')",
        viewonly=True,
        order_by="Comment.id"
    )
    attachments = relationship(
        "Attachment",
        primaryjoin="and_(foreign(Attachment.attachable_id) == Task.id, Attachment.attachable_type == 'task')",
        viewonly=True,
        order_by="Attachment.id"
    )

    @classmethod
    def overdue_filter(cls, now: datetime = None):
        """逾期任务查询条件：截止时间已过，且未完成、未取消"""
        now = now or datetime.now()
        return (cls.due_date < now) & cls.status.notin_([TaskStatus.COMPLETED, TaskStatus.CANCELLED])
