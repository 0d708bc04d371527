"""
项目模型模块
包含项目相关的数据模型定义
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, Enum, select
from sqlalchemy.orm import relationship, object_session
from .database import Base
from .base import TimestampMixin
from .enums import ProjectStatus, ProjectRole
from .associations import project_members
from .user import enum_values


class Project(Base, TimestampMixin):
    """项目表模型"""
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True, comment='项目ID')
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True, comment='所属团队ID')
    name = Column(String(255), nullable=False, comment='项目名称')
    description = Column(Text, comment='项目描述')
    status = Column(
        Enum(ProjectStatus, values_callable=enum_values, native_enum=False, length=32),
        nullable=False, default=ProjectStatus.PENDING, comment='项目状态'
    )
    due_date = Column(DateTime, comment='截止日期')
    created_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, comment='项目创建者ID，创建后不可变')

    # 关系
    team = relationship("Team", back_populates="projects")
    creator = relationship("User", back_populates="created_projects", foreign_keys=[created_by_user_id])
    members = relationship("User", secondary=project_members, back_populates="projects", order_by="User.id")
    tasks = relationship("Task", back_populates="project", order_by="Task.id")
    comments = relationship(
        "Comment",
        primaryjoin="and_(foreign(Comment.commentable_id) == Project.id, Comment.commentable_type == 'project')",
        viewonly=True,
        order_by="Comment.id"
    )
    attachments = relationship(
        "Attachment",
        primaryjoin="and_(foreign(Attachment.attachable_id) == Project.id, Attachment.attachable_type == 'project')",
        viewonly=True,
        order_by="Attachment.id"
    )

    def role_of(self, user_id):
        """查询用户在项目中的角色"""
        session = object_session(self)
        if session is None:
            return None
        return session.execute(
            select(project_members.c.role).where(
                project_members.c.project_id == self.id,
                project_members.c.user_id == user_id
            )
        ).scalar()

    def member_roles(self) -> dict:
        """返回 {user_id: role} 映射"""
        session = object_session(self)
        rows = session.execute(
            select(project_members.c.user_id, project_members.c.role)
            .where(project_members.c.project_id == self.id)
            .order_by(project_members.c.user_id)
        ).all()
        return {user_id: role for user_id, role in rows}

    def manager_ids(self) -> list:
        """持有项目经理角色的成员ID"""
        return [
            user_id for user_id, role in self.member_roles().items()
            if role == ProjectRole.PROJECT_MANAGER.value
        ]
