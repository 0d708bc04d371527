"""
用户模型模块
包含用户及访问令牌的数据模型定义，以及成员身份判断辅助方法
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base
from .base import TimestampMixin
from .enums import UserRole, TeamRole, ProjectRole
from .associations import team_members, project_members


def enum_values(enum_cls):
    """让 SQLAlchemy 以枚举值而非名称入库"""
    return [member.value for member in enum_cls]


class User(Base, TimestampMixin):
    """用户表模型"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, comment='用户ID')
    name = Column(String(255), nullable=False, comment='用户姓名')
    email = Column(String(255), unique=True, index=True, nullable=False, comment='邮箱地址，唯一标识')
    password_hash = Column(String(255), nullable=False, comment='密码哈希值')
    role = Column(
        Enum(UserRole, values_callable=enum_values, native_enum=False, length=32),
        nullable=False, default=UserRole.MEMBER, comment='全局角色'
    )

    # 关系
    owned_teams = relationship("Team", back_populates="owner", foreign_keys="Team.owner_id")
    teams = relationship("Team", secondary=team_members, back_populates="members")
    projects = relationship("Project", secondary=project_members, back_populates="members")
    created_projects = relationship("Project", back_populates="creator", foreign_keys="Project.created_by_user_id")
    assigned_tasks = relationship("Task", back_populates="assignee", foreign_keys="Task.assigned_to_user_id")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    tokens = relationship("AccessToken", back_populates="user", cascade="all, delete-orphan")

    def has_role(self, role) -> bool:
        """是否拥有指定全局角色"""
        return self.role == role

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def owns_team(self, team) -> bool:
        """是否为团队所有者"""
        return team is not None and team.owner_id == self.id

    def team_role(self, team):
        """返回在团队中的角色，非成员返回 None"""
        if team is None:
            return None
        return team.role_of(self.id)

    def belongs_to_team(self, team) -> bool:
        return self.team_role(team) is not None

    def has_team_role(self, team, role) -> bool:
        return self.team_role(team) == TeamRole(role).value

    def project_role(self, project):
        """返回在项目中的角色，非成员返回 None"""
        if project is None:
            return None
        return project.role_of(self.id)

    def belongs_to_project(self, project) -> bool:
        return self.project_role(project) is not None

    def has_project_role(self, project, role) -> bool:
        return self.project_role(project) == ProjectRole(role).value

    def __repr__(self):
        return f"<User id={self.id} email={self.email!r} role={self.role}>"


class AccessToken(Base):
    """访问令牌表模型，令牌仅在记录存在时有效"""
    __tablename__ = "access_tokens"

    id = Column(Integer, primary_key=True, index=True, comment='令牌记录ID')
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True, comment='所属用户ID')
    jti = Column(String(64), unique=True, index=True, nullable=False, comment='JWT唯一标识')
    name = Column(String(100), default='authToken', comment='令牌名称')
    expires_at = Column(DateTime, comment='过期时间')
    created_at = Column(DateTime, default=func.now(), comment='创建时间')

    user = relationship("User", back_populates="tokens")
