"""
团队模型模块
包含团队相关的数据模型定义
"""
from sqlalchemy import Column, Integer, String, ForeignKey, select
from sqlalchemy.orm import relationship, object_session
from .database import Base
from .base import TimestampMixin
from .associations import team_members


class Team(Base, TimestampMixin):
    """团队表模型"""
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True, comment='团队ID')
    name = Column(String(255), unique=True, nullable=False, comment='团队名称，唯一')
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, comment='团队所有者ID')

    # 关系
    owner = relationship("User", back_populates="owned_teams", foreign_keys=[owner_id])
    members = relationship("User", secondary=team_members, back_populates="teams", order_by="User.id")
    projects = relationship("Project", back_populates="team", order_by="Project.id")

    def role_of(self, user_id):
        """查询用户在团队中的角色"""
        session = object_session(self)
        if session is None:
            return None
        return session.execute(
            select(team_members.c.role).where(
                team_members.c.team_id == self.id,
                team_members.c.user_id == user_id
            )
        ).scalar()

    def member_roles(self) -> dict:
        """返回 {user_id: role} 映射"""
        session = object_session(self)
        rows = session.execute(
            select(team_members.c.user_id, team_members.c.role).where(team_members.c.team_id == self.id)
        ).all()
        return {user_id: role for user_id, role in rows}

    def member_ids(self) -> list:
        return list(self.member_roles().keys())
