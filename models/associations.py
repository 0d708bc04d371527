"""
关联表定义模块
包含带角色列的多对多成员关联表
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Table
from sqlalchemy.sql import func
from .database import Base


# 团队成员关联表
team_members = Table(
    'team_members',
    Base.metadata,
    Column('team_id', Integer, ForeignKey('teams.id', ondelete='CASCADE'), primary_key=True, comment='团队ID'),
    Column('user_id', Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True, comment='用户ID'),
    Column('role', String(50), nullable=False, default='member', comment='团队角色：team_admin / member'),
    Column('created_at', DateTime, default=func.now(), comment='加入时间')
)

# 项目成员关联表
project_members = Table(
    'project_members',
    Base.metadata,
    Column('project_id', Integer, ForeignKey('projects.id', ondelete='CASCADE'), primary_key=True, comment='项目ID'),
    Column('user_id', Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True, comment='用户ID'),
    Column('role', String(50), nullable=False, default='member', comment='项目角色：project_manager / member'),
    Column('created_at', DateTime, default=func.now(), comment='加入时间')
)
