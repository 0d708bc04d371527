"""
通知模型模块
数据库通知，read_at 为空表示未读
"""
import uuid
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base


def generate_notification_id() -> str:
    return str(uuid.uuid4())


class Notification(Base):
    """通知表模型"""
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_notification_id, comment='通知ID（UUID）')
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True, comment='接收人ID')
    type = Column(String(100), nullable=False, comment='通知类型')
    data = Column(JSON, nullable=False, default=dict, comment='通知负载')
    read_at = Column(DateTime, nullable=True, comment='已读时间')
    created_at = Column(DateTime, default=func.now(), comment='创建时间')
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), comment='更新时间')

    # 关系
    user = relationship("User", back_populates="notifications")

    @property
    def is_read(self) -> bool:
        return self.read_at is not None
