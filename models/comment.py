"""评论模型模块

评论通过 (commentable_type, commentable_id) 多态挂载到项目或任务
"""
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from .database import Base
from .base import TimestampMixin


class Comment(Base, TimestampMixin):
    """评论表模型"""
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True, comment='评论ID')
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, comment='评论作者ID')
    content = Column(Text, nullable=False, comment='评论内容（已清洗）')
    commentable_type = Column(String(20), nullable=False, comment='评论目标类型：project / task')
    commentable_id = Column(Integer, nullable=False, comment='评论目标ID')

    __table_args__ = (
        Index('ix_comments_commentable', 'commentable_type', 'commentable_id'),
    )

    # 关系
    user = relationship("User")
    attachments = relationship(
        "Attachment",
        primaryjoin="and_(foreign(Attachment.attachable_id) == Comment.id, Attachment.attachable_type == 'comment')",
        viewonly=True,
        order_by="Attachment.id"
    )
