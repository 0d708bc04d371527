"""附件模型模块

附件通过 (attachable_type, attachable_id) 多态挂载到项目、任务或评论
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship
from .database import Base
from .base import TimestampMixin

SIZE_UNITS = ['B', 'KB', 'MB', 'GB', 'TB']


def format_file_size(size_bytes) -> str:
    """将字节数格式化为可读字符串，如 1.50 KB"""
    if not size_bytes or size_bytes <= 0:
        return "0.00 B"
    exponent = 0
    while size_bytes >= 1024 ** (exponent + 1) and exponent < len(SIZE_UNITS) - 1:
        exponent += 1
    return f"{size_bytes / (1024 ** exponent):.2f} {SIZE_UNITS[exponent]}"


class Attachment(Base, TimestampMixin):
    """附件表模型"""
    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True, index=True, comment='附件ID')
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, comment='上传人ID')
    disk = Column(String(50), nullable=False, default='local', comment='存储磁盘标识')
    path = Column(String(500), nullable=False, comment='存储路径')
    file_name = Column(String(255), nullable=False, comment='原始文件名')
    file_size = Column(Integer, nullable=False, default=0, comment='文件大小（字节）')
    mime_type = Column(String(100), comment='文件MIME类型')
    attachable_type = Column(String(20), nullable=False, comment='挂载目标类型：project / task / comment')
    attachable_id = Column(Integer, nullable=False, comment='挂载目标ID')

    __table_args__ = (
        Index('ix_attachments_attachable', 'attachable_type', 'attachable_id'),
    )

    # 关系
    user = relationship("User")

    @property
    def formatted_size(self) -> str:
        return format_file_size(self.file_size)
