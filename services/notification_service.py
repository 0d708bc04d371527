"""通知服务模块

包含数据库通知的查询、已读标记和删除
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from models import Notification, User
from utils.permissions import Action, authorize

logger = logging.getLogger(__name__)


class NotificationService:
    """通知服务类"""

    def __init__(self, db: Session):
        self.db = db

    def list_for(self, user: User, status: Optional[str] = None) -> List[Notification]:
        """获取通知列表，status=unread 只返回未读通知；管理员可查看全部"""
        query = self.db.query(Notification)
        if not user.is_admin():
            query = query.filter(Notification.user_id == user.id)
        if status == "unread":
            query = query.filter(Notification.read_at.is_(None))
        return query.order_by(Notification.created_at.desc(), Notification.id).all()

    def get(self, notification: Notification, actor: User) -> Notification:
        authorize(actor, Action.VIEW, notification)
        return notification

    def mark_read(self, notification: Notification, actor: User) -> Notification:
        """标记为已读，已读通知保持原已读时间"""
        authorize(actor, Action.UPDATE, notification)
        if notification.read_at is None:
            notification.read_at = datetime.now()
            self.db.commit()
            self.db.refresh(notification)
            logger.info(f"通知 {notification.id} 已标记为已读")
        return notification

    def delete(self, notification: Notification, actor: User) -> None:
        authorize(actor, Action.DELETE, notification)
        self.db.delete(notification)
        self.db.commit()
        logger.info(f"通知 {notification.id} 已删除")

    def mark_all_read(self, user: User) -> int:
        """把用户全部未读通知标记为已读，返回原未读数量"""
        count = self.db.query(Notification).filter(
            Notification.user_id == user.id,
            Notification.read_at.is_(None)
        ).update({Notification.read_at: datetime.now()}, synchronize_session=False)
        self.db.commit()
        logger.info(f"用户 {user.id} 的 {count} 条未读通知已全部标记为已读")
        return count

    def unread_count(self, user: User) -> int:
        return self.db.query(Notification).filter(
            Notification.user_id == user.id,
            Notification.read_at.is_(None)
        ).count()
