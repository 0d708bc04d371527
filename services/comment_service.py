"""评论服务模块

包含评论相关的业务逻辑处理
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from models import Comment, User, COMMENTABLE_TYPES
from models.targets import resolve_target, parse_target_type, target_type_of, project_of
from services.attachment_service import AttachmentService
from services.cache_invalidation import forget_project
from services.events import EventDispatcher, CommentCreated
from utils.cache_manager import CacheManager, get_cache
from utils.exceptions import ValidationException, ResourceNotFoundException
from utils.job_queue import get_job_queue
from utils.permissions import Action, authorize
from utils.security_utils import ContentSanitizer, get_sanitizer

logger = logging.getLogger(__name__)

COMMENTABLE_NOT_FOUND = "Commentable resource not found."
COMMENTABLE_TYPE_INVALID = 'The commentable type must be either "project" or "task".'
MISSING_TARGET_MESSAGE = "Please specify commentable_type and commentable_id to view comments for a specific resource."


class CommentService:
    """评论服务类"""

    def __init__(self, db: Session, cache: Optional[CacheManager] = None,
                 dispatcher: Optional[EventDispatcher] = None,
                 sanitizer: Optional[ContentSanitizer] = None,
                 attachments: Optional[AttachmentService] = None):
        self.db = db
        self.cache = cache or get_cache()
        self.dispatcher = dispatcher or EventDispatcher(db, get_job_queue())
        self.sanitizer = sanitizer or get_sanitizer()
        self.attachments = attachments or AttachmentService(db, cache=self.cache)

    def _resolve_commentable(self, commentable_type, commentable_id):
        parsed = parse_target_type(commentable_type)
        if parsed is None or parsed not in COMMENTABLE_TYPES:
            raise ValidationException(COMMENTABLE_TYPE_INVALID, {"commentable_type": [COMMENTABLE_TYPE_INVALID]})
        commentable = resolve_target(self.db, parsed, commentable_id, allowed=COMMENTABLE_TYPES)
        if commentable is None:
            raise ResourceNotFoundException(COMMENTABLE_NOT_FOUND)
        return commentable

    def _forget_cache(self, commentable) -> None:
        project = project_of(commentable) if commentable is not None else None
        if project is not None:
            forget_project(self.cache, project)

    def list_for(self, actor: User, commentable_type: Optional[str] = None,
                 commentable_id: Optional[int] = None) -> List[Comment]:
        """获取评论列表；管理员获取全部，其他用户必须指定评论对象"""
        query = self.db.query(Comment).options(joinedload(Comment.user)).order_by(Comment.id)
        if actor.is_admin():
            return query.all()

        if not commentable_type or commentable_id is None:
            raise ValidationException(MISSING_TARGET_MESSAGE)
        commentable = self._resolve_commentable(commentable_type, commentable_id)
        authorize(actor, Action.VIEW, commentable)

        return query.filter(
            Comment.commentable_type == target_type_of(commentable).value,
            Comment.commentable_id == commentable.id
        ).all()

    def create(self, content: str, commentable_type: str, commentable_id: int, actor: User) -> Comment:
        """创建评论"""
        commentable = self._resolve_commentable(commentable_type, commentable_id)
        authorize(actor, Action.CREATE_ON, Comment, commentable)

        comment = Comment(
            user_id=actor.id,
            content=self.sanitizer.clean(content),
            commentable_type=target_type_of(commentable).value,
            commentable_id=commentable.id
        )
        self.db.add(comment)
        self.db.commit()
        self.db.refresh(comment)
        logger.info(f"评论已创建: ID {comment.id} on {comment.commentable_type}#{comment.commentable_id}")

        self.dispatcher.dispatch(CommentCreated(comment_id=comment.id))
        self._forget_cache(commentable)
        return comment

    def get(self, comment: Comment, actor: User) -> Comment:
        authorize(actor, Action.VIEW, comment)
        return comment

    def update(self, comment: Comment, content: str, actor: User) -> Comment:
        authorize(actor, Action.UPDATE, comment)
        comment.content = self.sanitizer.clean(content)
        self.db.commit()
        self.db.refresh(comment)

        self._forget_cache(resolve_target(self.db, comment.commentable_type, comment.commentable_id))
        logger.info(f"评论已更新: ID {comment.id}")
        return comment

    def delete(self, comment: Comment, actor: User) -> None:
        authorize(actor, Action.DELETE, comment)
        commentable = resolve_target(self.db, comment.commentable_type, comment.commentable_id)
        self.release(comment)
        self.db.commit()
        self._forget_cache(commentable)

    def release(self, comment: Comment) -> None:
        """删除评论及其附件（不提交）"""
        self.attachments.purge_for(comment)
        self.db.delete(comment)
        logger.info(f"评论已删除: ID {comment.id}")

    def purge_for(self, target) -> int:
        """删除目标上的全部评论（不提交）"""
        comments = self.db.query(Comment).filter(
            Comment.commentable_type == target_type_of(target).value,
            Comment.commentable_id == target.id
        ).all()
        for comment in comments:
            self.release(comment)
        return len(comments)
