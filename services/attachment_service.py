"""附件服务模块

包含附件上传、下载、元数据更新和删除的业务逻辑。
删除附件记录前总会经过文件释放：文件存在则删除，不存在记录警告，
存储异常记录日志后忽略，记录本身始终删除。
"""
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from config.settings import settings
from models import Attachment, User, ATTACHABLE_TYPES
from models.targets import resolve_target, parse_target_type, target_type_of, project_of
from services.cache_invalidation import forget_project
from utils.cache_manager import CacheManager, get_cache
from utils.exceptions import ValidationException, ResourceNotFoundException, StorageException
from utils.permissions import Action, authorize
from utils.security_utils import sanitize_filename
from utils.storage import StorageRegistry, get_storage

logger = logging.getLogger(__name__)

ATTACHABLE_NOT_FOUND = "Attachable resource not found."
ATTACHABLE_TYPE_INVALID = 'The attachable type must be "project", "task", or "comment".'
MISSING_TARGET_MESSAGE = "Please specify attachable_type and attachable_id to view attachments for a specific resource."


class AttachmentService:
    """附件服务类"""

    def __init__(self, db: Session, storage: Optional[StorageRegistry] = None, cache: Optional[CacheManager] = None):
        self.db = db
        self.storage = storage or get_storage()
        self.cache = cache or get_cache()

    def _resolve_attachable(self, attachable_type, attachable_id):
        parsed = parse_target_type(attachable_type)
        if parsed is None or parsed not in ATTACHABLE_TYPES:
            raise ValidationException(ATTACHABLE_TYPE_INVALID, {"attachable_type": [ATTACHABLE_TYPE_INVALID]})
        attachable = resolve_target(self.db, parsed, attachable_id, allowed=ATTACHABLE_TYPES)
        if attachable is None:
            raise ResourceNotFoundException(ATTACHABLE_NOT_FOUND)
        return attachable

    def _forget_cache(self, attachable) -> None:
        project = project_of(attachable) if attachable is not None else None
        if project is not None:
            forget_project(self.cache, project)

    def list_for(self, actor: User, attachable_type: Optional[str] = None,
                 attachable_id: Optional[int] = None) -> List[Attachment]:
        """获取附件列表；管理员获取全部，其他用户必须指定挂载对象"""
        query = self.db.query(Attachment).options(joinedload(Attachment.user)).order_by(Attachment.id)
        if actor.is_admin():
            return query.all()

        if not attachable_type or attachable_id is None:
            raise ValidationException(MISSING_TARGET_MESSAGE)
        attachable = self._resolve_attachable(attachable_type, attachable_id)
        authorize(actor, Action.VIEW, attachable)

        return query.filter(
            Attachment.attachable_type == target_type_of(attachable).value,
            Attachment.attachable_id == attachable.id
        ).all()

    def _validate_file(self, data: bytes, file_name: str) -> str:
        max_bytes = settings.MAX_UPLOAD_SIZE_KB * 1024
        if len(data) > max_bytes:
            message = f"The file size must not exceed {settings.MAX_UPLOAD_SIZE_KB} kilobytes."
            raise ValidationException(message, {"file": [message]})

        extension = Path(file_name).suffix.lower().lstrip(".")
        if extension not in settings.allowed_extensions:
            supported = ", ".join(sorted(settings.allowed_extensions))
            message = f"The file type is not supported. Supported types are: {supported}."
            raise ValidationException(message, {"file": [message]})
        return extension

    def upload(self, data: bytes, file_name: str, mime_type: Optional[str],
               attachable_type: str, attachable_id: int, actor: User) -> Attachment:
        """上传附件"""
        attachable = self._resolve_attachable(attachable_type, attachable_id)
        authorize(actor, Action.CREATE_ON, Attachment, attachable)

        file_name = sanitize_filename(file_name)
        self._validate_file(data, file_name)

        disk, path = self.storage.store(data, file_name, mime_type)
        attachment = Attachment(
            user_id=actor.id,
            disk=disk,
            path=path,
            file_name=file_name,
            file_size=len(data),
            mime_type=mime_type or "application/octet-stream",
            attachable_type=target_type_of(attachable).value,
            attachable_id=attachable.id
        )
        self.db.add(attachment)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            self._discard_blob(disk, path)
            raise
        self.db.refresh(attachment)

        self._forget_cache(attachable)
        logger.info(f"附件 '{attachment.file_name}' (ID: {attachment.id}) 已上传到 {disk}:{path}")
        return attachment

    def _discard_blob(self, disk: str, path: str) -> None:
        """记录写入失败时删除已存储的文件"""
        try:
            self.storage.delete(disk, path)
            logger.warning(f"附件记录保存失败，已删除文件 {disk}:{path}")
        except StorageException as e:
            logger.error(f"附件记录保存失败，文件 {disk}:{path} 删除失败: {e.message}")

    def get(self, attachment: Attachment, actor: User) -> Attachment:
        authorize(actor, Action.VIEW, attachment)
        return attachment

    def download(self, attachment: Attachment, actor: User) -> Tuple[bytes, str, str]:
        """返回 (文件内容, 原始文件名, MIME类型)"""
        authorize(actor, Action.VIEW, attachment)
        data = self.storage.read(attachment.disk, attachment.path)
        return data, attachment.file_name, attachment.mime_type or "application/octet-stream"

    def update(self, attachment: Attachment, file_name: str, actor: User) -> Attachment:
        """只更新元数据"""
        authorize(actor, Action.UPDATE, attachment)
        attachment.file_name = sanitize_filename(file_name)
        self.db.commit()
        self.db.refresh(attachment)

        self._forget_cache(resolve_target(self.db, attachment.attachable_type, attachment.attachable_id))
        logger.info(f"附件 '{attachment.file_name}' (ID: {attachment.id}) 已更新")
        return attachment

    def delete(self, attachment: Attachment, actor: User) -> None:
        authorize(actor, Action.DELETE, attachment)
        attachable = resolve_target(self.db, attachment.attachable_type, attachment.attachable_id)
        self.release(attachment)
        self.db.commit()
        self._forget_cache(attachable)

    def release_file(self, attachment: Attachment) -> None:
        """释放附件文件，失败不影响记录删除"""
        try:
            if self.storage.exists(attachment.disk, attachment.path):
                self.storage.delete(attachment.disk, attachment.path)
                logger.info(f"附件文件 '{attachment.path}' 已从磁盘 '{attachment.disk}' 删除")
            else:
                logger.warning(f"附件文件 '{attachment.path}' 在磁盘 '{attachment.disk}' 上不存在，跳过删除")
        except StorageException as e:
            logger.error(f"附件文件 '{attachment.path}' 删除失败: {e.message}")

    def release(self, attachment: Attachment) -> None:
        """释放文件并删除记录（不提交）"""
        self.release_file(attachment)
        self.db.delete(attachment)
        logger.info(f"附件 '{attachment.file_name}' (ID: {attachment.id}) 已删除")

    def purge_for(self, target) -> int:
        """删除挂载在目标上的全部附件（不提交）"""
        attachments = self.db.query(Attachment).filter(
            Attachment.attachable_type == target_type_of(target).value,
            Attachment.attachable_id == target.id
        ).all()
        for attachment in attachments:
            self.release(attachment)
        return len(attachments)
