"""文件存储模块

附件文件的存储接口：store / read / delete / exists，按磁盘标识分派到具体后端
"""
import logging
import uuid
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple

from config.settings import settings
from utils.exceptions import StorageException

logger = logging.getLogger(__name__)

ATTACHMENT_DIR = "attachments"


def generate_storage_name(original_filename: str) -> str:
    """生成唯一的存储文件名：uuid.扩展名"""
    file_ext = Path(original_filename or "").suffix.lower().lstrip(".")
    unique_id = str(uuid.uuid4())
    return f"{unique_id}.{file_ext}" if file_ext else unique_id


class BlobStorage(Protocol):
    disk: str

    def store(self, data: bytes, filename: str, content_type: Optional[str] = None) -> Tuple[str, str]: ...

    def read(self, path: str) -> bytes: ...

    def delete(self, path: str) -> bool: ...

    def exists(self, path: str) -> bool: ...


class LocalDiskStorage:
    """本地磁盘存储"""

    def __init__(self, root: str = None, disk: str = "local"):
        self.root = Path(root or settings.UPLOAD_DIR)
        self.disk = disk

    def _full_path(self, path: str) -> Path:
        full_path = (self.root / path).resolve()
        if self.root.resolve() not in full_path.parents:
            raise StorageException(f"Invalid storage path: {path}")
        return full_path

    def store(self, data: bytes, filename: str, content_type: Optional[str] = None) -> Tuple[str, str]:
        path = f"{ATTACHMENT_DIR}/{generate_storage_name(filename)}"
        full_path = self._full_path(path)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(data)
        except OSError as e:
            logger.error(f"文件写入失败: {path}: {e}")
            raise StorageException("File upload failed.") from e
        return self.disk, path

    def read(self, path: str) -> bytes:
        try:
            return self._full_path(path).read_bytes()
        except OSError as e:
            raise StorageException(f"File '{path}' could not be read.") from e

    def delete(self, path: str) -> bool:
        full_path = self._full_path(path)
        try:
            full_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageException(f"File '{path}' could not be deleted.") from e
        return True

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()


class StorageRegistry:
    """磁盘标识 -> 存储后端，使任意磁盘上的附件都能被释放"""

    def __init__(self, default_disk: str = None):
        self._disks: Dict[str, BlobStorage] = {}
        self.default_disk = default_disk or settings.STORAGE_DISK

    def register(self, storage: BlobStorage) -> None:
        self._disks[storage.disk] = storage

    def disk(self, name: Optional[str] = None) -> BlobStorage:
        name = name or self.default_disk
        if name not in self._disks:
            if name == "minio":
                # 延迟创建，避免未使用 MinIO 时建立连接
                from utils.minio_client import MinioStorage
                self.register(MinioStorage())
            else:
                raise StorageException(f"Storage disk '{name}' is not configured.")
        return self._disks[name]

    def store(self, data: bytes, filename: str, content_type: Optional[str] = None) -> Tuple[str, str]:
        return self.disk().store(data, filename, content_type)

    def read(self, disk: str, path: str) -> bytes:
        return self.disk(disk).read(path)

    def delete(self, disk: str, path: str) -> bool:
        return self.disk(disk).delete(path)

    def exists(self, disk: str, path: str) -> bool:
        return self.disk(disk).exists(path)


def create_storage() -> StorageRegistry:
    registry = StorageRegistry()
    registry.register(LocalDiskStorage())
    return registry


storage = create_storage()


def get_storage() -> StorageRegistry:
    """文件存储依赖"""
    return storage
