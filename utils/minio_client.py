"""MinIO存储后端模块

将附件存储到 MinIO 存储桶，磁盘标识为 minio
"""
import io
import logging
from typing import Optional, Tuple

from minio import Minio
from minio.error import S3Error

from config.settings import settings
from utils.exceptions import StorageException
from utils.storage import ATTACHMENT_DIR, generate_storage_name

logger = logging.getLogger(__name__)


class MinioStorage:
    """MinIO客户端封装类"""

    def __init__(self, client: Optional[Minio] = None, bucket: str = None, disk: str = "minio"):
        self.disk = disk
        self.bucket = bucket or settings.MINIO_BUCKET
        self.client = client or Minio(
            endpoint=settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE
        )
        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self) -> None:
        """确保存储桶存在"""
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
                logger.info(f"创建MinIO存储桶: {self.bucket}")
        except S3Error as e:
            logger.error(f"MinIO存储桶操作失败: {e}")
            raise StorageException("Storage service initialization failed.") from e

    def store(self, data: bytes, filename: str, content_type: Optional[str] = None) -> Tuple[str, str]:
        path = f"{ATTACHMENT_DIR}/{generate_storage_name(filename)}"
        try:
            self.client.put_object(
                bucket_name=self.bucket,
                object_name=path,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type or "application/octet-stream"
            )
        except S3Error as e:
            logger.error(f"文件上传失败: {path}: {e}")
            raise StorageException("File upload failed.") from e
        return self.disk, path

    def read(self, path: str) -> bytes:
        try:
            response = self.client.get_object(self.bucket, path)
            try:
                return response.read()
            finally:
                response.close()
                response.release_conn()
        except S3Error as e:
            raise StorageException(f"File '{path}' could not be read.") from e

    def delete(self, path: str) -> bool:
        if not self.exists(path):
            return False
        try:
            self.client.remove_object(self.bucket, path)
        except S3Error as e:
            raise StorageException(f"File '{path}' could not be deleted.") from e
        return True

    def exists(self, path: str) -> bool:
        try:
            self.client.stat_object(self.bucket, path)
            return True
        except S3Error as e:
            if e.code in ("NoSuchKey", "NoSuchObject"):
                return False
            raise StorageException(f"File '{path}' could not be checked.") from e
