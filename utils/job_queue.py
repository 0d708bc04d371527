"""任务队列模块

业务服务只负责把“收件人 + 通知负载”投递到队列，
投递/重试由独立的 worker 负责
"""
import json
import logging
import queue
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

import redis

from config.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class DeliveryJob:
    """单个收件人的通知投递任务"""
    recipient_id: int
    notification_type: str
    payload: Dict[str, Any]
    mail_subject: Optional[str] = None
    mail_body: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, default=str)

    @classmethod
    def from_json(cls, raw) -> "DeliveryJob":
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return cls(**json.loads(raw))


class InMemoryJobQueue:
    """进程内队列"""

    def __init__(self):
        self._queue: "queue.Queue[DeliveryJob]" = queue.Queue()

    def enqueue(self, job: DeliveryJob) -> None:
        self._queue.put(job)

    def dequeue(self, timeout: Optional[float] = None) -> Optional[DeliveryJob]:
        try:
            if timeout:
                return self._queue.get(timeout=timeout)
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def size(self) -> int:
        return self._queue.qsize()

    def peek_all(self) -> List[DeliveryJob]:
        """查看队列中的全部任务（不出队）"""
        with self._queue.mutex:
            return list(self._queue.queue)

    def clear(self) -> None:
        with self._queue.mutex:
            self._queue.queue.clear()


class RedisJobQueue:
    """基于 Redis 列表的队列，适合多进程部署"""

    def __init__(self, client: Optional[redis.Redis] = None, name: str = None):
        self.client = client or redis.Redis.from_url(settings.redis_url)
        self.name = name or settings.QUEUE_NAME

    def enqueue(self, job: DeliveryJob) -> None:
        self.client.rpush(self.name, job.to_json())

    def dequeue(self, timeout: Optional[float] = None) -> Optional[DeliveryJob]:
        if timeout:
            item = self.client.blpop([self.name], timeout=max(1, int(timeout)))
            raw = item[1] if item else None
        else:
            raw = self.client.lpop(self.name)
        return DeliveryJob.from_json(raw) if raw is not None else None

    def size(self) -> int:
        return int(self.client.llen(self.name))

    def peek_all(self) -> List[DeliveryJob]:
        return [DeliveryJob.from_json(raw) for raw in self.client.lrange(self.name, 0, -1)]

    def clear(self) -> None:
        self.client.delete(self.name)


def create_job_queue():
    if settings.QUEUE_BACKEND == "redis":
        logger.info(f"使用Redis队列: {settings.QUEUE_NAME}")
        return RedisJobQueue()
    return InMemoryJobQueue()


job_queue = create_job_queue()


def get_job_queue():
    """任务队列依赖"""
    return job_queue
