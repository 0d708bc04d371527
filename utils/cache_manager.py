"""缓存管理器模块

带过期时间的键值缓存，支持进程内存和 Redis 两种后端。
缓存值为可JSON序列化的快照；失效一律整键删除，由业务服务显式调用。
"""

import json
import time
import logging
import threading
from typing import Any, Callable, Dict, Iterable, Optional

import redis

from config.settings import settings

logger = logging.getLogger(__name__)


def project_detail_key(project_id, user_id) -> str:
    """项目详情缓存键（按项目 × 查看者）"""
    return f"project_details_{project_id}_{user_id}"


def user_teams_key(user_id) -> str:
    """用户可见团队列表缓存键"""
    return f"user_teams_{user_id}"


class MemoryCacheBackend:
    """进程内缓存后端，线程安全"""

    def __init__(self, max_size: int = 10000):
        self._data: Dict[str, Any] = {}
        self._expires: Dict[str, float] = {}
        self._lock = threading.Lock()
        self.max_size = max_size

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if key not in self._data:
                return None
            if self._expires.get(key, 0) <= time.time():
                self._data.pop(key, None)
                self._expires.pop(key, None)
                return None
            # 返回副本，调用方修改不会污染缓存
            return json.loads(self._data[key])

    def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            if len(self._data) >= self.max_size and key not in self._data:
                self._evict_oldest()
            self._data[key] = json.dumps(value, ensure_ascii=False, default=str)
            self._expires[key] = time.time() + ttl

    def delete(self, key: str) -> bool:
        with self._lock:
            self._expires.pop(key, None)
            return self._data.pop(key, None) is not None

    def incr(self, key: str, ttl: int) -> int:
        with self._lock:
            now = time.time()
            if key not in self._data or self._expires.get(key, 0) <= now:
                self._data[key] = "0"
                self._expires[key] = now + ttl
            count = int(json.loads(self._data[key])) + 1
            self._data[key] = json.dumps(count)
            return count

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._expires.clear()

    def _evict_oldest(self):
        oldest = min(self._expires, key=self._expires.get)
        self._data.pop(oldest, None)
        self._expires.pop(oldest, None)


class RedisCacheBackend:
    """Redis缓存后端"""

    def __init__(self, client: Optional[redis.Redis] = None, prefix: str = "taskhub:cache:"):
        self.client = client or redis.Redis.from_url(settings.redis_url)
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        raw = self.client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int) -> None:
        self.client.setex(self._key(key), ttl, json.dumps(value, ensure_ascii=False, default=str))

    def delete(self, key: str) -> bool:
        return bool(self.client.delete(self._key(key)))

    def incr(self, key: str, ttl: int) -> int:
        count = self.client.incr(self._key(key))
        if count == 1:
            self.client.expire(self._key(key), ttl)
        return int(count)

    def clear(self) -> None:
        for key in self.client.scan_iter(f"{self.prefix}*"):
            self.client.delete(key)


class CacheManager:
    """
    缓存管理器

    提供 get / set / delete / remember（读穿透）以及命中统计
    """

    def __init__(self, backend=None):
        self.backend = backend or MemoryCacheBackend()
        self.stats = {"hits": 0, "misses": 0, "sets": 0, "deletes": 0}
        self.stats_lock = threading.Lock()

    def _count(self, name: str):
        with self.stats_lock:
            self.stats[name] += 1

    def get(self, key: str) -> Optional[Any]:
        value = self.backend.get(key)
        self._count("hits" if value is not None else "misses")
        return value

    def set(self, key: str, value: Any, ttl: int) -> None:
        self.backend.set(key, value, ttl)
        self._count("sets")

    def delete(self, key: str) -> bool:
        self._count("deletes")
        return self.backend.delete(key)

    def delete_many(self, keys: Iterable[str]) -> None:
        for key in set(keys):
            self.delete(key)

    def remember(self, key: str, ttl: int, loader: Callable[[], Any]) -> Any:
        """命中则直接返回缓存值，否则调用 loader 计算并写入"""
        value = self.get(key)
        if value is not None:
            return value
        value = loader()
        self.set(key, value, ttl)
        return value

    def incr(self, key: str, ttl: int) -> int:
        """固定窗口计数，窗口从首次计数开始"""
        return self.backend.incr(key, ttl)

    def clear(self) -> None:
        self.backend.clear()
        with self.stats_lock:
            for name in self.stats:
                self.stats[name] = 0

    def get_stats(self) -> Dict[str, Any]:
        with self.stats_lock:
            stats = dict(self.stats)
        total = stats["hits"] + stats["misses"]
        stats["hit_rate"] = round(stats["hits"] / total, 4) if total else 0.0
        stats["backend"] = type(self.backend).__name__
        return stats


def create_cache_manager() -> CacheManager:
    """根据配置创建缓存管理器"""
    if settings.CACHE_BACKEND == "redis":
        logger.info(f"使用Redis缓存后端: {settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}")
        return CacheManager(RedisCacheBackend())
    return CacheManager(MemoryCacheBackend())


# 进程级缓存实例，可通过 set_cache_manager 替换
cache_manager = create_cache_manager()


def get_cache() -> CacheManager:
    """缓存依赖"""
    return cache_manager


def set_cache_manager(manager: CacheManager) -> None:
    global cache_manager
    cache_manager = manager
