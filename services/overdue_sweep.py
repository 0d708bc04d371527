"""逾期任务扫描模块

把已过截止时间、且未完成/未取消/未标记逾期的任务标记为 overdue。
只前进不回退，重复执行不会再次更新。
"""
import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from models import Task, TaskStatus
from services.cache_invalidation import forget_project
from utils.cache_manager import CacheManager

logger = logging.getLogger(__name__)

SWEEP_EXCLUDED_STATUSES = (TaskStatus.COMPLETED, TaskStatus.CANCELLED, TaskStatus.OVERDUE)


def mark_overdue_tasks(db: Session, cache: Optional[CacheManager] = None, now: datetime = None) -> int:
    """执行一次逾期扫描，返回被标记的任务数"""
    now = now or datetime.now()
    tasks = db.query(Task).filter(
        Task.due_date.isnot(None),
        Task.due_date < now,
        Task.status.notin_(SWEEP_EXCLUDED_STATUSES)
    ).all()

    if not tasks:
        logger.info("逾期扫描：没有需要更新的任务")
        return 0

    projects = {}
    for task in tasks:
        task.status = TaskStatus.OVERDUE
        projects[task.project_id] = task.project
        logger.info(f"任务已标记为逾期: id={task.id} name={task.name!r}")
    db.commit()

    if cache is not None:
        for project in projects.values():
            forget_project(cache, project)

    logger.info(f"逾期扫描完成，共更新 {len(tasks)} 个任务")
    return len(tasks)


class OverdueSweepScheduler:
    """按固定间隔执行逾期扫描的后台线程"""

    def __init__(self, session_factory: Callable[[], Session], cache: Optional[CacheManager] = None,
                 interval_hours: float = 24):
        self.session_factory = session_factory
        self.cache = cache
        self.interval_seconds = interval_hours * 3600
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_once(self) -> int:
        db = self.session_factory()
        try:
            return mark_overdue_tasks(db, self.cache)
        finally:
            db.close()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return

        def _schedule_task():
            while not self._stop.is_set():
                try:
                    self.run_once()
                except Exception as e:
                    logger.error(f"逾期扫描失败: {e}", exc_info=True)
                self._stop.wait(self.interval_seconds)

        self._stop.clear()
        self._thread = threading.Thread(target=_schedule_task, name="overdue-sweep", daemon=True)
        self._thread.start()
        logger.info(f"启动逾期任务扫描，间隔 {self.interval_seconds / 3600:g} 小时")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None
