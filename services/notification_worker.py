"""通知投递模块

JobWorker 从任务队列取出 DeliveryJob，交给 NotificationSink 落库通知并发送邮件。
每个任务只执行一次，失败记录日志后丢弃。
"""
import logging
import threading
from typing import Callable, Optional

from sqlalchemy.orm import Session

from models import User, Notification
from utils.job_queue import DeliveryJob
from utils.mailer import MailMessage

logger = logging.getLogger(__name__)


class NotificationSink:
    """通知落地：写入数据库通知，并按需发送邮件"""

    def __init__(self, db: Session, mailer):
        self.db = db
        self.mailer = mailer

    def deliver(self, job: DeliveryJob) -> Optional[Notification]:
        recipient = self.db.get(User, job.recipient_id)
        if recipient is None:
            logger.warning(f"通知接收人不存在，跳过: {job.recipient_id}")
            return None

        notification = Notification(
            user_id=recipient.id,
            type=job.notification_type,
            data=job.payload
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)

        if job.mail_subject:
            self.mailer.send(MailMessage(to=recipient.email, subject=job.mail_subject, body=job.mail_body or ""))
        return notification


class JobWorker:
    """队列消费者"""

    def __init__(self, queue, session_factory: Callable[[], Session], mailer, poll_interval: float = 1.0):
        self.queue = queue
        self.session_factory = session_factory
        self.mailer = mailer
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.processed = 0
        self.failed = 0

    def process(self, job: DeliveryJob) -> bool:
        """处理单个任务，返回是否成功"""
        db = self.session_factory()
        try:
            NotificationSink(db, self.mailer).deliver(job)
            self.processed += 1
            return True
        except Exception as e:
            db.rollback()
            self.failed += 1
            logger.error(f"通知投递失败 recipient={job.recipient_id} type={job.notification_type}: {e}", exc_info=True)
            return False
        finally:
            db.close()

    def drain(self) -> int:
        """处理队列中当前全部任务，返回处理数量"""
        count = 0
        while True:
            job = self.queue.dequeue()
            if job is None:
                return count
            self.process(job)
            count += 1

    def start(self) -> None:
        """启动后台消费线程"""
        if self._thread and self._thread.is_alive():
            return

        def _run():
            while not self._stop.is_set():
                job = self.queue.dequeue(timeout=self.poll_interval)
                if job is not None:
                    self.process(job)

        self._stop.clear()
        self._thread = threading.Thread(target=_run, name="notification-worker", daemon=True)
        self._thread.start()
        logger.info("通知投递线程已启动")

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("通知投递线程已停止")
