"""邮件发送模块

提供 SMTP 邮件发送和仅记录日志的发送器，按 MAIL_DRIVER 选择
"""
import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Protocol

from config.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class MailMessage:
    to: str
    subject: str
    body: str


class Mailer(Protocol):
    def send(self, message: MailMessage) -> None: ...


class LogMailer:
    """只写日志、不真正发送的邮件发送器"""

    def __init__(self):
        self.sent: List[MailMessage] = []

    def send(self, message: MailMessage) -> None:
        self.sent.append(message)
        logger.info(f"邮件(日志驱动) -> {message.to}: {message.subject}")


class SmtpMailer:
    """SMTP邮件发送器"""

    def __init__(self, host: str = None, port: int = None, username: str = None,
                 password: str = None, sender: str = None, use_tls: bool = None):
        self.host = host or settings.MAIL_HOST
        self.port = port or settings.MAIL_PORT
        self.username = username if username is not None else settings.MAIL_USERNAME
        self.password = password if password is not None else settings.MAIL_PASSWORD
        self.sender = sender or settings.MAIL_FROM
        self.use_tls = settings.MAIL_USE_TLS if use_tls is None else use_tls

    def send(self, message: MailMessage) -> None:
        mime = MIMEMultipart()
        mime['From'] = self.sender
        mime['To'] = message.to
        mime['Subject'] = message.subject
        mime.attach(MIMEText(message.body, 'plain', 'utf-8'))

        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password or "")
            server.sendmail(self.sender, [message.to], mime.as_string())
        logger.info(f"邮件已发送 -> {message.to}: {message.subject}")


def create_mailer() -> Mailer:
    if settings.MAIL_DRIVER == "smtp":
        return SmtpMailer()
    return LogMailer()
