"""日志配置模块

控制台 + 轮转文件的根日志配置，各模块通过 logging.getLogger(__name__) 获取日志记录器
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from config.settings import settings

LOG_FORMAT = '[%(asctime)s] %(levelname)-8s %(name)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """带颜色的控制台日志格式化器"""

    COLORS = {
        'DEBUG': '\033[36m',      # 青色
        'INFO': '\033[32m',       # 绿色
        'WARNING': '\033[33m',    # 黄色
        'ERROR': '\033[31m',      # 红色
        'CRITICAL': '\033[35m',   # 紫色
        'RESET': '\033[0m'
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        return f"{color}{super().format(record)}{self.COLORS['RESET']}"


class SensitiveDataFilter(logging.Filter):
    """敏感数据过滤器，屏蔽密码和令牌"""

    SENSITIVE_FIELDS = ('password', 'access_token', 'authorization')

    def filter(self, record: logging.LogRecord) -> bool:
        message = str(record.msg)
        for field in self.SENSITIVE_FIELDS:
            if f'"{field}"' in message:
                record.msg = message.replace(f'"{field}"', f'"{field}(masked)"')
        return True


_configured = False


def setup_logging(log_level: Optional[str] = None, log_to_file: Optional[bool] = None) -> None:
    """设置根日志配置（重复调用无副作用）"""
    global _configured
    if _configured:
        return

    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    if log_to_file is None:
        log_to_file = not settings.DEBUG

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 控制台处理器
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    if sys.stdout.isatty():
        console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    else:
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    console_handler.addFilter(SensitiveDataFilter())
    root_logger.addHandler(console_handler)

    # 文件处理器
    if log_to_file:
        log_path = Path(settings.LOG_DIR) / settings.LOG_FILE
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=settings.LOG_MAX_SIZE,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        file_handler.addFilter(SensitiveDataFilter())
        root_logger.addHandler(file_handler)

    # 第三方库日志级别
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DATABASE_ECHO else logging.WARNING
    )
    logging.getLogger("multipart").setLevel(logging.WARNING)

    _configured = True
