# fleetmaint/logger.py
import logging
from logging.handlers import RotatingFileHandler
import os

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_FILE = os.getenv("LOG_FILE", "fleet_maint.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"

os.makedirs(LOG_DIR, exist_ok=True)


def _handlers() -> list[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)

    # 单文件 10MB，保留 5 份
    rotating = RotatingFileHandler(
        os.path.join(LOG_DIR, LOG_FILE),
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    rotating.setFormatter(formatter)
    return [console, rotating]


def get_logger(name: str) -> logging.Logger:
    '''
    模块级 logger：控制台 + 滚动文件。
    级别由 LOG_LEVEL 控制，目录 / 文件名由 LOG_DIR / LOG_FILE 控制。
    '''
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    for handler in _handlers():
        logger.addHandler(handler)
    # 已有自己的 handler，不再向 root 冒泡，避免重复输出
    logger.propagate = False
    return logger
