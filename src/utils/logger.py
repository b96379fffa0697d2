"""
日志配置工具

配置logging模块，支持控制台输出和可选的文件输出，所有日志消息使用中文

引擎内部只通过 get_logger() 获取日志记录器，不会自动配置处理器。
CLUSTERING_LOG_LEVEL / CLUSTERING_LOG_FILE 只有在调用方（上层工具的入口）
调用 setup_logger() 时才生效。
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from src.utils.config import get_config

LOGGER_NAME = "clustering_engine"


def setup_logger(log_level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    设置并配置日志记录器

    Args:
        log_level: 日志级别（DEBUG/INFO/WARNING/ERROR），为None时使用配置
        log_file: 日志文件路径，为None时使用配置；配置也为空时只输出到控制台

    Returns:
        配置好的日志记录器
    """
    if log_level is None or log_file is None:
        config = get_config()
        log_level = log_level or config.log_level
        log_file = log_file or config.log_file

    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"无效的日志级别: {log_level}")

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # 清除已有的处理器
    logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if log_file:
        # 确保日志目录存在
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # 文件处理器（带轮转）
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # 控制台处理器
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def get_logger() -> logging.Logger:
    """
    获取默认日志记录器

    Returns:
        默认日志记录器
    """
    return logging.getLogger(LOGGER_NAME)
