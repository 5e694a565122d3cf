"""
日志初始化

根据LoggingConfig配置根日志器: 控制台输出和按大小轮转的文件输出.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

from .config_service import LoggingConfig, get_config_service

_HANDLER_MARK = "_neon_noir_handler"


def configure_logging(config: Optional[LoggingConfig] = None, profile: str = "default") -> logging.Logger:
    """
    配置根日志器

    重复调用时先移除上次添加的处理器，不会重复输出.

    Args:
        config: 日志配置，为None时从配置服务读取profile对应的配置
        profile: 日志配置档名

    Returns:
        logging.Logger: 包的顶层日志器
    """
    if config is None:
        config = get_config_service().get_logging_config(profile).data

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)
            handler.close()

    level = getattr(logging, config.log_level.upper(), logging.INFO)
    root.setLevel(level)
    formatter = logging.Formatter(config.log_format)

    if config.enable_console_logging:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        setattr(console, _HANDLER_MARK, True)
        root.addHandler(console)

    if config.enable_file_logging:
        log_path = Path(config.log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=config.max_log_file_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
            encoding='utf-8',
        )
        file_handler.setFormatter(formatter)
        setattr(file_handler, _HANDLER_MARK, True)
        root.addHandler(file_handler)

    return logging.getLogger("neon_noir")
