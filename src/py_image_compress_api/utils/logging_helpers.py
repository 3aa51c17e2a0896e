"""日志工具模块。

提供统一的日志记录功能，标准化日志格式和配置。
"""

import inspect
import logging


TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = (
    '{"time": "%(asctime)s", "logger": "%(name)s", '
    '"level": "%(levelname)s", "message": "%(message)s"}'
)


def get_logger(name: str | None = None) -> logging.Logger:
    """获取标准化配置的日志记录器。

    Args:
        name: 日志记录器名称，默认使用调用模块的 __name__

    Returns:
        logging.Logger: 配置好的日志记录器
    """
    if name is None:
        # 获取调用者的模块名
        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")
        else:
            name = "unknown"

    return logging.getLogger(name)


def configure_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """配置根日志记录器

    Args:
        log_level: 日志级别 (DEBUG, INFO, WARNING, ERROR)
        log_format: 格式类型 ('text' 或 'json')
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    fmt = JSON_FORMAT if log_format == "json" else TEXT_FORMAT

    logging.basicConfig(
        level=level,
        format=fmt,
        handlers=[logging.StreamHandler()],
        force=True,
    )

    get_logger(__name__).debug(f"日志已配置: level={log_level}, format={log_format}")
