"""日志模块

使用示例:
    from soft_cascade.log import setup_logger, get_logger

    # 查看级联软删除的每一步处理
    setup_logger("soft_cascade", level="DEBUG")

    logger = get_logger()
"""

from .logger import (
    setup_logger,
    setup_package_logger,
    create_formatter,
    MicrosecondFormatter,
    DEFAULT_LOG_FORMAT,
    ROOT_LOGGER_NAME,
    logger,
    get_logger,
)

__all__ = [
    "setup_logger",
    "setup_package_logger",
    "create_formatter",
    "MicrosecondFormatter",
    "DEFAULT_LOG_FORMAT",
    "ROOT_LOGGER_NAME",
    "logger",
    "get_logger",
]
