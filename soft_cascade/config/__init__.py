"""配置模块

快速开始:
    from soft_cascade.config import AppSettings, load_yaml_config

    settings = load_yaml_config("config/settings.yaml", AppSettings)

配置优先级: YAML 文件 > 环境变量 > 默认值（YAML 中出现的配置段整体生效）
"""

from .settings import (
    AppSettings,
    SoftDeleteSettings,
    LoggingSettings,
)

from .loader import (
    ConfigLoader,
    load_yaml_config,
)

__all__ = [
    "AppSettings",
    "SoftDeleteSettings",
    "LoggingSettings",
    "ConfigLoader",
    "load_yaml_config",
]
