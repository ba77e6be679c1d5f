"""
配置模块
提供软删除扩展的默认配置，业务项目可以继承并覆盖
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings


class SoftDeleteSettings(BaseSettings):
    """软删除配置

    使用示例:
        from soft_cascade.config import SoftDeleteSettings

        soft_delete_config = SoftDeleteSettings(
            deleted_field_name="deleted_at",
            ignored_tables=["audit_log"],
            hard_delete=True,   # 对已软删除的记录再次删除时物理删除
        )
    """
    enabled: bool = Field(default=True, description="是否启用软删除钩子")
    deleted_field_name: str = Field(default="deleted_at", description="软删除字段名")
    include_deleted_option: str = Field(
        default="include_deleted",
        description="禁用软删除过滤的 execution_options 名称",
    )
    ignored_tables: List[str] = Field(
        default_factory=list,
        description="不做查询过滤的表名，支持 schema.table 形式",
    )
    hard_delete: bool = Field(default=False, description="对已软删除的记录再次删除时是否物理删除")
    cascade_enabled: bool = Field(default=True, description="是否启用级联软删除")

    class Config:
        env_prefix = "SOFT_CASCADE_"


class LoggingSettings(BaseSettings):
    """日志配置

    使用示例:
        from soft_cascade.config import LoggingSettings

        log_config = LoggingSettings(level="DEBUG", file_path="logs/soft_cascade.log")
    """
    level: str = Field(default="INFO", description="日志级别")
    file_path: str = Field(default="", description="日志文件路径，为空时不写文件")
    enable_console: bool = Field(default=True, description="是否启用控制台输出")
    propagate: bool = Field(default=True, description="是否传播到根日志器")

    class Config:
        env_prefix = "SOFT_CASCADE_LOG_"


class AppSettings(BaseSettings):
    """应用基础配置

    配置优先级（从高到低）:
        YAML 配置段 > 环境变量 > 代码中的默认值
        （YAML 未提供某个配置段时，该段从环境变量读取）

    内置子配置及环境变量前缀:
        - soft_delete: SoftDeleteSettings (SOFT_CASCADE_)
        - logging:     LoggingSettings    (SOFT_CASCADE_LOG_)

    YAML 配置示例 (config/settings.yaml):
        soft_delete:
          deleted_field_name: "deleted_at"
          ignored_tables: ["audit_log"]
        logging:
          level: "DEBUG"
    """
    soft_delete: SoftDeleteSettings = Field(default_factory=SoftDeleteSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
