"""按配置启用软删除"""

from typing import Optional, Union

from soft_cascade.config import AppSettings, SoftDeleteSettings, load_yaml_config
from soft_cascade.log import get_logger, setup_package_logger

from .cascade_soft_delete import configure_cascade_soft_delete, disable_cascade_soft_delete
from .soft_delete_hook import activate_soft_delete_hook, deactivate_soft_delete_hook
from .soft_delete_ignored_table import IgnoredTable

logger = get_logger("soft_cascade.orm.setup")


def setup_soft_delete(
    settings: Union[AppSettings, SoftDeleteSettings, None] = None,
    config_path: Optional[str] = None,
) -> SoftDeleteSettings:
    """按配置激活软删除钩子和级联软删除

    Args:
        settings: AppSettings 或 SoftDeleteSettings，为空时使用默认配置
        config_path: YAML 配置文件路径，读取其中的 soft_delete 和 logging 段，
            提供时忽略 settings

    Returns:
        实际生效的软删除配置

    使用示例:
        from soft_cascade import setup_soft_delete

        setup_soft_delete(config_path="config/settings.yaml")
    """
    if config_path is not None:
        settings = load_yaml_config(config_path, AppSettings)

    if isinstance(settings, AppSettings):
        setup_package_logger(config=settings.logging)
        soft_delete_settings = settings.soft_delete
    else:
        soft_delete_settings = settings or SoftDeleteSettings()

    if not soft_delete_settings.enabled:
        deactivate_soft_delete_hook()
        disable_cascade_soft_delete()
        logger.info("软删除已禁用")
        return soft_delete_settings

    activate_soft_delete_hook(
        deleted_field_name=soft_delete_settings.deleted_field_name,
        disable_soft_delete_option_name=soft_delete_settings.include_deleted_option,
        ignored_tables=[IgnoredTable.parse(name) for name in soft_delete_settings.ignored_tables],
        hard_delete=soft_delete_settings.hard_delete,
    )

    if soft_delete_settings.cascade_enabled:
        configure_cascade_soft_delete(soft_delete_settings.deleted_field_name)
    else:
        disable_cascade_soft_delete()

    logger.info(
        "软删除已启用: field=%s, cascade=%s",
        soft_delete_settings.deleted_field_name,
        soft_delete_settings.cascade_enabled,
    )
    return soft_delete_settings
