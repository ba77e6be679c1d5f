"""软删除异常类

定义软删除与级联软删除相关的异常层次结构
"""

from typing import Any, Optional


class SoftDeleteError(Exception):
    """软删除错误基类

    所有软删除相关的异常都继承自此类
    """
    pass


class CascadeConfigurationError(SoftDeleteError):
    """级联配置错误基类

    relationship 上的级联配置不合法时抛出，在扫描元数据阶段即失败，
    此时尚未修改任何关联对象
    """
    pass


class UnknownCascadeTypeError(CascadeConfigurationError):
    """未知的级联类型

    当 relationship 的 info 中配置了无法识别的级联类型时抛出
    """

    def __init__(self, cascade_type: Any, field_name: Optional[str] = None):
        self.cascade_type = cascade_type
        self.field_name = field_name
        location = f"（字段 {field_name}）" if field_name else ""
        super().__init__(f"未知的级联类型 '{cascade_type}'{location}")


class UnsupportedCascadeError(CascadeConfigurationError):
    """不支持的级联类型

    例如多对多关系上配置 SET NULL，或多对一关系上配置 DETACH
    """

    def __init__(self, cascade_type: Any, cardinality: Any, field_name: str):
        self.cascade_type = cascade_type
        self.cardinality = cardinality
        self.field_name = field_name
        super().__init__(
            f"{field_name}: {getattr(cardinality, 'value', cardinality)} 关系不支持 "
            f"{getattr(cascade_type, 'value', cascade_type)}"
        )

    def __repr__(self) -> str:
        return (
            f"UnsupportedCascadeError(cascade_type={self.cascade_type!r}, "
            f"cardinality={self.cardinality!r}, field_name={self.field_name!r})"
        )
