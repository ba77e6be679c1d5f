"""ORM扩展模块 - 软删除功能

提供完整的软删除解决方案：
- session.delete() 自动转为软删除
- 自动查询过滤（自动排除已删除记录）
- 软删除/恢复方法
- 可配置的忽略表
- 支持execution_options禁用过滤
- 软删除事件与级联软删除

使用示例:
    from soft_cascade.orm import fields, SimpleSoftDeleteMixin

    class Department(Base, SimpleSoftDeleteMixin):
        __tablename__ = "departments"
        id = mapped_column(Integer, primary_key=True)

    class Employee(Base, SimpleSoftDeleteMixin):
        __tablename__ = "employees"
        id = mapped_column(Integer, primary_key=True)
        department_id = mapped_column(ForeignKey("departments.id"), nullable=True)
        # 部门软删除时，员工的 department_id 设为空
        department = fields.ManyToOne(Department, on_soft_delete=fields.SET_NULL)
"""

from .soft_delete_ignored_table import IgnoredTable
from .soft_delete_rewriter import SoftDeleteRewriter
from .soft_delete_events import (
    SoftDeleteEventType,
    SoftDeleteContext,
    SoftDeleteEventArgs,
    SoftDeleteEvents,
    soft_delete_events,
)
from .cascade_metadata import (
    DEFAULT_DELETED_FIELD_NAME,
    Cardinality,
    RelationshipDescriptor,
    CascadeMetadataScanner,
    RelationshipResolver,
    get_soft_delete_field,
    is_soft_deletable,
    get_soft_delete_column,
)
from .soft_delete_hook import (
    activate_soft_delete_hook,
    deactivate_soft_delete_hook,
    is_soft_delete_active,
    soft_delete_instance,
)
from .soft_delete_mixin import (
    generate_soft_delete_mixin_class,
    SimpleSoftDeleteMixin,
)

# 级联软删除
from .cascade_soft_delete import (
    CascadeSoftDeleteManager,
    configure_cascade_soft_delete,
    get_cascade_manager,
    disable_cascade_soft_delete,
)
from .soft_delete_setup import setup_soft_delete

__all__ = [
    # 忽略表配置
    "IgnoredTable",
    # 查询重写器
    "SoftDeleteRewriter",
    # 软删除事件
    "SoftDeleteEventType",
    "SoftDeleteContext",
    "SoftDeleteEventArgs",
    "SoftDeleteEvents",
    "soft_delete_events",
    # 级联元数据
    "DEFAULT_DELETED_FIELD_NAME",
    "Cardinality",
    "RelationshipDescriptor",
    "CascadeMetadataScanner",
    "RelationshipResolver",
    "get_soft_delete_field",
    "is_soft_deletable",
    "get_soft_delete_column",
    # 钩子函数
    "activate_soft_delete_hook",
    "deactivate_soft_delete_hook",
    "is_soft_delete_active",
    "soft_delete_instance",
    # Mixin类
    "generate_soft_delete_mixin_class",
    "SimpleSoftDeleteMixin",
    # 级联软删除
    "CascadeSoftDeleteManager",
    "configure_cascade_soft_delete",
    "get_cascade_manager",
    "disable_cascade_soft_delete",
    "setup_soft_delete",
]
