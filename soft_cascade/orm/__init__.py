"""ORM模块

基于 SQLAlchemy 的软删除与级联软删除扩展：
- fields: 在 relationship 上声明 on_soft_delete 级联行为
- 软删除钩子: session.delete() 转为软删除，查询自动过滤已删除记录
- 级联软删除: SET_NULL / CASCADE / DETACH
- exceptions: 异常层次结构

使用示例:
    from soft_cascade.orm import (
        activate_soft_delete_hook,
        configure_cascade_soft_delete,
        SimpleSoftDeleteMixin,
        fields,
    )

    # 激活软删除钩子和级联软删除
    activate_soft_delete_hook()
    configure_cascade_soft_delete()

    class Order(Base, SimpleSoftDeleteMixin):
        __tablename__ = "orders"
        id = mapped_column(Integer, primary_key=True)

    class OrderItem(Base, SimpleSoftDeleteMixin):
        __tablename__ = "order_items"
        id = mapped_column(Integer, primary_key=True)
        order_id = mapped_column(ForeignKey("orders.id"))
        order = fields.ManyToOne(Order, on_soft_delete=fields.CASCADE)

    session.delete(order)
    session.commit()   # 订单与订单项都被软删除
"""

# 关系字段
from . import fields
from .fields import (
    ManyToOne,
    OneToOne,
    ManyToMany,
    OnSoftDelete,
    SET_NULL,
    CASCADE,
    DETACH,
    SOFT_DELETE_CASCADE_KEY,
    on_soft_delete,
)

# 异常
from .exceptions import (
    SoftDeleteError,
    CascadeConfigurationError,
    UnknownCascadeTypeError,
    UnsupportedCascadeError,
)

# 软删除扩展
from .orm_extensions import (
    IgnoredTable,
    SoftDeleteRewriter,
    SoftDeleteEventType,
    SoftDeleteContext,
    SoftDeleteEventArgs,
    SoftDeleteEvents,
    soft_delete_events,
    Cardinality,
    RelationshipDescriptor,
    CascadeMetadataScanner,
    RelationshipResolver,
    get_soft_delete_field,
    is_soft_deletable,
    activate_soft_delete_hook,
    deactivate_soft_delete_hook,
    is_soft_delete_active,
    generate_soft_delete_mixin_class,
    SimpleSoftDeleteMixin,
    # 级联软删除
    CascadeSoftDeleteManager,
    configure_cascade_soft_delete,
    get_cascade_manager,
    disable_cascade_soft_delete,
    setup_soft_delete,
)

__all__ = [
    # 关系字段
    "fields",
    "ManyToOne",
    "OneToOne",
    "ManyToMany",
    "OnSoftDelete",
    "SET_NULL",
    "CASCADE",
    "DETACH",
    "SOFT_DELETE_CASCADE_KEY",
    "on_soft_delete",
    # 异常
    "SoftDeleteError",
    "CascadeConfigurationError",
    "UnknownCascadeTypeError",
    "UnsupportedCascadeError",
    # 软删除扩展
    "IgnoredTable",
    "SoftDeleteRewriter",
    "SoftDeleteEventType",
    "SoftDeleteContext",
    "SoftDeleteEventArgs",
    "SoftDeleteEvents",
    "soft_delete_events",
    "Cardinality",
    "RelationshipDescriptor",
    "CascadeMetadataScanner",
    "RelationshipResolver",
    "get_soft_delete_field",
    "is_soft_deletable",
    "activate_soft_delete_hook",
    "deactivate_soft_delete_hook",
    "is_soft_delete_active",
    "generate_soft_delete_mixin_class",
    "SimpleSoftDeleteMixin",
    "CascadeSoftDeleteManager",
    "configure_cascade_soft_delete",
    "get_cascade_manager",
    "disable_cascade_soft_delete",
    "setup_soft_delete",
]
