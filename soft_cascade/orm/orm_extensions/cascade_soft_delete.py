"""级联软删除模块

实体被软删除时，按关系上的 on_soft_delete 配置处理引用它的对象。

级联类型（使用 fields.OnSoftDelete）:
- SET_NULL: 引用方的外键设为空，引用方保留（如：部门→员工）
- CASCADE: 引用方也被软删除，引用方不支持软删除时物理删除（如：订单→订单项）
- DETACH: 解除多对多关联，两端对象都保留（如：用户→角色）

级联配置声明在持有外键的一侧:
    from soft_cascade.orm import fields

    class OrderItem(Base, SimpleSoftDeleteMixin):
        order_id = mapped_column(ForeignKey("orders.id"))
        order = fields.ManyToOne(Order, on_soft_delete=fields.CASCADE)

    class Employee(Base, SimpleSoftDeleteMixin):
        department_id = mapped_column(ForeignKey("departments.id"), nullable=True)
        department = fields.ManyToOne(Department, on_soft_delete=fields.SET_NULL)

    class User(Base, SimpleSoftDeleteMixin):
        roles = fields.ManyToMany(Role, secondary=user_roles)

启用:
    from soft_cascade.orm import activate_soft_delete_hook, configure_cascade_soft_delete

    activate_soft_delete_hook()
    configure_cascade_soft_delete()

    session.delete(order)
    session.commit()   # 订单和订单项都被软删除
"""

from __future__ import annotations

from typing import Any, List, Optional

from sqlalchemy.orm import Session

from soft_cascade.log import get_logger
from soft_cascade.orm.exceptions import SoftDeleteError
from soft_cascade.orm.fields import OnSoftDelete

from .cascade_metadata import (
    CascadeMetadataScanner,
    RelationshipDescriptor,
    RelationshipResolver,
    get_soft_delete_field,
    is_soft_deletable,
)
from .soft_delete_events import (
    SoftDeleteContext,
    SoftDeleteEventArgs,
    SoftDeleteEventType,
    soft_delete_events,
)
from .soft_delete_hook import (
    get_deleted_field_name,
    get_include_deleted_option,
    new_deleted_value,
)

logger = get_logger("soft_cascade.orm.cascade")


class CascadeSoftDeleteManager:
    """级联软删除管理器

    作为 PRE_SOFT_DELETE 监听器运行：在被删除实体的软删除字段设置之前，
    处理所有引用它的对象。级联到的子对象直接递归处理，不再经过事件分发。
    """

    def __init__(self, deleted_field_name: Optional[str] = None):
        self.deleted_field_name = deleted_field_name or get_deleted_field_name()
        self.scanner = CascadeMetadataScanner(self.deleted_field_name)
        self.resolver = RelationshipResolver(get_include_deleted_option())

    def pre_soft_delete(self, args: SoftDeleteEventArgs) -> None:
        """处理被软删除实体的所有关联对象

        Raises:
            UnknownCascadeTypeError: 关系上配置了未知的级联类型
            UnsupportedCascadeError: 关系基数不支持该级联类型
        """
        entity = args.entity
        session = args.session

        # 先完成扫描，配置错误在修改任何对象之前抛出
        descriptors = self.scanner.descriptors_for(entity)

        for descriptor in descriptors:
            if descriptor.is_many_to_many:
                self._detach(descriptor, entity, session)
                continue

            if not isinstance(entity, descriptor.target_class):
                continue

            for dependent in self.resolver.find_dependents(session, descriptor, entity):
                if descriptor.cascade_type is OnSoftDelete.SET_NULL:
                    logger.debug("%s 置空: %r", descriptor, dependent)
                    setattr(dependent, descriptor.field_name, None)
                elif is_soft_deletable(dependent, self.deleted_field_name):
                    self._soft_delete_cascade(dependent, session, args.context)
                else:
                    logger.debug("%s 不支持软删除，物理删除: %r", descriptor, dependent)
                    session.delete(dependent)

    def _soft_delete_cascade(self, instance: Any, session: Session, context: SoftDeleteContext) -> None:
        field_name = get_soft_delete_field(instance, self.deleted_field_name)

        # 已软删除或本次已处理的对象不再处理（避免循环引用）
        if context.is_processed(instance) or getattr(instance, field_name, None) is not None:
            return
        context.mark_processed(instance)

        self.pre_soft_delete(SoftDeleteEventArgs(instance, session, field_name, context))

        logger.debug("级联软删除: %r", instance)
        setattr(instance, field_name, context.deleted_value)
        context.soft_deleted.append(instance)

    def _detach(self, descriptor: RelationshipDescriptor, entity: Any, session: Session) -> None:
        """解除多对多关联，关联的对象本身不删除"""
        if isinstance(entity, descriptor.source_class):
            collection = getattr(entity, descriptor.field_name)
            if collection:
                logger.debug("%s 解除关联: %r", descriptor, entity)
                collection.clear()

        if isinstance(entity, descriptor.target_class):
            for owner in self.resolver.find_association_owners(session, descriptor, entity):
                collection = getattr(owner, descriptor.field_name)
                if entity in collection:
                    logger.debug("%s 解除关联: %r -> %r", descriptor, owner, entity)
                    collection.remove(entity)

    def soft_delete_with_cascade(
        self,
        instance: Any,
        session: Session,
        deleted_value: Any = None,
    ) -> List[Any]:
        """执行带级联的软删除（不需要等到 flush）

        Args:
            instance: 要删除的实例
            session: 数据库会话
            deleted_value: 删除时间值，默认使用当前时间

        Returns:
            被软删除的所有对象列表（包括 instance 本身）

        Raises:
            SoftDeleteError: instance 不支持软删除
        """
        if not is_soft_deletable(instance, self.deleted_field_name):
            raise SoftDeleteError(f"{type(instance).__name__} 不支持软删除")

        context = SoftDeleteContext(
            deleted_value=deleted_value if deleted_value is not None else new_deleted_value()
        )
        with session.no_autoflush:
            self._soft_delete_cascade(instance, session, context)
        return context.soft_deleted


# 全局管理器实例
_cascade_manager: Optional[CascadeSoftDeleteManager] = None


def configure_cascade_soft_delete(deleted_field_name: Optional[str] = None) -> CascadeSoftDeleteManager:
    """配置级联软删除功能

    在应用启动时、activate_soft_delete_hook 之后调用。
    创建全局管理器并注册为 PRE_SOFT_DELETE 监听器，重复调用会替换之前的管理器。

    Args:
        deleted_field_name: 软删除字段名，默认与软删除钩子一致

    使用示例:
        from soft_cascade.orm import configure_cascade_soft_delete

        manager = configure_cascade_soft_delete()
        manager.scanner.validate(Base.registry)   # 启动时检查级联配置
    """
    global _cascade_manager
    disable_cascade_soft_delete()
    _cascade_manager = CascadeSoftDeleteManager(deleted_field_name)
    soft_delete_events.listen(SoftDeleteEventType.PRE_SOFT_DELETE, _cascade_manager.pre_soft_delete)
    return _cascade_manager


def get_cascade_manager() -> Optional[CascadeSoftDeleteManager]:
    """获取级联软删除管理器"""
    return _cascade_manager


def disable_cascade_soft_delete() -> None:
    """停用级联软删除"""
    global _cascade_manager
    if _cascade_manager is not None:
        soft_delete_events.remove(SoftDeleteEventType.PRE_SOFT_DELETE, _cascade_manager.pre_soft_delete)
        _cascade_manager = None


__all__ = [
    "CascadeSoftDeleteManager",
    "configure_cascade_soft_delete",
    "get_cascade_manager",
    "disable_cascade_soft_delete",
]
