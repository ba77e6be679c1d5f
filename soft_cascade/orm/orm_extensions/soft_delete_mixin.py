"""软删除Mixin类生成器"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional, Type, TYPE_CHECKING

from sqlalchemy import Column, DateTime
from sqlalchemy.sql.type_api import TypeEngine

from .cascade_metadata import DEFAULT_DELETED_FIELD_NAME


def generate_soft_delete_mixin_class(
    deleted_field_name: str = DEFAULT_DELETED_FIELD_NAME,
    class_name: str = "_SoftDeleteMixin",
    deleted_field_type: Optional[TypeEngine] = DateTime(timezone=True),
    generate_delete_method: bool = True,
    delete_method_name: str = "soft_delete",
    delete_method_default_value: Callable[[], Any] = lambda: datetime.now(),
    generate_undelete_method: bool = True,
    undelete_method_name: str = "undelete",
) -> Type:
    """生成软删除Mixin类

    功能：
    - 添加软删除字段（如deleted_at），字段名非默认时登记到 __soft_delete_field__
    - 提供 soft_delete() 和 undelete() 方法
    - 提供 is_deleted 属性

    soft_delete() 只设置字段，flush 时由软删除钩子识别并执行级联；
    也可以直接 session.delete(obj)，效果相同。

    Args:
        deleted_field_name: 软删除字段名，默认"deleted_at"
        class_name: 生成的类名
        deleted_field_type: 软删除字段类型，为 None 时不生成字段（使用模型自己定义的字段）
        generate_delete_method: 是否生成delete方法
        delete_method_name: delete方法名
        delete_method_default_value: 软删除时的默认值
        generate_undelete_method: 是否生成undelete方法
        undelete_method_name: undelete方法名

    Returns:
        动态生成的Mixin类

    使用示例:
        RemovedAtMixin = generate_soft_delete_mixin_class(deleted_field_name="removed_at")

        class Document(Base, RemovedAtMixin):
            __tablename__ = "documents"
            id = mapped_column(Integer, primary_key=True)

        doc.soft_delete()
        session.commit()
    """
    class_attributes = {}

    if deleted_field_type is not None:
        class_attributes[deleted_field_name] = Column(deleted_field_name, deleted_field_type, nullable=True)

    if deleted_field_name != DEFAULT_DELETED_FIELD_NAME:
        class_attributes["__soft_delete_field__"] = deleted_field_name

    if generate_delete_method:
        def delete_method(_self, v: Optional[Any] = None):
            """软删除当前对象"""
            setattr(_self, deleted_field_name, v or delete_method_default_value())

        class_attributes[delete_method_name] = delete_method

    if generate_undelete_method:
        def undelete_method(_self):
            """恢复软删除的对象"""
            setattr(_self, deleted_field_name, None)

        class_attributes[undelete_method_name] = undelete_method

    def is_deleted(_self) -> bool:
        """检查对象是否已被软删除"""
        return getattr(_self, deleted_field_name) is not None

    class_attributes["is_deleted"] = property(is_deleted)

    return type(class_name, tuple(), class_attributes)


_SimpleSoftDeleteMixinBase = generate_soft_delete_mixin_class()


class SimpleSoftDeleteMixin(_SimpleSoftDeleteMixinBase):
    """简单的软删除Mixin

    预配置的软删除Mixin，字段为 deleted_at。

    提供方法：
    - soft_delete(v=None): 软删除对象，设置 deleted_at 为当前时间或指定值
    - undelete(): 恢复软删除的对象（不恢复级联删除的关联对象）
    - is_deleted: 属性，检查对象是否已被软删除

    使用示例:
        class User(Base, SimpleSoftDeleteMixin):
            __tablename__ = 'users'
            id = mapped_column(Integer, primary_key=True)
            name = mapped_column(String(50))

        user.soft_delete()
        session.commit()
    """
    if TYPE_CHECKING:
        deleted_at: Optional[datetime]

        def soft_delete(self, v: Optional[datetime] = None) -> None:
            ...

        def undelete(self) -> None:
            ...

        @property
        def is_deleted(self) -> bool:
            ...
