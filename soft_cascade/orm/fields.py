"""关系字段定义

在 SQLAlchemy relationship 上声明软删除级联行为。

级联配置保存在 relationship 的 info 字典中（键为 SOFT_DELETE_CASCADE_KEY），
声明在"持有外键的一侧"：表示"我指向的对象被软删除时，如何处理我"。

使用示例:
    from soft_cascade.orm import fields

    class Employee(Base, SimpleSoftDeleteMixin):
        department_id = mapped_column(ForeignKey("departments.id"), nullable=True)
        # 部门被软删除时，员工的 department_id 设为空
        department = fields.ManyToOne("Department", on_soft_delete=fields.SET_NULL)

    class OrderItem(Base, SimpleSoftDeleteMixin):
        order_id = mapped_column(ForeignKey("orders.id"))
        # 订单被软删除时，订单项也被软删除
        order = fields.ManyToOne("Order", on_soft_delete=fields.CASCADE)

    class User(Base, SimpleSoftDeleteMixin):
        # 任意一端被软删除时，只解除关联
        roles = fields.ManyToMany("Role", secondary=user_roles)

直接使用 relationship:
    from soft_cascade.orm.fields import on_soft_delete

    order = relationship("Order", info=on_soft_delete("CASCADE"))

on_soft_delete 常量:
    - fields.SET_NULL: 设置外键为空（不支持多对多）
    - fields.CASCADE: 级联软删除（目标不支持软删除时物理删除）
    - fields.DETACH: 解除多对多关联（多对多的默认行为）
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Union

from sqlalchemy.orm import relationship, backref as sa_backref

from .exceptions import UnknownCascadeTypeError


# ==================== on_soft_delete 常量 ====================

class OnSoftDelete(str, Enum):
    """软删除级联行为枚举

    定义被引用对象软删除时，引用方的处理方式
    """

    # 设置为空：引用方的外键设为 NULL，引用方保留
    # 适用场景：部门-员工，删除部门时员工的 department_id 设为空
    SET_NULL = "SET NULL"

    # 级联删除：引用方也被软删除（不支持软删除的引用方会被物理删除）
    # 适用场景：订单-订单项
    CASCADE = "CASCADE"

    # 解除关联：仅删除多对多中间表记录
    # 适用场景：用户-角色
    DETACH = "DETACH"


SET_NULL = OnSoftDelete.SET_NULL
CASCADE = OnSoftDelete.CASCADE
DETACH = OnSoftDelete.DETACH

# 软删除级联配置的 info key
SOFT_DELETE_CASCADE_KEY = "on_soft_delete"


def get_on_soft_delete_enum(value: Any, field_name: Optional[str] = None) -> OnSoftDelete:
    """统一转换为 OnSoftDelete 枚举

    字符串不区分大小写，"SET NULL" 与 "set_null" 等价。

    Raises:
        UnknownCascadeTypeError: 无法识别的级联类型
    """
    if isinstance(value, OnSoftDelete):
        return value
    if isinstance(value, str):
        normalized = " ".join(value.strip().upper().replace("_", " ").split())
        try:
            return OnSoftDelete(normalized)
        except ValueError:
            pass
    raise UnknownCascadeTypeError(value, field_name)


def on_soft_delete(cascade_type: Union[OnSoftDelete, str], **info) -> dict:
    """构造 relationship 的 info 字典

    Args:
        cascade_type: 级联类型
        **info: 其他 info 项

    Returns:
        包含级联配置的 info 字典
    """
    info[SOFT_DELETE_CASCADE_KEY] = get_on_soft_delete_enum(cascade_type)
    return info


def _merge_info(kwargs: dict, cascade_type) -> dict:
    info = dict(kwargs.pop("info", None) or {})
    if cascade_type is not None:
        info[SOFT_DELETE_CASCADE_KEY] = get_on_soft_delete_enum(cascade_type)
    return info


# ==================== 字段定义函数 ====================

def ManyToOne(
    target_model: Any,
    on_soft_delete: Optional[Union[OnSoftDelete, str]] = None,
    **kwargs
):
    """多对一关系字段

    Args:
        target_model: 关联的模型类或类名（被引用方）
        on_soft_delete: 被引用对象软删除时的行为
            - SET_NULL: 设置外键为空
            - CASCADE: 级联软删除
            - None: 不处理（默认）
        **kwargs: 传递给 relationship 的其他参数

    使用示例:
        class Employee(Base, SimpleSoftDeleteMixin):
            department_id = mapped_column(ForeignKey("departments.id"), nullable=True)
            department = fields.ManyToOne(Department, on_soft_delete=fields.SET_NULL)
    """
    info = _merge_info(kwargs, on_soft_delete)
    return relationship(target_model, info=info, **kwargs)


def OneToOne(
    target_model: Any,
    on_soft_delete: Optional[Union[OnSoftDelete, str]] = None,
    backref: Optional[str] = None,
    **kwargs
):
    """一对一关系字段

    外键列应设置 unique=True，扫描器据此识别一对一关系。

    Args:
        target_model: 关联的模型类或类名（被引用方）
        on_soft_delete: 被引用对象软删除时的行为
        backref: 在被引用方上创建的反向引用名称（单个对象）
        **kwargs: 传递给 relationship 的其他参数

    使用示例:
        class UserProfile(Base, SimpleSoftDeleteMixin):
            user_id = mapped_column(ForeignKey("users.id"), unique=True)
            user = fields.OneToOne(User, on_soft_delete=fields.CASCADE, backref="profile")
    """
    info = _merge_info(kwargs, on_soft_delete)
    if backref:
        kwargs["backref"] = sa_backref(backref, uselist=False)
    return relationship(target_model, info=info, uselist=False, **kwargs)


def ManyToMany(
    target_model: Any,
    secondary: Any,
    on_soft_delete: Optional[Union[OnSoftDelete, str]] = DETACH,
    **kwargs
):
    """多对多关系字段

    任意一端被软删除时，只删除中间表记录，两端对象都保留。

    Args:
        target_model: 关联的模型类或类名
        secondary: 中间表
        on_soft_delete: 软删除时的行为，默认 DETACH，SET_NULL 不支持
        **kwargs: 传递给 relationship 的其他参数

    使用示例:
        user_roles = Table(
            "user_roles", Base.metadata,
            Column("user_id", ForeignKey("users.id"), primary_key=True),
            Column("role_id", ForeignKey("roles.id"), primary_key=True),
        )

        class User(Base, SimpleSoftDeleteMixin):
            roles = fields.ManyToMany(Role, secondary=user_roles, backref="users")
    """
    info = _merge_info(kwargs, on_soft_delete)
    return relationship(target_model, secondary=secondary, info=info, **kwargs)


__all__ = [
    # 字段类型
    "ManyToOne",
    "OneToOne",
    "ManyToMany",
    # on_soft_delete 常量
    "OnSoftDelete",
    "SET_NULL",
    "CASCADE",
    "DETACH",
    "SOFT_DELETE_CASCADE_KEY",
    "get_on_soft_delete_enum",
    "on_soft_delete",
]
