"""软删除事件钩子"""

from datetime import datetime
from typing import Any, Callable, List, Optional

from sqlalchemy import event
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import get_history

from soft_cascade.log import get_logger

from .cascade_metadata import (
    DEFAULT_DELETED_FIELD_NAME,
    get_soft_delete_field,
    is_soft_deletable,
)
from .soft_delete_events import (
    SoftDeleteContext,
    SoftDeleteEventArgs,
    SoftDeleteEventType,
    soft_delete_events,
)
from .soft_delete_ignored_table import IgnoredTable
from .soft_delete_rewriter import SoftDeleteRewriter

logger = get_logger("soft_cascade.orm.hook")

# 全局重写器实例，为 None 表示钩子未激活
global_rewriter: Optional[SoftDeleteRewriter] = None

# 对已软删除的记录再次删除时是否物理删除
_hard_delete: bool = False

_deleted_value_factory: Callable[[], Any] = datetime.now


def activate_soft_delete_hook(
    deleted_field_name: str = DEFAULT_DELETED_FIELD_NAME,
    disable_soft_delete_option_name: str = "include_deleted",
    ignored_tables: Optional[List[IgnoredTable]] = None,
    hard_delete: bool = False,
    deleted_value_factory: Optional[Callable[[], Any]] = None,
):
    """激活软删除钩子

    注册SQLAlchemy事件监听器（只注册一次），自动：
    - 将 session.delete() 转为软删除，并触发 PRE/POST_SOFT_DELETE 事件
    - 对通过 soft_delete() 标记的对象同样触发事件（级联在此执行）
    - 重写SELECT查询，过滤已软删除的记录

    Args:
        deleted_field_name: 软删除字段名，默认"deleted_at"
        disable_soft_delete_option_name: 禁用软删除过滤的option名称，默认"include_deleted"
        ignored_tables: 查询时不过滤的表列表
        hard_delete: 删除已软删除的记录时是否物理删除
        deleted_value_factory: 生成删除时间的函数，默认 datetime.now

    使用示例:
        from soft_cascade.orm import activate_soft_delete_hook, IgnoredTable

        activate_soft_delete_hook(ignored_tables=[IgnoredTable(name="audit_log")])

        session.delete(user)
        session.commit()   # UPDATE users SET deleted_at=...

        session.query(User).all()   # 只返回未删除的用户
        session.query(User).execution_options(include_deleted=True).all()
    """
    global global_rewriter, _hard_delete, _deleted_value_factory

    global_rewriter = SoftDeleteRewriter(
        deleted_field_name=deleted_field_name,
        disable_soft_delete_option_name=disable_soft_delete_option_name,
        ignored_tables=ignored_tables or [],
    )
    _hard_delete = hard_delete
    _deleted_value_factory = deleted_value_factory or datetime.now

    if not event.contains(Session, "before_flush", _before_flush):
        event.listen(Session, "before_flush", _before_flush)
        event.listen(Session, "do_orm_execute", _do_orm_execute)
        logger.debug("软删除钩子已注册")


def deactivate_soft_delete_hook():
    """停用软删除钩子

    监听器保留注册，全局重写器为 None 时不再生效
    """
    global global_rewriter
    global_rewriter = None


def is_soft_delete_active() -> bool:
    """检查软删除钩子是否激活"""
    return global_rewriter is not None


def get_deleted_field_name() -> str:
    """当前生效的软删除字段名"""
    if global_rewriter is None:
        return DEFAULT_DELETED_FIELD_NAME
    return global_rewriter.deleted_field_name


def get_include_deleted_option() -> str:
    """当前生效的禁用过滤 option 名称"""
    if global_rewriter is None:
        return "include_deleted"
    return global_rewriter.disable_soft_delete_option_name


def new_deleted_value() -> Any:
    return _deleted_value_factory()


def soft_delete_instance(
    instance: Any,
    session: Session,
    context: SoftDeleteContext,
    field_name: Optional[str] = None,
) -> bool:
    """软删除单个对象并触发事件

    Returns:
        本次是否执行了软删除（已删除或已处理的对象返回 False）
    """
    field_name = field_name or get_soft_delete_field(instance, get_deleted_field_name())
    if context.is_processed(instance) or getattr(instance, field_name, None) is not None:
        return False

    context.mark_processed(instance)
    args = SoftDeleteEventArgs(instance, session, field_name, context)
    soft_delete_events.dispatch(SoftDeleteEventType.PRE_SOFT_DELETE, args)

    setattr(instance, field_name, context.deleted_value)
    context.soft_deleted.append(instance)

    soft_delete_events.dispatch(SoftDeleteEventType.POST_SOFT_DELETE, args)
    return True


def _marked_deleted(instance: Any, field_name: str) -> bool:
    """软删除字段在本次 flush 中由空变为非空"""
    history = get_history(instance, field_name)
    if not history.added or history.added[0] is None:
        return False
    return all(value is None for value in history.deleted)


def _do_orm_execute(orm_execute_state):
    if global_rewriter is None:
        return
    if (
        orm_execute_state.is_select
        and not orm_execute_state.is_column_load
        and not orm_execute_state.is_relationship_load
        and not orm_execute_state.execution_options.get(
            global_rewriter.disable_soft_delete_option_name
        )
    ):
        orm_execute_state.statement = global_rewriter.rewrite_statement(orm_execute_state.statement)


def _before_flush(session, flush_context, instances):
    if global_rewriter is None:
        return

    default_field = global_rewriter.deleted_field_name
    context = SoftDeleteContext(deleted_value=new_deleted_value())

    # 通过 soft_delete() 直接标记的对象：字段已设置，只触发事件
    for instance in list(session.dirty):
        if not is_soft_deletable(instance, default_field):
            continue
        field_name = get_soft_delete_field(instance, default_field)
        if context.is_processed(instance) or not _marked_deleted(instance, field_name):
            continue
        if not context.processed:
            # 级联对象沿用 soft_delete() 设置的删除时间
            context.deleted_value = getattr(instance, field_name)
        context.mark_processed(instance)
        args = SoftDeleteEventArgs(instance, session, field_name, context)
        soft_delete_events.dispatch(SoftDeleteEventType.PRE_SOFT_DELETE, args)
        soft_delete_events.dispatch(SoftDeleteEventType.POST_SOFT_DELETE, args)

    # session.delete() 的对象：转为软删除
    for instance in list(session.deleted):
        if not is_soft_deletable(instance, default_field):
            continue
        field_name = get_soft_delete_field(instance, default_field)

        if not context.is_processed(instance):
            if _hard_delete and getattr(instance, field_name, None) is not None:
                logger.debug("物理删除已软删除的记录: %r", instance)
                continue
            soft_delete_instance(instance, session, context, field_name)

        # 将对象从deleted集合移回持久化集合，flush 时执行 UPDATE
        session.expunge(instance)
        session.add(instance)

    if context.soft_deleted:
        logger.debug("本次 flush 软删除 %d 个对象", len(context.soft_deleted))
