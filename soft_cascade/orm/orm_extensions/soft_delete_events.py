"""软删除事件

提供软删除生命周期的事件机制：
- PRE_SOFT_DELETE: 设置软删除字段之前（级联软删除在此阶段执行）
- POST_SOFT_DELETE: 设置软删除字段之后

使用示例:
    from soft_cascade.orm import soft_delete_events, SoftDeleteEventType

    def audit(args):
        audit_log.write(f"{args.entity!r} 已软删除")

    soft_delete_events.listen(SoftDeleteEventType.POST_SOFT_DELETE, audit)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Set, Union

from sqlalchemy.orm import Session


class SoftDeleteEventType(str, Enum):
    """软删除事件类型"""

    PRE_SOFT_DELETE = "pre_soft_delete"
    """设置软删除字段前（异常会中止本次 flush）"""

    POST_SOFT_DELETE = "post_soft_delete"
    """设置软删除字段后"""


@dataclass
class SoftDeleteContext:
    """一次软删除操作的上下文

    同一次 flush 内的所有软删除共享删除时间与已处理集合，
    已处理集合用于避免循环引用和菱形关系中的重复处理。
    """
    deleted_value: Any
    processed: Set[int] = field(default_factory=set)
    soft_deleted: List[Any] = field(default_factory=list)

    def is_processed(self, instance: Any) -> bool:
        return id(instance) in self.processed

    def mark_processed(self, instance: Any) -> None:
        self.processed.add(id(instance))


@dataclass
class SoftDeleteEventArgs:
    """软删除事件参数"""
    entity: Any
    session: Session
    field_name: str
    context: SoftDeleteContext

    @property
    def deleted_value(self) -> Any:
        return self.context.deleted_value


SoftDeleteListener = Callable[[SoftDeleteEventArgs], None]


class SoftDeleteEvents:
    """软删除事件管理器

    监听器按注册顺序同步执行，异常直接向上传播。
    """

    def __init__(self):
        self._listeners: Dict[SoftDeleteEventType, List[SoftDeleteListener]] = {
            event_type: [] for event_type in SoftDeleteEventType
        }

    def listen(self, event_type: Union[SoftDeleteEventType, str], fn: SoftDeleteListener) -> None:
        """注册监听器（重复注册会被忽略）"""
        listeners = self._listeners[SoftDeleteEventType(event_type)]
        if fn not in listeners:
            listeners.append(fn)

    def remove(self, event_type: Union[SoftDeleteEventType, str], fn: SoftDeleteListener) -> None:
        """移除监听器，未注册时不做处理"""
        listeners = self._listeners[SoftDeleteEventType(event_type)]
        if fn in listeners:
            listeners.remove(fn)

    def contains(self, event_type: Union[SoftDeleteEventType, str], fn: SoftDeleteListener) -> bool:
        return fn in self._listeners[SoftDeleteEventType(event_type)]

    def clear(self, event_type: Union[SoftDeleteEventType, str, None] = None) -> None:
        """清除监听器，不指定类型时清除全部"""
        if event_type is None:
            for listeners in self._listeners.values():
                listeners.clear()
        else:
            self._listeners[SoftDeleteEventType(event_type)].clear()

    def dispatch(self, event_type: Union[SoftDeleteEventType, str], args: SoftDeleteEventArgs) -> None:
        for fn in list(self._listeners[SoftDeleteEventType(event_type)]):
            fn(args)


# 全局事件管理器
soft_delete_events = SoftDeleteEvents()
