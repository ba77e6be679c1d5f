"""级联元数据

扫描映射类的 relationship，收集带 on_soft_delete 配置的关系描述，
并提供"模型是否支持软删除"的判断。

关系方向与级联基数的对应：
    MANYTOONE（外键列唯一）  -> ONE_TO_ONE
    MANYTOONE               -> MANY_TO_ONE
    MANYTOMANY              -> MANY_TO_MANY
    ONETOMANY               -> 不支持，记录警告后忽略
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple, Type

from sqlalchemy import Column, Table, UniqueConstraint, event, inspect
from sqlalchemy.orm import Mapper, RelationshipProperty, Session, configure_mappers
from sqlalchemy.orm.interfaces import MANYTOMANY, MANYTOONE

from soft_cascade.log import get_logger
from soft_cascade.orm.exceptions import UnsupportedCascadeError
from soft_cascade.orm.fields import (
    OnSoftDelete,
    SOFT_DELETE_CASCADE_KEY,
    get_on_soft_delete_enum,
)

logger = get_logger("soft_cascade.orm.cascade")

DEFAULT_DELETED_FIELD_NAME = "deleted_at"


def _model_class(model: Any) -> type:
    return model if isinstance(model, type) else type(model)


def get_soft_delete_field(model: Any, default: str = DEFAULT_DELETED_FIELD_NAME) -> str:
    """获取模型的软删除字段名

    模型类可以通过 __soft_delete_field__ 覆盖全局字段名。
    """
    return getattr(_model_class(model), "__soft_delete_field__", None) or default


def is_soft_deletable(model: Any, default: str = DEFAULT_DELETED_FIELD_NAME) -> bool:
    """模型映射中存在软删除字段列时视为支持软删除"""
    mapper = inspect(_model_class(model), raiseerr=False)
    if mapper is None:
        return False
    return get_soft_delete_field(model, default) in mapper.column_attrs


# 表 -> 映射到该表的模型（单表继承时取最上层的模型）
_table_models: "weakref.WeakKeyDictionary[Table, weakref.ReferenceType]" = weakref.WeakKeyDictionary()


@event.listens_for(Mapper, "mapper_configured")
def _index_mapped_table(mapper: Mapper, class_: type) -> None:
    table = mapper.local_table
    if not isinstance(table, Table):
        return
    owner = mapper
    while owner.inherits is not None and owner.inherits.local_table is table:
        owner = owner.inherits
    _table_models[table] = weakref.ref(owner.class_)


def get_soft_delete_column(table: Table, default: str = DEFAULT_DELETED_FIELD_NAME) -> Optional[Column]:
    """获取表的软删除字段列

    按映射到该表的模型判断，模型不支持软删除或表未映射时返回 None。
    """
    if table not in _table_models:
        configure_mappers()
    model_ref = _table_models.get(table)
    model = model_ref() if model_ref is not None else None
    if model is None or not is_soft_deletable(model, default):
        return None
    prop = inspect(model).column_attrs[get_soft_delete_field(model, default)]
    column = prop.columns[0]
    return column if column.table is table else None


class Cardinality(str, Enum):
    """关系基数"""
    MANY_TO_ONE = "ManyToOne"
    ONE_TO_ONE = "OneToOne"
    MANY_TO_MANY = "ManyToMany"


@dataclass(frozen=True)
class RelationshipDescriptor:
    """带级联配置的关系描述（只读）

    Attributes:
        source_class: 声明 relationship 的模型（引用方）
        field_name: relationship 属性名
        target_class: relationship 指向的模型（被引用方）
        cardinality: 关系基数
        cascade_type: 级联类型
    """
    source_class: Type
    field_name: str
    target_class: Type
    cardinality: Cardinality
    cascade_type: OnSoftDelete

    @property
    def is_many_to_many(self) -> bool:
        return self.cardinality is Cardinality.MANY_TO_MANY

    def __str__(self) -> str:
        return f"{self.source_class.__name__}.{self.field_name}"


class CascadeMetadataScanner:
    """级联元数据扫描器

    按 registry 缓存扫描结果，registry 中映射类数量变化时重新扫描。
    非法配置（未知级联类型、多对多上的 SET NULL 等）在扫描时直接抛出，
    此时尚未修改任何对象。
    """

    def __init__(self, deleted_field_name: str = DEFAULT_DELETED_FIELD_NAME):
        self.deleted_field_name = deleted_field_name
        self._cache: "weakref.WeakKeyDictionary[Any, Tuple[int, List[RelationshipDescriptor]]]" = (
            weakref.WeakKeyDictionary()
        )

    def scan(self, registry) -> List[RelationshipDescriptor]:
        """扫描 registry 中所有映射类的级联配置

        Args:
            registry: sqlalchemy.orm.registry（可通过 Base.registry 获取）

        Returns:
            关系描述列表

        Raises:
            UnknownCascadeTypeError: 未知的级联类型
            UnsupportedCascadeError: 关系基数不支持该级联类型
        """
        mappers = registry.mappers
        cached = self._cache.get(registry)
        if cached is not None and cached[0] == len(mappers):
            return cached[1]

        registry.configure()

        descriptors = []
        ordered = sorted(mappers, key=lambda m: (m.class_.__module__, m.class_.__qualname__))
        for mapper in ordered:
            for rel in mapper.relationships:
                # 继承得到的 relationship 只在声明它的映射类上处理
                if rel.parent is not mapper:
                    continue
                raw = (rel.info or {}).get(SOFT_DELETE_CASCADE_KEY)
                if raw is None:
                    continue
                descriptor = self._build_descriptor(mapper, rel, raw)
                if descriptor is not None:
                    descriptors.append(descriptor)

        logger.debug("扫描到 %d 个级联软删除关系", len(descriptors))
        self._cache[registry] = (len(mappers), descriptors)
        return descriptors

    def validate(self, registry) -> List[RelationshipDescriptor]:
        """忽略缓存重新扫描，用于应用启动时尽早发现配置错误"""
        self._cache.pop(registry, None)
        return self.scan(registry)

    def descriptors_for(self, entity: Any) -> List[RelationshipDescriptor]:
        """获取实体所在 registry 的全部关系描述"""
        return self.scan(inspect(entity).mapper.registry)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _build_descriptor(
        self,
        mapper,
        rel: RelationshipProperty,
        raw: Any
    ) -> Optional[RelationshipDescriptor]:
        field_name = f"{mapper.class_.__name__}.{rel.key}"
        cascade_type = get_on_soft_delete_enum(raw, field_name)

        if rel.direction is MANYTOMANY:
            cardinality = Cardinality.MANY_TO_MANY
        elif rel.direction is MANYTOONE:
            cardinality = Cardinality.ONE_TO_ONE if self._is_unique(rel) else Cardinality.MANY_TO_ONE
        else:
            logger.warning(
                "%s: 一对多关系不支持 on_soft_delete，请在持有外键的一侧声明，已忽略",
                field_name,
            )
            return None

        if cardinality is Cardinality.MANY_TO_MANY and cascade_type is OnSoftDelete.SET_NULL:
            raise UnsupportedCascadeError(cascade_type, cardinality, field_name)
        if cardinality is not Cardinality.MANY_TO_MANY and cascade_type is OnSoftDelete.DETACH:
            raise UnsupportedCascadeError(cascade_type, cardinality, field_name)

        return RelationshipDescriptor(
            source_class=mapper.class_,
            field_name=rel.key,
            target_class=rel.mapper.class_,
            cardinality=cardinality,
            cascade_type=cascade_type,
        )

    @staticmethod
    def _is_unique(rel: RelationshipProperty) -> bool:
        """外键列带唯一约束时视为一对一"""
        columns = set(rel.local_columns)
        if columns and all(getattr(col, "unique", False) for col in columns):
            return True
        table = rel.parent.local_table
        for constraint in getattr(table, "constraints", ()):
            if isinstance(constraint, UniqueConstraint) and set(constraint.columns) == columns:
                return True
        return False


class RelationshipResolver:
    """关系解析器

    查找引用被删除实体的对象。查询在 no_autoflush 下执行，
    在 before_flush 中调用时不会触发嵌套 flush。
    """

    def __init__(self, include_deleted_option: str = "include_deleted"):
        self.include_deleted_option = include_deleted_option

    def find_dependents(
        self,
        session: Session,
        descriptor: RelationshipDescriptor,
        entity: Any
    ) -> List[Any]:
        """查找 descriptor.field_name 指向 entity 的未删除对象"""
        if not inspect(entity).has_identity:
            return []
        source = descriptor.source_class
        attr = getattr(source, descriptor.field_name)
        with session.no_autoflush:
            return session.query(source).filter(attr == entity).all()

    def find_association_owners(
        self,
        session: Session,
        descriptor: RelationshipDescriptor,
        entity: Any
    ) -> List[Any]:
        """查找多对多集合中包含 entity 的对象（包括已软删除的对象）"""
        if not inspect(entity).has_identity:
            return []
        source = descriptor.source_class
        attr = getattr(source, descriptor.field_name)
        with session.no_autoflush:
            return (
                session.query(source)
                .execution_options(**{self.include_deleted_option: True})
                .filter(attr.contains(entity))
                .all()
            )
