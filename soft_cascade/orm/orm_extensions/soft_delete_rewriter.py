"""SQL查询重写器 - 软删除过滤"""

from __future__ import annotations

from typing import List, Optional, TypeVar, Union

from sqlalchemy import Table
from sqlalchemy.orm import FromStatement
from sqlalchemy.orm.util import _ORMJoin
from sqlalchemy.sql import Alias, CompoundSelect, Executable, Join, Select, Subquery

from soft_cascade.log import get_logger

from .cascade_metadata import get_soft_delete_column
from .soft_delete_ignored_table import IgnoredTable

Statement = TypeVar('Statement', bound=Union[Select, FromStatement, CompoundSelect, Executable])

logger = get_logger("soft_cascade.orm.rewriter")


class SoftDeleteRewriter:
    """SQL查询重写器

    为 SELECT 语句中每个支持软删除的模型的表追加 `deleted_at IS NULL`，
    字段名取自模型的 __soft_delete_field__，未声明时使用 deleted_field_name：
    - 支持子查询、JOIN、别名、UNION
    - 可通过 execution_options 禁用过滤

    使用示例:
        rewriter = SoftDeleteRewriter(deleted_field_name="deleted_at")
        stmt = rewriter.rewrite_statement(select(User))

        # 包含已删除记录
        session.query(User).execution_options(include_deleted=True).all()
    """

    def __init__(
            self,
            deleted_field_name: str = "deleted_at",
            disable_soft_delete_option_name: str = "include_deleted",
            ignored_tables: Optional[List[IgnoredTable]] = None,
    ):
        """初始化查询重写器

        Args:
            deleted_field_name: 软删除字段名
            disable_soft_delete_option_name: 禁用软删除过滤的execution_option名称
            ignored_tables: 忽略软删除的表列表
        """
        self.ignored_tables = ignored_tables or []
        self.deleted_field_name = deleted_field_name
        self.disable_soft_delete_option_name = disable_soft_delete_option_name

    def rewrite_statement(self, stmt: Statement) -> Statement:
        """重写SQL语句

        支持的语句类型：Select、CompoundSelect（UNION等）、FromStatement，
        其他语句原样返回。
        """
        if isinstance(stmt, Select):
            return self.rewrite_select(stmt)

        if isinstance(stmt, CompoundSelect):
            return self.rewrite_compound_select(stmt)

        if isinstance(stmt, FromStatement):
            if isinstance(stmt.element, Select):
                stmt.element = self.rewrite_select(stmt.element)
            return stmt

        return stmt

    def rewrite_select(self, stmt: Select) -> Select:
        """重写SELECT语句"""
        if stmt.get_execution_options().get(self.disable_soft_delete_option_name):
            return stmt

        for from_obj in stmt.get_final_froms():
            stmt = self._analyze_from(stmt, from_obj)

        return stmt

    def rewrite_compound_select(self, stmt: CompoundSelect) -> CompoundSelect:
        """重写复合SELECT语句（UNION等）"""
        for i in range(len(stmt.selects)):
            stmt.selects[i] = self.rewrite_select(stmt.selects[i])
        return stmt

    def _rewrite_subquery(self, subquery: Subquery) -> None:
        if isinstance(subquery.element, CompoundSelect):
            subquery.element = self.rewrite_compound_select(subquery.element)
        elif isinstance(subquery.element, Select):
            subquery.element = self.rewrite_select(subquery.element)

    def _rewrite_from_join(self, stmt: Select, join_obj: Union[_ORMJoin, Join]) -> Select:
        """处理JOIN查询（递归处理多重JOIN）"""
        for side in (join_obj.left, join_obj.right):
            stmt = self._analyze_from(stmt, side)
        return stmt

    def _analyze_from(self, stmt: Select, from_obj) -> Select:
        """分析FROM子句"""
        if isinstance(from_obj, Table):
            return self._rewrite_from_table(stmt, from_obj, from_obj)

        if isinstance(from_obj, (_ORMJoin, Join)):
            return self._rewrite_from_join(stmt, from_obj)

        if isinstance(from_obj, Subquery):
            self._rewrite_subquery(from_obj)
            return stmt

        if isinstance(from_obj, Alias):
            # aliased(Model) 的 FROM 是 Table 的别名
            if isinstance(from_obj.element, Table):
                return self._rewrite_from_table(stmt, from_obj.element, from_obj)
            if isinstance(from_obj.element, Subquery):
                self._rewrite_subquery(from_obj.element)
            return stmt

        # 原始SQL文本、表值函数等无法处理
        logger.debug("跳过无法重写的FROM类型: %s", type(from_obj).__name__)
        return stmt

    def _rewrite_from_table(self, stmt: Select, table: Table, selectable) -> Select:
        """为表添加软删除过滤条件"""
        if any(ignored.match_name(table) for ignored in self.ignored_tables):
            return stmt

        column = get_soft_delete_column(table, self.deleted_field_name)
        if column is None:
            return stmt

        column_obj = selectable.corresponding_column(column)
        if column_obj is None:
            return stmt

        return stmt.filter(column_obj.is_(None))
