"""软删除忽略表配置"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Table


@dataclass
class IgnoredTable:
    """定义查询时不过滤软删除记录的表

    使用示例:
        from soft_cascade.orm import IgnoredTable

        ignored_tables = [
            IgnoredTable(name='audit_log'),
            IgnoredTable.parse('archive.orders'),
        ]
    """
    name: str
    table_schema: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "IgnoredTable":
        """从 "table" 或 "schema.table" 字符串创建"""
        schema, _, name = value.rpartition(".")
        return cls(name=name, table_schema=schema or None)

    def match_name(self, table: Table) -> bool:
        """表名和schema都匹配时返回 True"""
        return self.name == table.name and self.table_schema == table.schema
