"""SQL查询重写器测试"""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, select, text, union_all
from sqlalchemy.orm import aliased, declarative_base

from soft_cascade.orm import IgnoredTable, SimpleSoftDeleteMixin, SoftDeleteRewriter

RewriteBase = declarative_base()


class Author(RewriteBase, SimpleSoftDeleteMixin):
    __tablename__ = "rw_authors"

    id = Column(Integer, primary_key=True)
    name = Column(String(50))


class Book(RewriteBase, SimpleSoftDeleteMixin):
    __tablename__ = "rw_books"

    id = Column(Integer, primary_key=True)
    author_id = Column(Integer, ForeignKey("rw_authors.id"))


class Tag(RewriteBase):
    __tablename__ = "rw_tags"

    id = Column(Integer, primary_key=True)


class Draft(RewriteBase):
    __tablename__ = "rw_drafts"
    __soft_delete_field__ = "removed_at"

    id = Column(Integer, primary_key=True)
    removed_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)


class Ledger(RewriteBase):
    __tablename__ = "rw_ledgers"

    id = Column(Integer, primary_key=True)
    removed_at = Column(DateTime, nullable=True)


def _sql(stmt) -> str:
    return str(stmt.compile()).replace("\n", " ")


class TestSoftDeleteRewriter:
    """SoftDeleteRewriter 测试"""

    def setup_method(self):
        self.rewriter = SoftDeleteRewriter()

    def test_simple_select(self):
        """测试简单查询追加 IS NULL 条件"""
        sql = _sql(self.rewriter.rewrite_statement(select(Author)))
        assert "rw_authors.deleted_at IS NULL" in sql

    def test_table_without_field_unchanged(self):
        """测试没有软删除字段的表不追加条件"""
        sql = _sql(self.rewriter.rewrite_statement(select(Tag)))
        assert "IS NULL" not in sql

    def test_join(self):
        """测试 JOIN 两侧的表都追加条件"""
        stmt = select(Author).join(Book, Book.author_id == Author.id)
        sql = _sql(self.rewriter.rewrite_statement(stmt))
        assert "rw_authors.deleted_at IS NULL" in sql
        assert "rw_books.deleted_at IS NULL" in sql

    def test_subquery(self):
        """测试子查询内部追加条件"""
        subq = select(Book.author_id).subquery()
        stmt = select(subq.c.author_id)
        sql = _sql(self.rewriter.rewrite_statement(stmt))
        assert "rw_books.deleted_at IS NULL" in sql

    def test_aliased_model(self):
        """测试 aliased() 使用别名列"""
        author_alias = aliased(Author, name="a2")
        sql = _sql(self.rewriter.rewrite_statement(select(author_alias)))
        assert "a2.deleted_at IS NULL" in sql

    def test_union(self):
        """测试 UNION 的每个分支都追加条件"""
        stmt = union_all(select(Author.id), select(Book.id))
        sql = _sql(self.rewriter.rewrite_statement(stmt))
        assert "rw_authors.deleted_at IS NULL" in sql
        assert "rw_books.deleted_at IS NULL" in sql

    def test_disable_option(self):
        """测试 include_deleted 选项禁用过滤"""
        stmt = select(Author).execution_options(include_deleted=True)
        sql = _sql(self.rewriter.rewrite_statement(stmt))
        assert "IS NULL" not in sql

    def test_ignored_table(self):
        """测试忽略表不追加条件"""
        rewriter = SoftDeleteRewriter(ignored_tables=[IgnoredTable(name="rw_authors")])
        stmt = select(Author).join(Book, Book.author_id == Author.id)
        sql = _sql(rewriter.rewrite_statement(stmt))
        assert "rw_authors.deleted_at IS NULL" not in sql
        assert "rw_books.deleted_at IS NULL" in sql

    def test_text_statement_unchanged(self):
        """测试原始 SQL 文本原样返回"""
        stmt = text("SELECT * FROM rw_authors")
        assert self.rewriter.rewrite_statement(stmt) is stmt

    def test_custom_field_name(self):
        """测试自定义字段名"""
        rewriter = SoftDeleteRewriter(deleted_field_name="removed_at")
        sql = _sql(rewriter.rewrite_statement(select(Author)))
        assert "IS NULL" not in sql

    def test_model_declared_field(self):
        """测试按模型的 __soft_delete_field__ 选择过滤列"""
        sql = _sql(self.rewriter.rewrite_statement(select(Draft)))
        assert "rw_drafts.removed_at IS NULL" in sql
        assert "rw_drafts.deleted_at IS NULL" not in sql

        draft_alias = aliased(Draft, name="d2")
        sql = _sql(self.rewriter.rewrite_statement(select(draft_alias)))
        assert "d2.removed_at IS NULL" in sql

    def test_plain_model_with_same_column_name(self):
        """测试不支持软删除的模型即使有同名列也不过滤"""
        rewriter = SoftDeleteRewriter(deleted_field_name="deleted_at")
        stmt = select(Draft).join(Ledger, Ledger.id == Draft.id)
        sql = _sql(rewriter.rewrite_statement(stmt))
        assert "rw_drafts.removed_at IS NULL" in sql
        assert "rw_ledgers.removed_at IS NULL" not in sql


class TestIgnoredTable:
    """IgnoredTable 测试"""

    def test_parse_plain_name(self):
        assert IgnoredTable.parse("audit_log") == IgnoredTable(name="audit_log")

    def test_parse_schema_name(self):
        assert IgnoredTable.parse("archive.orders") == IgnoredTable(name="orders", table_schema="archive")

    def test_match_name(self):
        assert IgnoredTable(name="rw_authors").match_name(Author.__table__)
        assert not IgnoredTable(name="rw_authors", table_schema="other").match_name(Author.__table__)
