"""软删除钩子测试

测试 session.delete() 转为软删除、查询过滤、软删除事件等功能
"""

import pytest
from datetime import datetime
from sqlalchemy import Column, DateTime, Integer, String, select
from sqlalchemy.orm import declarative_base

from soft_cascade.orm import (
    IgnoredTable,
    SimpleSoftDeleteMixin,
    SoftDeleteEventType,
    activate_soft_delete_hook,
    deactivate_soft_delete_hook,
    generate_soft_delete_mixin_class,
    is_soft_delete_active,
    soft_delete_events,
)


# ==================== 测试模型定义 ====================

HookBase = declarative_base()

RemovedAtMixin = generate_soft_delete_mixin_class(
    deleted_field_name="removed_at",
    class_name="RemovedAtMixin",
)


class Article(HookBase, SimpleSoftDeleteMixin):
    """测试文章模型"""
    __tablename__ = "hook_articles"

    id = Column(Integer, primary_key=True)
    title = Column(String(200))


class AuditLog(HookBase, SimpleSoftDeleteMixin):
    """查询时不过滤的表"""
    __tablename__ = "hook_audit_log"

    id = Column(Integer, primary_key=True)
    message = Column(String(200))


class Document(HookBase, RemovedAtMixin):
    """自定义软删除字段的模型"""
    __tablename__ = "hook_documents"

    id = Column(Integer, primary_key=True)
    title = Column(String(200))


class Plain(HookBase):
    """不支持软删除的模型"""
    __tablename__ = "hook_plain"

    id = Column(Integer, primary_key=True)
    name = Column(String(50))


class Memo(HookBase):
    """手写 __soft_delete_field__ 的模型"""
    __tablename__ = "hook_memos"
    __soft_delete_field__ = "archived_at"

    id = Column(Integer, primary_key=True)
    body = Column(String(200))
    archived_at = Column(DateTime, nullable=True)


class Issue(HookBase):
    """带 closed_at 列但不支持软删除的模型"""
    __tablename__ = "hook_issues"

    id = Column(Integer, primary_key=True)
    closed_at = Column(DateTime, nullable=True)


# ==================== 测试类 ====================

class HookTestBase:

    hook_kwargs = {}

    @pytest.fixture(autouse=True)
    def setup_db(self, memory_engine, db_session):
        HookBase.metadata.create_all(bind=memory_engine)
        activate_soft_delete_hook(**self.hook_kwargs)
        self.engine = memory_engine
        self.session = db_session
        yield

    def _add(self, *objs):
        self.session.add_all(objs)
        self.session.commit()
        return objs


class TestSoftDeleteHook(HookTestBase):
    """session.delete() 转为软删除"""

    def test_hook_active(self):
        """测试钩子激活状态"""
        assert is_soft_delete_active()
        deactivate_soft_delete_hook()
        assert not is_soft_delete_active()

    def test_delete_becomes_soft_delete(self):
        """测试 session.delete() 只设置 deleted_at"""
        (article,) = self._add(Article(title="a"))
        article_id = article.id

        self.session.delete(article)
        self.session.commit()

        row = self.session.execute(
            select(Article.__table__).execution_options(include_deleted=True).where(
                Article.__table__.c.id == article_id
            )
        ).one()
        assert row.deleted_at is not None
        assert article.is_deleted

    def test_deleted_rows_are_filtered(self):
        """测试正常查询过滤已删除记录"""
        a1, a2 = self._add(Article(title="keep"), Article(title="drop"))

        self.session.delete(a2)
        self.session.commit()

        assert [a.title for a in self.session.query(Article).all()] == ["keep"]
        assert [a.title for a in self.session.scalars(select(Article)).all()] == ["keep"]

    def test_include_deleted_option(self):
        """测试 include_deleted=True 返回已删除记录"""
        a1, a2 = self._add(Article(title="keep"), Article(title="drop"))
        self.session.delete(a2)
        self.session.commit()

        titles = {a.title for a in self.session.query(Article).execution_options(include_deleted=True).all()}
        assert titles == {"keep", "drop"}

    def test_soft_delete_method_and_undelete(self):
        """测试 soft_delete() 与 undelete()"""
        (article,) = self._add(Article(title="a"))

        article.soft_delete()
        self.session.commit()
        assert self.session.query(Article).all() == []

        article.undelete()
        self.session.commit()
        assert self.session.query(Article).all() == [article]

    def test_soft_delete_with_explicit_value(self):
        """测试 soft_delete() 指定删除时间"""
        (article,) = self._add(Article(title="a"))
        value = datetime(2023, 3, 3, 3, 3, 3)

        article.soft_delete(value)
        self.session.commit()

        assert article.deleted_at == value

    def test_plain_model_is_hard_deleted(self):
        """测试不支持软删除的模型仍然物理删除"""
        (plain,) = self._add(Plain(name="p"))

        self.session.delete(plain)
        self.session.commit()

        assert self.session.execute(select(Plain.__table__)).all() == []

    def test_custom_field_mixin(self):
        """测试自定义软删除字段名的 Mixin"""
        (doc,) = self._add(Document(title="d"))

        self.session.delete(doc)
        self.session.commit()

        assert doc.removed_at is not None
        assert doc.is_deleted
        assert self.session.query(Document).all() == []

    def test_deleting_twice_keeps_soft_deleted_row(self):
        """测试未开启 hard_delete 时再次删除仍保留记录"""
        (article,) = self._add(Article(title="a"))
        self.session.delete(article)
        self.session.commit()
        first_value = article.deleted_at

        self.session.delete(article)
        self.session.commit()

        row = self.session.execute(
            select(Article.__table__).execution_options(include_deleted=True)
        ).one()
        assert row.deleted_at == first_value

    def test_deactivated_hook_deletes_rows(self):
        """测试停用钩子后 session.delete() 物理删除"""
        (article,) = self._add(Article(title="a"))
        deactivate_soft_delete_hook()

        self.session.delete(article)
        self.session.commit()

        assert self.session.execute(select(Article.__table__)).all() == []


class TestHardDelete(HookTestBase):
    """hard_delete=True：再次删除已软删除的记录时物理删除"""

    hook_kwargs = {"hard_delete": True}

    def test_second_delete_removes_row(self):
        """测试第二次删除物理删除记录"""
        (article,) = self._add(Article(title="a"))

        self.session.delete(article)
        self.session.commit()
        assert article.deleted_at is not None

        self.session.delete(article)
        self.session.commit()

        rows = self.session.execute(
            select(Article.__table__).execution_options(include_deleted=True)
        ).all()
        assert rows == []


class TestIgnoredTables(HookTestBase):
    """忽略表：查询时不过滤"""

    hook_kwargs = {"ignored_tables": [IgnoredTable(name="hook_audit_log")]}

    def test_ignored_table_returns_deleted_rows(self):
        """测试忽略表返回已删除记录，其他表仍过滤"""
        log, article = self._add(AuditLog(message="m"), Article(title="a"))
        self.session.delete(log)
        self.session.delete(article)
        self.session.commit()

        assert len(self.session.query(AuditLog).all()) == 1
        assert self.session.query(Article).all() == []


class TestSoftDeleteEvents(HookTestBase):
    """软删除事件测试"""

    def test_pre_and_post_events(self):
        """测试 PRE/POST 事件依次触发"""
        calls = []

        def pre(args):
            calls.append(("pre", args.entity, getattr(args.entity, args.field_name)))

        def post(args):
            calls.append(("post", args.entity, getattr(args.entity, args.field_name)))

        soft_delete_events.listen(SoftDeleteEventType.PRE_SOFT_DELETE, pre)
        soft_delete_events.listen(SoftDeleteEventType.POST_SOFT_DELETE, post)

        (article,) = self._add(Article(title="a"))
        self.session.delete(article)
        self.session.flush()

        assert [c[0] for c in calls] == ["pre", "post"]
        assert calls[0][1] is article
        assert calls[0][2] is None
        assert calls[1][2] is not None

    def test_event_args(self):
        """测试事件参数"""
        received = []
        soft_delete_events.listen(SoftDeleteEventType.POST_SOFT_DELETE, received.append)

        (doc,) = self._add(Document(title="d"))
        self.session.delete(doc)
        self.session.flush()

        (args,) = received
        assert args.session is self.session
        assert args.field_name == "removed_at"
        assert args.deleted_value == doc.removed_at
        assert args.context.soft_deleted == [doc]

    def test_listener_exception_aborts_flush(self):
        """测试监听器异常中止 flush"""
        def veto(args):
            raise RuntimeError("禁止删除")

        soft_delete_events.listen("pre_soft_delete", veto)
        (article,) = self._add(Article(title="a"))

        self.session.delete(article)
        with pytest.raises(RuntimeError):
            self.session.flush()
        self.session.rollback()

        assert article.deleted_at is None

    def test_listen_remove_clear(self):
        """测试注册、移除与清除监听器"""
        def listener(args):
            pass

        soft_delete_events.listen(SoftDeleteEventType.POST_SOFT_DELETE, listener)
        soft_delete_events.listen(SoftDeleteEventType.POST_SOFT_DELETE, listener)
        assert soft_delete_events.contains(SoftDeleteEventType.POST_SOFT_DELETE, listener)

        soft_delete_events.remove(SoftDeleteEventType.POST_SOFT_DELETE, listener)
        assert not soft_delete_events.contains(SoftDeleteEventType.POST_SOFT_DELETE, listener)

        soft_delete_events.listen(SoftDeleteEventType.PRE_SOFT_DELETE, listener)
        soft_delete_events.clear()
        assert not soft_delete_events.contains(SoftDeleteEventType.PRE_SOFT_DELETE, listener)


class TestSoftDeleteFieldPerModel(HookTestBase):
    """查询过滤按模型自己的软删除字段判断"""

    def test_declared_field_is_filtered(self):
        """测试手写 __soft_delete_field__ 的模型被过滤"""
        keep, drop = self._add(Memo(body="keep"), Memo(body="drop"))

        self.session.delete(drop)
        self.session.commit()

        assert drop.archived_at is not None
        assert self.session.query(Memo).all() == [keep]
        assert self.session.scalars(select(Memo)).all() == [keep]

    def test_mixin_created_after_activation(self):
        """测试钩子激活后才生成的 Mixin 同样被过滤"""
        GoneAtMixin = generate_soft_delete_mixin_class(
            deleted_field_name="gone_at",
            class_name="GoneAtMixin",
        )
        LateBase = declarative_base()

        class Note(LateBase, GoneAtMixin):
            __tablename__ = "hook_late_notes"

            id = Column(Integer, primary_key=True)
            body = Column(String(200))

        LateBase.metadata.create_all(bind=self.engine)
        keep, drop = self._add(Note(body="keep"), Note(body="drop"))

        self.session.delete(drop)
        self.session.commit()

        assert drop.gone_at is not None
        assert [n.body for n in self.session.query(Note).all()] == ["keep"]

    def test_same_column_name_on_plain_model_not_filtered(self):
        """测试普通模型上同名的列不参与过滤"""
        ClosedAtMixin = generate_soft_delete_mixin_class(
            deleted_field_name="closed_at",
            class_name="ClosedAtMixin",
        )
        LateBase = declarative_base()

        class Ticket(LateBase, ClosedAtMixin):
            __tablename__ = "hook_late_tickets"

            id = Column(Integer, primary_key=True)

        LateBase.metadata.create_all(bind=self.engine)
        (ticket,) = self._add(Ticket())
        (issue,) = self._add(Issue(closed_at=datetime(2024, 1, 1)))

        self.session.delete(ticket)
        self.session.commit()

        assert self.session.query(Ticket).all() == []
        assert self.session.query(Issue).all() == [issue]
