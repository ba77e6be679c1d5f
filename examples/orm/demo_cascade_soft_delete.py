"""级联软删除演示脚本

覆盖三种级联类型：
1. CASCADE - 订单-订单项（订单备注不支持软删除，被物理删除）
2. SET_NULL - 部门-员工
3. DETACH - 用户-角色多对多

运行方式：
    python demo_cascade_soft_delete.py
"""

from sqlalchemy import Column, ForeignKey, Integer, String, Table, create_engine, select
from sqlalchemy.orm import Session, declarative_base

from soft_cascade import setup_soft_delete
from soft_cascade.config import SoftDeleteSettings
from soft_cascade.log import setup_logger
from soft_cascade.orm import SimpleSoftDeleteMixin, fields

Base = declarative_base()


# ==================== 场景1：CASCADE - 订单-订单项 ====================

class Order(Base, SimpleSoftDeleteMixin):
    __tablename__ = "demo_orders"

    id = Column(Integer, primary_key=True)
    order_no = Column(String(50))


class OrderItem(Base, SimpleSoftDeleteMixin):
    __tablename__ = "demo_order_items"

    id = Column(Integer, primary_key=True)
    product_name = Column(String(100))
    order_id = Column(Integer, ForeignKey("demo_orders.id"))

    # 订单删除时，订单项也被软删除
    order = fields.ManyToOne(Order, on_soft_delete=fields.CASCADE)


class OrderNote(Base):
    __tablename__ = "demo_order_notes"

    id = Column(Integer, primary_key=True)
    text = Column(String(200))
    order_id = Column(Integer, ForeignKey("demo_orders.id"))

    # 没有 deleted_at 字段，订单删除时物理删除
    order = fields.ManyToOne(Order, on_soft_delete=fields.CASCADE)


# ==================== 场景2：SET_NULL - 部门-员工 ====================

class Department(Base, SimpleSoftDeleteMixin):
    __tablename__ = "demo_departments"

    id = Column(Integer, primary_key=True)
    name = Column(String(50))


class Employee(Base, SimpleSoftDeleteMixin):
    __tablename__ = "demo_employees"

    id = Column(Integer, primary_key=True)
    name = Column(String(50))
    department_id = Column(Integer, ForeignKey("demo_departments.id"), nullable=True)

    department = fields.ManyToOne(Department, on_soft_delete=fields.SET_NULL)


# ==================== 场景3：DETACH - 用户-角色 ====================

user_roles = Table(
    "demo_user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("demo_users.id"), primary_key=True),
    Column("role_id", Integer, ForeignKey("demo_roles.id"), primary_key=True),
)


class Role(Base, SimpleSoftDeleteMixin):
    __tablename__ = "demo_roles"

    id = Column(Integer, primary_key=True)
    name = Column(String(50))


class User(Base, SimpleSoftDeleteMixin):
    __tablename__ = "demo_users"

    id = Column(Integer, primary_key=True)
    username = Column(String(50))

    roles = fields.ManyToMany(Role, secondary=user_roles)


# ==================== 辅助函数 ====================

def print_section(title):
    """打印章节标题"""
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}\n")


def print_result(ok, message):
    print(f"[{'OK' if ok else 'ERROR'}] {message}")


# ==================== 演示场景 ====================

def demo_cascade(session):
    print_section("场景1：CASCADE - 订单-订单项")

    order = Order(order_no="ORD001")
    items = [OrderItem(product_name="键盘", order=order), OrderItem(product_name="鼠标", order=order)]
    note = OrderNote(text="加急", order=order)
    session.add_all([order, note, *items])
    session.commit()

    session.delete(order)
    session.commit()

    print_result(all(item.is_deleted for item in items), "订单项被级联软删除")
    print_result(session.query(OrderItem).all() == [], "正常查询看不到订单项")
    notes = session.execute(select(OrderNote.__table__)).all()
    print_result(notes == [], "订单备注被物理删除")


def demo_set_null(session):
    print_section("场景2：SET_NULL - 部门-员工")

    dept = Department(name="研发部")
    employee = Employee(name="张三", department=dept)
    session.add_all([dept, employee])
    session.commit()

    session.delete(dept)
    session.commit()

    print_result(employee.department_id is None and not employee.is_deleted, "员工保留，部门外键为空")


def demo_detach(session):
    print_section("场景3：DETACH - 用户-角色")

    admin = Role(name="admin")
    user = User(username="lisi", roles=[admin])
    session.add_all([admin, user])
    session.commit()

    session.delete(admin)
    session.commit()

    print_result(user.roles == [] and not user.is_deleted, "用户保留，角色关联已解除")


# ==================== 主函数 ====================

def main():
    setup_logger("soft_cascade", level="DEBUG")
    setup_soft_delete(SoftDeleteSettings())

    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        demo_cascade(session)
        demo_set_null(session)
        demo_detach(session)


if __name__ == "__main__":
    main()
