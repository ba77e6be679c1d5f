"""
Pytest 公共配置和 Fixtures

提供测试所需的公共资源：
- 数据库连接与会话
- 软删除全局状态的重置
- 临时配置文件
"""

import os
import tempfile
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from soft_cascade.config import ConfigLoader
from soft_cascade.orm import (
    deactivate_soft_delete_hook,
    disable_cascade_soft_delete,
    soft_delete_events,
)


# ==================== 基础 Fixtures ====================

@pytest.fixture(scope="session")
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_file(temp_dir):
    """创建临时文件的工厂函数"""
    created_files = []

    def _create_file(filename: str, content: str = "") -> str:
        filepath = os.path.join(temp_dir, filename)
        if os.path.dirname(filepath):
            os.makedirs(os.path.dirname(filepath), exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        created_files.append(filepath)
        return filepath

    yield _create_file

    # 清理
    for f in created_files:
        if os.path.exists(f):
            os.remove(f)
    ConfigLoader.clear_cache()


# ==================== 数据库 Fixtures ====================

@pytest.fixture(scope="function")
def memory_engine():
    """创建内存数据库引擎

    使用 StaticPool 和 check_same_thread=False 确保：
    1. 所有操作使用同一个连接（StaticPool）
    2. 允许跨线程访问（check_same_thread=False）
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(memory_engine) -> Generator[Session, None, None]:
    """创建数据库会话"""
    SessionLocal = sessionmaker(autoflush=False, bind=memory_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def reset_soft_delete():
    """每个测试结束后停用软删除钩子、级联和事件监听器"""
    yield
    disable_cascade_soft_delete()
    deactivate_soft_delete_hook()
    soft_delete_events.clear()


# ==================== 配置 Fixtures ====================

@pytest.fixture
def sample_yaml_config(temp_file):
    """创建示例 YAML 配置文件"""
    yaml_content = """
soft_delete:
  deleted_field_name: "deleted_at"
  ignored_tables:
    - "audit_log"
    - "archive.orders"
  hard_delete: true

logging:
  level: "DEBUG"
  enable_console: false
"""
    return temp_file("config/settings.yaml", yaml_content)


# ==================== 日志 Fixtures ====================

@pytest.fixture
def log_dir(temp_dir):
    """创建日志目录"""
    log_path = os.path.join(temp_dir, "logs")
    os.makedirs(log_path, exist_ok=True)
    return log_path
