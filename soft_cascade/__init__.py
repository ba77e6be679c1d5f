"""soft_cascade - SQLAlchemy 软删除与级联软删除扩展

快速开始:
    from soft_cascade import setup_soft_delete
    from soft_cascade.orm import fields, SimpleSoftDeleteMixin

    setup_soft_delete()
"""

__version__ = "0.1.0"

from .orm import setup_soft_delete

__all__ = [
    "__version__",
    "setup_soft_delete",
]
