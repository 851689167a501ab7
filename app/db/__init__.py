from .base import Base
from .session import engine


def init_db():
    """按模型定义建表（已存在的表会跳过）"""
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


# Export for convenience
__all__ = ["Base", "engine", "init_db"]
