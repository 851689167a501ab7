import uuid

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def generate_id() -> str:
    """生成不透明的实体ID"""
    return str(uuid.uuid4())
