"""登录会话：Redis 中的不透明令牌"""

import enum
import logging
import secrets
from typing import Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError
from redis import Redis

from app.core.config import settings

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    USER = "user"
    VENDOR = "vendor"
    ADMIN = "admin"


class CurrentUser(BaseModel):
    """当前登录用户（由会话令牌解析得到）"""
    id: str
    name: str = ""
    email: str = ""
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class SessionStore:
    """会话令牌存储

    key 格式: session:{token}，value 为用户信息 JSON。
    """

    def __init__(self, redis: Redis, ttl: int = settings.SESSION_TTL_SECONDS):
        self.redis = redis
        self.ttl = ttl

    @staticmethod
    def _key(token: str) -> str:
        return f"session:{token}"

    def issue(self, user: CurrentUser) -> str:
        """签发新令牌"""
        token = secrets.token_urlsafe(32)
        self.redis.setex(self._key(token), self.ttl, user.model_dump_json())
        logger.info(f"签发会话令牌: user_id={user.id}, role={user.role.value}")
        return token

    def resolve(self, token: str) -> Optional[CurrentUser]:
        """根据令牌查找用户，不存在或已过期返回 None"""
        raw = self.redis.get(self._key(token))
        if raw is None:
            return None
        try:
            return CurrentUser.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("会话数据损坏，已忽略")
            return None

    def revoke(self, token: str) -> None:
        self.redis.delete(self._key(token))
