"""依赖注入配置模块"""

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

# 数据库会话依赖
from app.db.session import SessionLocal
from sqlalchemy.orm import Session

# Redis 依赖
from app.core.redis import redis_client, redlock, async_redis

from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.security import CurrentUser, Role, SessionStore


bearer_scheme = HTTPBearer(auto_error=False)


def get_redis():
    """获取同步 Redis 客户端"""
    return redis_client

def get_async_redis():
    """获取异步 Redis 客户端"""
    return async_redis

def get_redlock():
    """获取 Redlock 分布式锁实例"""
    return redlock

def get_db() -> Session:
    """获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# 常用的依赖注入别名
DatabaseDep = Depends(get_db)
RedisDep = Depends(get_redis)
RedlockDep = Depends(get_redlock)


def get_session_store(redis = RedisDep) -> SessionStore:
    return SessionStore(redis)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    store: SessionStore = Depends(get_session_store),
) -> CurrentUser:
    """解析 Bearer 令牌得到当前用户"""
    if credentials is None:
        raise UnauthorizedError("未登录，请提供访问令牌")

    user = store.resolve(credentials.credentials)
    if user is None:
        raise UnauthorizedError("令牌无效或已过期")
    return user


def require_roles(*roles: Role):
    """限定角色的依赖"""
    allowed = {Role(r) for r in roles}

    def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise ForbiddenError(f"角色 {user.role.value} 无权访问此资源")
        return user

    return checker


# 用户相关的依赖注入别名
CurrentUserDep = Depends(get_current_user)
VendorDep = Depends(require_roles(Role.VENDOR, Role.ADMIN))
AdminDep = Depends(require_roles(Role.ADMIN))
