"""业务异常定义

所有业务异常都继承自 HTTPException，由 main.py 中的全局处理器
统一转换为 {"success": false, "message": ...} 响应。
"""

from typing import Optional

from fastapi import HTTPException


class ServiceError(HTTPException):
    """业务异常基类"""
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(status_code=status_code or self.status_code, detail=message)
        self.message = message


class ValidationError(ServiceError):
    """请求参数缺失或格式错误"""
    status_code = 400


class NotFoundError(ServiceError):
    """引用的资源不存在"""
    status_code = 404


class UnauthorizedError(ServiceError):
    """未登录或无权操作他人资源"""
    status_code = 401


class ForbiddenError(ServiceError):
    """角色权限不足"""
    status_code = 403


class InsufficientStockError(ServiceError):
    """库存不足"""
    status_code = 400

    def __init__(self, product_name: str, product_id: Optional[str] = None):
        super().__init__(f"商品 {product_name} 库存不足")
        self.product_name = product_name
        self.product_id = product_id


class InvalidStateError(ServiceError):
    """非法的状态流转"""
    status_code = 400

    def __init__(self, message: str, current_status: Optional[str] = None):
        super().__init__(message)
        self.current_status = current_status


class ConflictError(ServiceError):
    """并发操作冲突（分布式锁获取失败）"""
    status_code = 429


class ExternalServiceError(ServiceError):
    """支付或通知等外部服务调用失败"""
    status_code = 500
