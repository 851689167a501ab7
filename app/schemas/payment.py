"""支付相关的 Pydantic 模型"""

from typing import Any, Dict, Optional

from pydantic import Field

from app.schemas.base import BaseResponse, CamelSchema
from app.schemas.order import OrderOut


class CheckoutSessionRequest(CamelSchema):
    """创建支付会话请求"""
    shipping_address: Optional[Dict[str, Any]] = Field(
        None,
        description="收货地址，支付成功后用于创建订单"
    )


class CheckoutSessionResponse(BaseResponse):
    id: str = Field(..., description="支付会话ID")
    url: Optional[str] = Field(None, description="支付页面地址")


class VerifyPaymentRequest(CamelSchema):
    """支付确认请求"""
    session_id: Optional[str] = Field(
        None,
        description="支付会话ID",
        examples=["cs_test_a1b2c3"]
    )


class VerifyPaymentResponse(BaseResponse):
    """重复确认时 data 可能为空（购物车已清空）"""
    data: Optional[OrderOut] = None
