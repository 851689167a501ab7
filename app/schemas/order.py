"""订单相关的 Pydantic 模型"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from app.models.order import OrderStatus, PaymentStatus
from app.schemas.base import BaseResponse, CamelSchema


# ==================== 请求模型 ====================

class OrderLineRequest(CamelSchema):
    """下单商品行"""
    product: str = Field(
        ...,
        min_length=1,
        description="商品ID",
        examples=["6f1c2d9e-0b7a-4c1e-9d55-3f2a1b0c9e8d"]
    )
    quantity: int = Field(
        1,
        ge=1,
        description="购买数量",
        examples=[2]
    )


class CreateOrderRequest(CamelSchema):
    """创建订单请求

    商品列表和收货地址的业务校验在服务层完成（返回 400）。
    """
    products: List[OrderLineRequest] = Field(
        default_factory=list,
        description="商品行列表"
    )
    shipping_address: Optional[Dict[str, Any]] = Field(
        None,
        description="收货地址 {street, city, state, zipCode, country}"
    )
    payment_method: Optional[str] = Field(
        None,
        max_length=50,
        description="支付方式，默认货到付款",
        examples=["Cash on Delivery"]
    )


class UpdateStatusRequest(CamelSchema):
    """更新订单状态请求"""
    status: OrderStatus = Field(
        ...,
        description="目标状态",
        examples=["shipped"]
    )


# ==================== 输出模型 ====================

class OrderLineOut(CamelSchema):
    product_id: str
    quantity: int


class OrderOut(CamelSchema):
    """父订单"""
    id: str
    user_id: str
    items: List[OrderLineOut] = []
    total_amount: float
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: str
    shipping_address: Dict[str, Any]
    payment_session_id: Optional[str] = None
    payment_result: Optional[Dict[str, Any]] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class SubOrderItemOut(CamelSchema):
    product_id: str
    name: str
    price: float
    quantity: int


class SubOrderOut(CamelSchema):
    """子订单"""
    id: str
    parent_order_id: str
    vendor_id: str
    shop_id: str
    shop_name: Optional[str] = None
    items: List[SubOrderItemOut] = []
    total_amount: float
    status: OrderStatus
    payment_status: PaymentStatus
    created_at: Optional[datetime] = None


# ==================== 响应模型 ====================

class OrderResponse(BaseResponse):
    data: OrderOut


class OrderListResponse(BaseResponse):
    count: int = 0
    data: List[OrderOut] = []


class SubOrderListResponse(BaseResponse):
    count: int = 0
    data: List[SubOrderOut] = []


class StatusUpdateResponse(BaseResponse):
    """子订单更新返回子订单；管理员直接更新父订单时返回父订单"""
    data: Union[SubOrderOut, OrderOut]
