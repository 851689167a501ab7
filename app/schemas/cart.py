"""购物车相关的 Pydantic 模型"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.base import BaseResponse, CamelSchema


class Variant(CamelSchema):
    type: Optional[str] = Field(None, max_length=50, examples=["Size"])
    value: Optional[str] = Field(None, max_length=100, examples=["XL"])


class AddCartItemRequest(CamelSchema):
    """加入购物车请求"""
    product_id: str = Field(
        ...,
        min_length=1,
        description="商品ID"
    )
    quantity: int = Field(
        1,
        ge=1,
        description="数量，默认 1"
    )
    variant: Optional[Variant] = None


class CartItemOut(CamelSchema):
    id: str
    product_id: Optional[str] = None
    quantity: int
    variant: Optional[Variant] = None
    price: Optional[float] = None


class CartOut(CamelSchema):
    id: str
    user_id: str
    items: List[CartItemOut] = []
    updated_at: Optional[datetime] = None


class CartResponse(BaseResponse):
    data: CartOut


class ClearCartResponse(BaseResponse):
    data: dict = {}
