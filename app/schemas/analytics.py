"""统计分析相关的 Pydantic 模型"""

from pydantic import Field

from app.schemas.base import BaseResponse, CamelSchema


class VendorAnalyticsOut(CamelSchema):
    """商家经营概况（已取消的子订单不计入销量和收入）"""
    total_products: int = Field(..., description="店铺商品数")
    total_orders: int = Field(..., description="子订单数（含已取消）")
    total_items_sold: int = Field(..., description="售出件数")
    total_revenue: float = Field(..., description="收入")


class AdminAnalyticsOut(CamelSchema):
    """平台概况"""
    total_revenue: float = Field(..., description="未取消父订单的金额合计")
    total_orders: int
    total_shops: int
    total_products: int


class VendorAnalyticsResponse(BaseResponse):
    data: VendorAnalyticsOut


class AdminAnalyticsResponse(BaseResponse):
    data: AdminAnalyticsOut
