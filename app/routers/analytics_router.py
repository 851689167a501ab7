"""统计分析 API 路由"""

from fastapi import APIRouter, HTTPException
from sqlalchemy.orm import Session
import logging

from app.core.dependencies import DatabaseDep, VendorDep, AdminDep
from app.core.security import CurrentUser
from app.services.analytics_service import AnalyticsService
from app.schemas.analytics import (
    VendorAnalyticsOut,
    AdminAnalyticsOut,
    VendorAnalyticsResponse,
    AdminAnalyticsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/analytics",
    tags=["统计分析"],
    responses={
        401: {"description": "未登录"},
        403: {"description": "权限不足"},
        500: {"description": "服务器内部错误"}
    }
)


@router.get(
    "/vendor",
    response_model=VendorAnalyticsResponse,
    summary="商家经营概况",
    description="""统计当前商家名下店铺的经营数据。

    **口径：**
    - totalOrders 为子订单数，包含已取消的
    - totalItemsSold、totalRevenue 不计已取消的子订单
    """,
    responses={
        200: {
            "description": "查询成功",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {
                            "totalProducts": 12,
                            "totalOrders": 30,
                            "totalItemsSold": 57,
                            "totalRevenue": 1890.5
                        }
                    }
                }
            }
        },
        404: {"description": "当前用户没有店铺"}
    }
)
async def get_vendor_analytics(
    user: CurrentUser = VendorDep,
    db: Session = DatabaseDep,
):
    try:
        summary = AnalyticsService(db).vendor_summary(user)
        return {"success": True, "data": VendorAnalyticsOut(**summary)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"查询商家统计失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/admin",
    response_model=AdminAnalyticsResponse,
    summary="平台概况（管理员）",
    description="平台父订单数、店铺数、商品数，以及未取消父订单的金额合计。",
)
async def get_admin_analytics(
    user: CurrentUser = AdminDep,
    db: Session = DatabaseDep,
):
    try:
        summary = AnalyticsService(db).admin_summary()
        return {"success": True, "data": AdminAnalyticsOut(**summary)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"查询平台统计失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
