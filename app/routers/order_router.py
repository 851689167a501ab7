"""订单 API 路由"""

from fastapi import APIRouter, Body, HTTPException, Path
from sqlalchemy.orm import Session
import logging

from app.core.dependencies import (
    DatabaseDep,
    CurrentUserDep,
    VendorDep,
    AdminDep,
)
from app.core.security import CurrentUser
from app.services.order_service import OrderService
from app.services.notification_service import OrderNotifier
from app.models.sub_order import SubOrder
from app.schemas.order import (
    CreateOrderRequest,
    UpdateStatusRequest,
    OrderOut,
    SubOrderOut,
    OrderResponse,
    OrderListResponse,
    SubOrderListResponse,
    StatusUpdateResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/orders",
    tags=["订单管理"],
    responses={
        400: {"description": "请求参数错误或状态不允许"},
        401: {"description": "未登录或无权操作"},
        403: {"description": "权限不足"},
        404: {"description": "资源未找到"},
        500: {"description": "服务器内部错误"}
    }
)


@router.post(
    "",
    status_code=201,
    response_model=OrderResponse,
    summary="创建订单",
    description="""校验库存并下单，按店铺拆分为子订单。

    **特点：**
    - 库存扣减为带条件的原子更新，不会超卖
    - 扣库存、父订单、子订单在同一事务中，任一失败全部回滚
    - 每个店铺生成一个子订单
    - 下单成功后异步发送确认邮件，邮件失败不影响下单
    """,
    responses={
        201: {
            "description": "下单成功",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "data": {"id": "…", "totalAmount": 40.0, "status": "pending"}
                    }
                }
            }
        },
        400: {
            "description": "没有商品、缺少地址或库存不足",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "message": "商品 Laptop 库存不足"
                    }
                }
            }
        }
    }
)
async def create_order(
    request: CreateOrderRequest = Body(
        ...,
        description="下单请求参数"
    ),
    user: CurrentUser = CurrentUserDep,
    db: Session = DatabaseDep,
):
    """创建订单（多商家拆单核心接口）"""
    try:
        service = OrderService(db, OrderNotifier())
        order = service.place_order(
            user,
            [line.model_dump() for line in request.products],
            request.shipping_address,
            request.payment_method,
        )
        return {"success": True, "data": OrderOut.model_validate(order)}
    except HTTPException:
        # 透传 HTTPException
        raise
    except Exception as e:
        logger.error(f"创建订单失败: {str(e)}")
        # 未知异常统一抛 500
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/myorders",
    response_model=OrderListResponse,
    summary="我的订单",
)
async def get_my_orders(
    user: CurrentUser = CurrentUserDep,
    db: Session = DatabaseDep,
):
    """当前用户的全部父订单"""
    try:
        orders = OrderService(db).list_user_orders(user.id)
        return {
            "success": True,
            "count": len(orders),
            "data": [OrderOut.model_validate(o) for o in orders]
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"查询我的订单失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/vendor",
    response_model=SubOrderListResponse,
    summary="商家子订单",
    description="当前商家的子订单，按创建时间倒序。",
)
async def get_vendor_orders(
    user: CurrentUser = VendorDep,
    db: Session = DatabaseDep,
):
    try:
        sub_orders = OrderService(db).list_vendor_sub_orders(user.id)
        return {
            "success": True,
            "count": len(sub_orders),
            "data": [SubOrderOut.model_validate(s) for s in sub_orders]
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"查询商家订单失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "",
    response_model=OrderListResponse,
    summary="全部订单（管理员）",
)
async def get_orders(
    user: CurrentUser = AdminDep,
    db: Session = DatabaseDep,
):
    try:
        orders = OrderService(db).list_all_orders()
        return {
            "success": True,
            "count": len(orders),
            "data": [OrderOut.model_validate(o) for o in orders]
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"查询全部订单失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put(
    "/{order_id}/status",
    response_model=StatusUpdateResponse,
    summary="更新订单状态",
    description="""更新子订单状态，并按子订单状态聚合父订单状态。

    **聚合规则（先命中者生效）：**
    - 全部 cancelled -> cancelled
    - 全部 delivered/cancelled -> delivered
    - 任一 shipped/delivered -> shipped
    - 任一 processing -> processing
    - 其他 -> pending

    **权限：**
    - 子订单所属商家或管理员
    - id 为父订单时仅管理员可直接更新（不做聚合）
    """,
)
async def update_order_status(
    order_id: str = Path(
        ...,
        description="子订单ID（管理员也可传父订单ID）"
    ),
    request: UpdateStatusRequest = Body(...),
    user: CurrentUser = CurrentUserDep,
    db: Session = DatabaseDep,
):
    try:
        service = OrderService(db, OrderNotifier())
        updated = service.update_status(user, order_id, request.status)
        if isinstance(updated, SubOrder):
            data = SubOrderOut.model_validate(updated)
        else:
            data = OrderOut.model_validate(updated)
        return {"success": True, "data": data}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"更新订单状态失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.put(
    "/{order_id}/cancel",
    response_model=OrderResponse,
    summary="取消订单",
    description="""仅 pending / processing 状态可取消，父订单和全部子订单一并取消。

    **注意：**
    - 取消不会回补库存
    """,
)
async def cancel_order(
    order_id: str = Path(
        ...,
        description="父订单ID"
    ),
    user: CurrentUser = CurrentUserDep,
    db: Session = DatabaseDep,
):
    try:
        order = OrderService(db).cancel_order(user, order_id)
        return {"success": True, "data": OrderOut.model_validate(order)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"取消订单失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))
