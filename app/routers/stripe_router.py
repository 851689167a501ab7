"""支付 API 路由（Stripe Checkout）"""

from fastapi import APIRouter, Body, HTTPException
from sqlalchemy.orm import Session
import logging

from app.core.dependencies import DatabaseDep, CurrentUserDep, RedlockDep
from app.core.security import CurrentUser
from app.services.payment_service import PaymentService
from app.services.notification_service import OrderNotifier
from app.schemas.order import OrderOut
from app.schemas.payment import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/stripe",
    tags=["支付"],
    responses={
        400: {"description": "购物车为空或支付未完成"},
        401: {"description": "未登录"},
        403: {"description": "支付会话不属于当前用户"},
        429: {"description": "支付确认处理中"},
        500: {"description": "服务器内部错误"}
    }
)


@router.post(
    "/create-checkout-session",
    response_model=CheckoutSessionResponse,
    summary="创建支付会话",
    description="""根据当前购物车创建 Stripe Checkout 会话。

    **说明：**
    - 已删除或价格无效的商品会被跳过
    - 收货地址写入会话元数据，支付确认时用于创建订单
    """,
)
async def create_checkout_session(
    request: CheckoutSessionRequest = Body(...),
    user: CurrentUser = CurrentUserDep,
    db: Session = DatabaseDep,
):
    try:
        service = PaymentService(db)
        session = service.create_checkout_session(user, request.shipping_address)
        return {"success": True, "id": session["id"], "url": session["url"]}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"创建支付会话失败: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post(
    "/verify-payment",
    response_model=VerifyPaymentResponse,
    summary="支付确认",
    description="""确认支付会话已支付，并根据购物车生成已支付订单。

    **幂等：**
    - 同一支付会话只会生成一个订单，重复确认返回已有订单
    - 购物车已清空时返回成功但不创建订单

    **权限：**
    - 只能确认自己创建的支付会话
    """,
)
async def verify_payment(
    request: VerifyPaymentRequest = Body(...),
    user: CurrentUser = CurrentUserDep,
    db: Session = DatabaseDep,
    rlock = RedlockDep,
):
    try:
        service = PaymentService(db, rlock=rlock, notifier=OrderNotifier())
        order, message = service.verify_payment(user, request.session_id)
        return {
            "success": True,
            "message": message,
            "data": OrderOut.model_validate(order) if order is not None else None
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"支付确认失败: {str(e)}")
        raise HTTPException(status_code=500, detail=f"支付确认失败: {str(e)}")
