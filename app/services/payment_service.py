"""支付服务：创建支付会话、支付确认后生成订单（幂等）"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple

from redlock import Redlock
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ConflictError, ExternalServiceError, ForbiddenError, ValidationError
from app.core.security import CurrentUser
from app.models.order import Order
from app.services.cart_service import CartService
from app.services.notification_service import OrderNotifier
from app.services.order_service import OrderService, validate_shipping_address
from app.services.payment_gateway import StripeGateway

logger = logging.getLogger(__name__)

CARD_PAYMENT_METHOD = "Card"


def to_minor_units(price) -> int:
    """金额转换为最小货币单位（分）"""
    return int((Decimal(price) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:
    """支付核心服务类"""

    def __init__(
        self,
        db: Session,
        gateway: StripeGateway = None,
        rlock: Redlock = None,
        notifier: OrderNotifier = None,
    ):
        self.db = db
        self.gateway = gateway or StripeGateway()
        self.rlock = rlock
        self.notifier = notifier
        self.carts = CartService(db)

    def create_checkout_session(self, user: CurrentUser, shipping_address: Optional[dict]) -> dict:
        """根据购物车创建支付会话

        商品已被删除或价格无效的条目会被跳过。
        """
        cart = self.carts.find_cart(user.id)
        if cart is None or not cart.items:
            raise ValidationError("购物车为空")

        address = validate_shipping_address(shipping_address)

        line_items = []
        for item in cart.items:
            product = item.product
            if product is None:
                continue
            price = product.price or 0
            if price <= 0:
                continue
            line_items.append({
                "price_data": {
                    "currency": settings.PAYMENT_CURRENCY,
                    "product_data": {"name": product.name or "Unknown Product"},
                    "unit_amount": to_minor_units(price),
                },
                "quantity": item.quantity,
            })

        if not line_items:
            raise ValidationError("购物车中没有可结算的商品")

        try:
            return self.gateway.create_checkout_session(
                line_items=line_items,
                customer_email=user.email,
                metadata={
                    "userId": user.id,
                    "shippingAddress": json.dumps(address),
                },
            )
        except ExternalServiceError as e:
            # 会话创建失败按请求错误返回
            raise ExternalServiceError(e.message, status_code=400)

    def verify_payment(self, user: CurrentUser, session_id: Optional[str]) -> Tuple[Optional[Order], str]:
        """支付确认：根据当前购物车生成已支付订单

        幂等：
        - 同一支付会话已生成订单时直接返回该订单
        - 购物车为空时视为已处理，返回空结果

        Returns:
            (订单或 None, 提示信息)
        """
        if not session_id:
            raise ValidationError("缺少支付会话ID")

        session = self.gateway.retrieve_checkout_session(session_id)
        if session.get("payment_status") != "paid":
            raise ValidationError("支付未完成")

        # 支付会话只能由创建它的用户确认
        if session.get("user_id") != user.id:
            logger.warning(f"支付会话归属不匹配: session_id={session_id}, user_id={user.id}")
            raise ForbiddenError("无权确认此支付会话")

        lock_key = f"lock:payment:{session_id}"
        lock = None

        # 同一会话的重复确认串行执行
        if self.rlock:
            lock = self.rlock.lock(lock_key, settings.PAYMENT_LOCK_TTL_MS)
            if not lock:
                raise ConflictError("支付确认处理中，请稍后重试")

        try:
            existing = self.find_order_by_session(session_id)
            if existing is not None:
                self._ensure_owner(existing, user)
                logger.info(f"支付会话已生成订单: session_id={session_id}, order_id={existing.id}")
                return existing, "订单已处理"

            cart = self.carts.find_cart(user.id)
            if cart is None or not cart.items:
                logger.info(f"购物车为空，视为重复确认: user_id={user.id}, session_id={session_id}")
                return None, "订单已处理或购物车为空"

            order = self._create_paid_order(user, cart, session)
        finally:
            if self.rlock and lock:
                self.rlock.unlock(lock)

        if order is None:
            # 并发确认中另一请求已写入
            existing = self.find_order_by_session(session_id)
            if existing is not None:
                self._ensure_owner(existing, user)
            return existing, "订单已处理"

        logger.info(f"支付确认成功: session_id={session_id}, order_id={order.id}")
        if self.notifier:
            self.notifier.order_placed(order)
        return order, "支付成功"

    def find_order_by_session(self, session_id: str) -> Optional[Order]:
        return self.db.execute(
            select(Order).where(Order.payment_session_id == session_id)
        ).scalar_one_or_none()

    @staticmethod
    def _ensure_owner(order: Order, user: CurrentUser) -> None:
        if order.user_id != user.id:
            raise ForbiddenError("无权查看此订单")

    def _create_paid_order(self, user: CurrentUser, cart, session: dict) -> Optional[Order]:
        address = self._parse_shipping_address(session.get("shipping_address"))
        lines = [
            {"product": item.product_id, "quantity": item.quantity}
            for item in cart.items
            if item.product is not None
        ]
        paid_at = datetime.now(timezone.utc)

        try:
            order = OrderService(self.db).build_order(
                user,
                lines,
                address,
                payment_method=CARD_PAYMENT_METHOD,
                payment={
                    "session_id": session["id"],
                    "paid_at": paid_at,
                    "result": {
                        "id": session["id"],
                        "status": session.get("payment_status"),
                        "update_time": paid_at.isoformat(),
                        "email_address": session.get("customer_email") or user.email,
                        "receipt_url": session.get("receipt_url"),
                    },
                },
            )
            self.carts.clear_cart(user.id)
            self.db.commit()
        except IntegrityError:
            # payment_session_id 唯一约束冲突
            self.db.rollback()
            logger.warning(f"支付会话重复生成订单被拒绝: session_id={session['id']}")
            return None
        except Exception as e:
            self.db.rollback()
            logger.error(f"支付确认生成订单失败: session_id={session['id']}, error={str(e)}")
            raise

        return order

    @staticmethod
    def _parse_shipping_address(raw) -> dict:
        if isinstance(raw, dict):
            return raw
        if not raw:
            raise ValidationError("支付会话缺少收货地址")
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            raise ValidationError("支付会话中的收货地址格式错误")
