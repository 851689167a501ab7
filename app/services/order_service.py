"""订单服务实现：下单拆单、子订单状态更新、取消"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.exceptions import (
    ForbiddenError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.core.security import CurrentUser
from app.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from app.models.product import Product
from app.models.sub_order import SubOrder, SubOrderItem
from app.services.notification_service import OrderNotifier
from app.services.status_aggregator import StatusAggregator

logger = logging.getLogger(__name__)

ADDRESS_FIELDS = ("street", "city", "state", "zipCode", "country")
DEFAULT_PAYMENT_METHOD = "Cash on Delivery"
CANCELLABLE_STATUSES = (OrderStatus.PENDING, OrderStatus.PROCESSING)


def validate_shipping_address(address: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """校验收货地址，所有字段必填"""
    if not address:
        raise ValidationError("请提供收货地址")

    missing = [
        field for field in ADDRESS_FIELDS
        if not isinstance(address.get(field), str) or not address[field].strip()
    ]
    if missing:
        raise ValidationError(f"收货地址不完整，缺少: {', '.join(missing)}")

    return {field: address[field].strip() for field in ADDRESS_FIELDS}


class OrderService:
    """订单核心服务类"""

    def __init__(self, db: Session, notifier: OrderNotifier = None):
        self.db = db
        self.notifier = notifier

    # ==================== 下单 ====================

    def place_order(
        self,
        user: CurrentUser,
        products: List[Dict[str, Any]],
        shipping_address: Optional[Dict[str, Any]],
        payment_method: Optional[str] = None,
    ) -> Order:
        """创建订单（单事务：扣库存、父订单、子订单一起提交或一起回滚）"""
        try:
            order = self.build_order(
                user,
                products,
                shipping_address,
                payment_method=payment_method or DEFAULT_PAYMENT_METHOD,
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"创建订单失败: user_id={user.id}, error={str(e)}")
            raise

        logger.info(
            f"创建订单成功: order_id={order.id}, user_id={user.id}, "
            f"total={order.total_amount}, sub_orders={len(order.sub_orders)}"
        )

        # 订单已提交，通知失败不影响结果
        if self.notifier:
            self.notifier.order_placed(order)

        return order

    def build_order(
        self,
        user: CurrentUser,
        products: List[Dict[str, Any]],
        shipping_address: Optional[Dict[str, Any]],
        payment_method: str = DEFAULT_PAYMENT_METHOD,
        payment: Optional[Dict[str, Any]] = None,
    ) -> Order:
        """校验库存、扣减库存、按店铺拆分并写入父订单与子订单

        只 flush 不提交，事务边界由调用方控制。

        Args:
            user: 下单用户
            products: 商品行 [{"product": id, "quantity": n}, ...]
            shipping_address: 收货地址
            payment_method: 支付方式
            payment: 已支付时的支付信息 {"session_id", "result", "paid_at"}

        Returns:
            父订单（子订单可通过 order.sub_orders 访问）
        """
        if not products:
            raise ValidationError("订单中没有商品")
        address = validate_shipping_address(shipping_address)

        total_amount = Decimal("0")
        order_items = []
        # 按店铺分组，key 为店铺ID（同一商家的两个店铺会产生两个子订单）
        vendor_buckets = {}

        for line in products:
            product_id = line.get("product")
            try:
                quantity = int(line.get("quantity") or 0)
            except (TypeError, ValueError):
                raise ValidationError("商品行格式错误，数量必须为整数")
            if not product_id or quantity < 1:
                raise ValidationError("商品行格式错误，数量至少为 1")

            product = self.db.get(Product, product_id)
            if product is None:
                raise NotFoundError(f"商品 {product_id} 不存在")

            self._decrement_stock(product, quantity)

            item_total = Decimal(product.price) * quantity
            total_amount += item_total

            order_items.append(
                OrderItem(product_id=product.id, quantity=quantity, position=len(order_items))
            )

            bucket = vendor_buckets.get(product.shop_id)
            if bucket is None:
                bucket = vendor_buckets[product.shop_id] = {
                    "vendor_id": product.shop.owner_id,
                    "shop_id": product.shop_id,
                    "items": [],
                    "total_amount": Decimal("0"),
                }
            bucket["items"].append(
                SubOrderItem(
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    quantity=quantity,
                    position=len(bucket["items"]),
                )
            )
            bucket["total_amount"] += item_total

        order = Order(
            user_id=user.id,
            contact_name=user.name,
            contact_email=user.email,
            items=order_items,
            total_amount=total_amount,
            shipping_address=address,
            payment_method=payment_method,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
        )
        if payment:
            order.payment_status = PaymentStatus.PAID
            order.payment_session_id = payment["session_id"]
            order.payment_result = payment.get("result")
            order.paid_at = payment.get("paid_at")
        self.db.add(order)

        for bucket in vendor_buckets.values():
            order.sub_orders.append(
                SubOrder(
                    vendor_id=bucket["vendor_id"],
                    shop_id=bucket["shop_id"],
                    items=bucket["items"],
                    total_amount=bucket["total_amount"],
                    status=OrderStatus.PENDING,
                    payment_status=PaymentStatus.PAID if payment else PaymentStatus.PENDING,
                )
            )

        self.db.flush()
        return order

    def _decrement_stock(self, product: Product, quantity: int) -> None:
        """原子扣减库存：带 stock >= quantity 条件的 UPDATE"""
        if product.stock < quantity:
            raise InsufficientStockError(product.name, product.id)

        result = self.db.execute(
            update(Product)
            .where(Product.id == product.id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount != 1:
            # 读取之后被并发订单抢先扣减
            raise InsufficientStockError(product.name, product.id)

        logger.debug(f"扣减库存: product_id={product.id}, quantity={quantity}")

    # ==================== 查询 ====================

    def list_user_orders(self, user_id: str) -> List[Order]:
        return list(
            self.db.execute(
                select(Order)
                .where(Order.user_id == user_id)
                .order_by(Order.created_at.desc())
            ).scalars().all()
        )

    def list_vendor_sub_orders(self, vendor_id: str) -> List[SubOrder]:
        """商家的子订单，按创建时间倒序"""
        return list(
            self.db.execute(
                select(SubOrder)
                .where(SubOrder.vendor_id == vendor_id)
                .order_by(SubOrder.created_at.desc())
            ).scalars().all()
        )

    def list_all_orders(self) -> List[Order]:
        return list(
            self.db.execute(
                select(Order).order_by(Order.created_at.desc())
            ).scalars().all()
        )

    # ==================== 状态变更 ====================

    def update_status(self, actor: CurrentUser, order_id: str, status: OrderStatus):
        """更新子订单状态并聚合父订单状态

        id 不是子订单时，管理员可以直接更新父订单状态（不做聚合）。

        Returns:
            更新后的子订单，或管理员直接更新的父订单
        """
        status = OrderStatus(status)
        sub_order = self.db.get(SubOrder, order_id)

        if sub_order is None:
            if not actor.is_admin:
                raise NotFoundError("订单不存在或无权操作")
            return self._update_parent_status(order_id, status)

        if sub_order.vendor_id != actor.id and not actor.is_admin:
            raise ForbiddenError("无权更新此订单")

        try:
            sub_order.status = status
            self.db.flush()
            parent = StatusAggregator(self.db).recompute(sub_order.parent_order_id)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"更新子订单状态失败: sub_order_id={order_id}, error={str(e)}")
            raise

        logger.info(
            f"子订单状态更新: sub_order_id={order_id}, status={status.value}, "
            f"parent_order_id={parent.id}, parent_status={parent.status.value}"
        )

        if status == OrderStatus.DELIVERED and self.notifier:
            self.notifier.order_delivered(parent)

        return sub_order

    def _update_parent_status(self, order_id: str, status: OrderStatus) -> Order:
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFoundError("订单不存在")

        order.status = status
        order.status_overridden = True
        self.db.commit()
        logger.info(f"管理员直接更新父订单状态: order_id={order_id}, status={status.value}")
        return order

    def cancel_order(self, actor: CurrentUser, order_id: str) -> Order:
        """取消订单：父订单与全部子订单直接置为 cancelled（不回补库存）"""
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFoundError("订单不存在")

        if order.user_id != actor.id and not actor.is_admin:
            raise UnauthorizedError("无权取消此订单")

        if order.status not in CANCELLABLE_STATUSES:
            raise InvalidStateError(
                f"订单无法取消，当前状态为 {order.status.value}",
                current_status=order.status.value,
            )

        try:
            order.status = OrderStatus.CANCELLED
            for sub_order in order.sub_orders:
                sub_order.status = OrderStatus.CANCELLED
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"取消订单失败: order_id={order_id}, error={str(e)}")
            raise

        logger.info(f"订单已取消: order_id={order_id}, operator={actor.id}")
        return order
