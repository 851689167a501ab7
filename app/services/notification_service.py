"""订单通知派发（尽力而为）

通知通过 Celery 异步发送，派发失败只记录日志，绝不影响订单本身。
"""

import logging

from app.models.order import Order
from tasks.notification_tasks import send_order_email

logger = logging.getLogger(__name__)


def build_order_payload(order: Order, kind: str) -> dict:
    """构造通知任务参数（只包含可 JSON 序列化的数据）"""
    items = []
    for sub_order in order.sub_orders:
        for item in sub_order.items:
            items.append({
                "name": item.name,
                "price": float(item.price),
                "quantity": item.quantity,
            })

    return {
        "type": kind,
        "email": order.contact_email,
        "user_name": order.contact_name or "",
        "order_id": order.id,
        "total_amount": float(order.total_amount),
        "shipping_address": order.shipping_address,
        "payment_method": order.payment_method,
        "items": items,
    }


class OrderNotifier:
    """订单邮件通知"""

    def __init__(self, task=None):
        self.task = task or send_order_email

    def order_placed(self, order: Order) -> bool:
        return self._dispatch(order, "confirmation")

    def order_delivered(self, order: Order) -> bool:
        return self._dispatch(order, "delivered")

    def _dispatch(self, order: Order, kind: str) -> bool:
        if not order.contact_email:
            logger.warning(f"订单缺少联系邮箱，跳过通知: order_id={order.id}")
            return False
        try:
            payload = build_order_payload(order, kind)
            self.task.delay(payload)
            logger.info(f"已提交订单通知: order_id={order.id}, type={kind}")
            return True
        except Exception as e:
            logger.error(f"订单通知派发失败: order_id={order.id}, error={str(e)}")
            return False
