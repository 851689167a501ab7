"""订单通知相关的 Celery 任务"""

import logging

import requests

from celery_app import app
from app.core.config import settings

logger = logging.getLogger(__name__)

SUBJECTS = {
    "confirmation": "Order Confirmation #{order_id}",
    "delivered": "Order Delivered! #{order_id}",
}

MESSAGES = {
    "confirmation": "Thank you for your purchase. We're getting your order ready to be shipped.",
    "delivered": "Your order has been successfully delivered. We hope you enjoy your purchase!",
}


def build_email_text(payload: dict) -> str:
    """纯文本邮件正文"""
    kind = payload.get("type", "confirmation")
    lines = [
        f"Hi {payload.get('user_name') or 'there'},",
        "",
        MESSAGES.get(kind, MESSAGES["confirmation"]),
        "",
        f"Order #{payload['order_id']}",
    ]
    for item in payload.get("items", []):
        lines.append(f"  {item['name']} x{item['quantity']}  ${item['price'] * item['quantity']:.2f}")
    lines.append(f"Total: ${payload.get('total_amount', 0):.2f}")

    address = payload.get("shipping_address") or {}
    if address:
        lines += [
            "",
            "Shipping to:",
            f"  {address.get('street', '')}",
            f"  {address.get('city', '')}, {address.get('state', '')} {address.get('zipCode', '')}",
            f"  {address.get('country', '')}",
        ]
    lines += ["", f"View order: {settings.CLIENT_URL}/orders/{payload['order_id']}"]
    return "\n".join(lines)


@app.task(
    name='tasks.notification.send_order_email',
    bind=True,
    max_retries=3,
    default_retry_delay=30,
)
def send_order_email(self, payload: dict):
    """发送订单邮件（确认 / 已送达）

    Args:
        payload: 由 notification_service.build_order_payload 生成
    """
    order_id = payload.get("order_id")

    if not settings.RESEND_API_KEY:
        logger.warning(f"未配置 RESEND_API_KEY，跳过邮件发送: order_id={order_id}")
        return {"status": "skipped", "order_id": order_id}

    kind = payload.get("type", "confirmation")
    try:
        response = requests.post(
            settings.RESEND_API_URL,
            headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
            json={
                "from": settings.FROM_EMAIL,
                "to": [payload["email"]],
                "subject": SUBJECTS.get(kind, SUBJECTS["confirmation"]).format(order_id=order_id),
                "text": build_email_text(payload),
            },
            timeout=10,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"订单邮件发送失败: order_id={order_id}, error={str(e)}")
        raise self.retry(exc=e)

    logger.info(f"订单邮件已发送: order_id={order_id}, type={kind}")
    return {"status": "sent", "order_id": order_id}


# 导出任务
__all__ = [
    'send_order_email',
]
