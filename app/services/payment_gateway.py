"""Stripe 支付网关封装"""

import logging
from typing import List, Optional

import stripe

from app.core.config import settings
from app.core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


def _field(obj, name, default=None):
    """读取 Stripe 对象字段，缺失时返回默认值"""
    if obj is None or isinstance(obj, str):
        return default
    try:
        return obj[name]
    except (KeyError, TypeError):
        return getattr(obj, name, default)


class StripeGateway:
    """Stripe Checkout 会话的创建与查询"""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or settings.STRIPE_SECRET_KEY

    def create_checkout_session(
        self,
        line_items: List[dict],
        customer_email: str,
        metadata: dict,
    ) -> dict:
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                payment_method_types=["card"],
                line_items=line_items,
                mode="payment",
                success_url=f"{settings.CLIENT_URL}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{settings.CLIENT_URL}/cart",
                customer_email=customer_email or None,
                metadata=metadata,
            )
        except stripe.StripeError as e:
            logger.error(f"创建支付会话失败: {str(e)}")
            raise ExternalServiceError(f"支付服务错误: {e.user_message or str(e)}")

        logger.info(f"创建支付会话: session_id={session.id}")
        return {"id": session.id, "url": session.url}

    def retrieve_checkout_session(self, session_id: str) -> dict:
        """查询支付会话，返回支付状态、元数据和收据链接"""
        try:
            session = stripe.checkout.Session.retrieve(
                session_id,
                api_key=self.api_key,
                expand=["payment_intent.latest_charge"],
            )
        except stripe.StripeError as e:
            logger.error(f"查询支付会话失败: session_id={session_id}, error={str(e)}")
            raise ExternalServiceError(f"支付校验失败: {e.user_message or str(e)}")

        charge = _field(_field(session, "payment_intent"), "latest_charge")
        metadata = _field(session, "metadata")

        return {
            "id": session.id,
            "payment_status": _field(session, "payment_status"),
            "customer_email": _field(_field(session, "customer_details"), "email"),
            "user_id": _field(metadata, "userId"),
            "shipping_address": _field(metadata, "shippingAddress"),
            "receipt_url": _field(charge, "receipt_url"),
        }
