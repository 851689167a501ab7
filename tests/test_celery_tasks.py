"""Celery 任务单元测试"""
import pytest
from unittest.mock import Mock, patch

import requests

from tasks.notification_tasks import build_email_text, send_order_email
from tasks.order_tasks import recompute_parent_statuses


@pytest.fixture
def payload():
    return {
        "type": "confirmation",
        "email": "buyer@example.com",
        "user_name": "Alice",
        "order_id": "order-1",
        "total_amount": 40.0,
        "shipping_address": {"street": "1 Market St", "city": "SF", "state": "CA",
                             "zipCode": "94105", "country": "US"},
        "payment_method": "Cash on Delivery",
        "items": [
            {"name": "Product A", "price": 10.0, "quantity": 2},
            {"name": "Product B", "price": 20.0, "quantity": 1},
        ],
    }


class TestNotificationTasks:
    """邮件通知任务测试类"""

    def test_skipped_without_api_key(self, payload):
        with patch('tasks.notification_tasks.settings') as mock_settings, \
             patch('tasks.notification_tasks.requests') as mock_requests:
            mock_settings.RESEND_API_KEY = ""

            result = send_order_email(payload)

            assert result == {"status": "skipped", "order_id": "order-1"}
            mock_requests.post.assert_not_called()

    def test_send_confirmation(self, payload):
        with patch('tasks.notification_tasks.settings') as mock_settings, \
             patch('tasks.notification_tasks.requests.post') as mock_post:
            mock_settings.RESEND_API_KEY = "re_test"
            mock_settings.RESEND_API_URL = "https://api.resend.com/emails"
            mock_settings.FROM_EMAIL = "shop@example.com"
            mock_settings.CLIENT_URL = "http://localhost:5173"

            result = send_order_email(payload)

            assert result == {"status": "sent", "order_id": "order-1"}
            args, kwargs = mock_post.call_args
            assert args[0] == "https://api.resend.com/emails"
            assert kwargs["headers"] == {"Authorization": "Bearer re_test"}
            assert kwargs["json"]["to"] == ["buyer@example.com"]
            assert kwargs["json"]["from"] == "shop@example.com"
            assert kwargs["json"]["subject"] == "Order Confirmation #order-1"
            mock_post.return_value.raise_for_status.assert_called_once()

    def test_delivered_subject(self, payload):
        payload["type"] = "delivered"
        with patch('tasks.notification_tasks.settings') as mock_settings, \
             patch('tasks.notification_tasks.requests.post') as mock_post:
            mock_settings.RESEND_API_KEY = "re_test"

            send_order_email(payload)

            assert mock_post.call_args.kwargs["json"]["subject"] == "Order Delivered! #order-1"

    def test_request_failure_is_retried(self, payload):
        """直接调用时 retry 会重新抛出原始异常"""
        with patch('tasks.notification_tasks.settings') as mock_settings, \
             patch('tasks.notification_tasks.requests.post') as mock_post:
            mock_settings.RESEND_API_KEY = "re_test"
            mock_post.side_effect = requests.ConnectionError("resend down")

            with pytest.raises(requests.ConnectionError):
                send_order_email(payload)

    def test_build_email_text(self, payload):
        text = build_email_text(payload)

        assert text.startswith("Hi Alice,")
        assert "Product A x2  $20.00" in text
        assert "Total: $40.00" in text
        assert "SF, CA 94105" in text
        assert "/orders/order-1" in text


class TestOrderTasks:
    """订单 Celery 任务测试类"""

    def test_recompute_parent_statuses_success(self):
        db_mock = Mock()

        with patch('tasks.order_tasks.SessionLocal') as mock_session_local, \
             patch('tasks.order_tasks.StatusAggregator') as mock_aggregator:
            mock_session_local.return_value = db_mock
            mock_aggregator.return_value.recompute_all.return_value = 3

            result = recompute_parent_statuses(100)

            assert result == "成功校正 3 条父订单状态"
            mock_aggregator.return_value.recompute_all.assert_called_once_with(100)
            db_mock.close.assert_called_once()

    def test_recompute_parent_statuses_exception(self):
        db_mock = Mock()

        with patch('tasks.order_tasks.SessionLocal') as mock_session_local, \
             patch('tasks.order_tasks.StatusAggregator') as mock_aggregator:
            mock_session_local.return_value = db_mock
            mock_aggregator.return_value.recompute_all.side_effect = Exception("数据库错误")

            with pytest.raises(Exception) as exc_info:
                recompute_parent_statuses()

            assert "数据库错误" in str(exc_info.value)
            db_mock.rollback.assert_called_once()
            db_mock.close.assert_called_once()
