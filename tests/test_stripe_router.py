"""支付路由单元测试"""
import pytest
from decimal import Decimal
from unittest.mock import Mock, patch
from fastapi.testclient import TestClient

from app.main import app
from app.core.dependencies import get_current_user, get_db, get_redlock
from app.core.exceptions import ConflictError, ExternalServiceError, ForbiddenError, ValidationError
from app.models import Order
from app.models.order import OrderStatus, PaymentStatus


class TestStripeRouter:
    """支付路由测试类"""

    @pytest.fixture
    def client(self, db_session, customer, mock_redlock):
        app.dependency_overrides[get_current_user] = lambda: customer
        app.dependency_overrides[get_db] = lambda: db_session
        app.dependency_overrides[get_redlock] = lambda: mock_redlock
        try:
            yield TestClient(app)
        finally:
            app.dependency_overrides.clear()

    @pytest.fixture
    def mock_service(self):
        """创建模拟支付服务"""
        with patch('app.routers.stripe_router.PaymentService') as mock, \
             patch('app.routers.stripe_router.OrderNotifier'):
            service_mock = Mock()
            mock.return_value = service_mock
            yield service_mock

    @pytest.fixture
    def paid_order(self, sample_address):
        return Order(
            id="order-9",
            user_id="user-1",
            items=[],
            total_amount=Decimal("40"),
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PAID,
            payment_method="Card",
            payment_session_id="cs_test_1",
            shipping_address=sample_address,
        )

    def test_create_checkout_session(self, client, mock_service, customer, sample_address):
        mock_service.create_checkout_session.return_value = {"id": "cs_test_1", "url": "https://pay/cs_test_1"}

        response = client.post("/api/v1/stripe/create-checkout-session", json={"shippingAddress": sample_address})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": None,
            "id": "cs_test_1",
            "url": "https://pay/cs_test_1",
        }
        mock_service.create_checkout_session.assert_called_once_with(customer, sample_address)

    def test_create_checkout_session_empty_cart(self, client, mock_service):
        mock_service.create_checkout_session.side_effect = ValidationError("购物车为空")

        response = client.post("/api/v1/stripe/create-checkout-session", json={})

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "购物车为空"}

    def test_create_checkout_session_provider_error(self, client, mock_service):
        mock_service.create_checkout_session.side_effect = ExternalServiceError("支付服务错误: boom", status_code=400)

        response = client.post("/api/v1/stripe/create-checkout-session", json={})

        assert response.status_code == 400

    def test_verify_payment_success(self, client, mock_service, paid_order, customer):
        mock_service.verify_payment.return_value = (paid_order, "支付成功")

        response = client.post("/api/v1/stripe/verify-payment", json={"sessionId": "cs_test_1"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "支付成功"
        assert data["data"]["paymentStatus"] == "paid"
        assert data["data"]["paymentSessionId"] == "cs_test_1"
        mock_service.verify_payment.assert_called_once_with(customer, "cs_test_1")

    def test_verify_payment_already_processed(self, client, mock_service):
        mock_service.verify_payment.return_value = (None, "订单已处理或购物车为空")

        response = client.post("/api/v1/stripe/verify-payment", json={"sessionId": "cs_test_1"})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["data"] is None

    def test_verify_payment_not_paid(self, client, mock_service):
        mock_service.verify_payment.side_effect = ValidationError("支付未完成")

        response = client.post("/api/v1/stripe/verify-payment", json={"sessionId": "cs_test_1"})

        assert response.status_code == 400
        assert response.json()["message"] == "支付未完成"

    def test_verify_payment_other_users_session(self, client, mock_service):
        mock_service.verify_payment.side_effect = ForbiddenError("无权确认此支付会话")

        response = client.post("/api/v1/stripe/verify-payment", json={"sessionId": "cs_test_1"})

        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "无权确认此支付会话"}

    def test_verify_payment_lock_conflict(self, client, mock_service):
        mock_service.verify_payment.side_effect = ConflictError("支付确认处理中，请稍后重试")

        response = client.post("/api/v1/stripe/verify-payment", json={"sessionId": "cs_test_1"})

        assert response.status_code == 429

    def test_verify_payment_unknown_exception(self, client, mock_service):
        mock_service.verify_payment.side_effect = RuntimeError("网关超时")

        response = client.post("/api/v1/stripe/verify-payment", json={"sessionId": "cs_test_1"})

        assert response.status_code == 500
        assert response.json()["message"] == "支付确认失败: 网关超时"

    def test_verify_payment_passes_redlock(self, client, mock_redlock):
        with patch('app.routers.stripe_router.PaymentService') as mock, \
             patch('app.routers.stripe_router.OrderNotifier'):
            mock.return_value.verify_payment.return_value = (None, "订单已处理或购物车为空")

            client.post("/api/v1/stripe/verify-payment", json={"sessionId": "cs_test_1"})

            assert mock.call_args.kwargs["rlock"] is mock_redlock
