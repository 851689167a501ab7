"""统计路由单元测试"""
import pytest
from unittest.mock import Mock, patch
from fastapi.testclient import TestClient

from app.main import app
from app.core.dependencies import get_current_user, get_db
from app.core.exceptions import NotFoundError
from app.services.order_service import OrderService


class TestAnalyticsRouter:
    """统计路由测试类"""

    @pytest.fixture
    def client(self, db_session, customer):
        app.dependency_overrides[get_current_user] = lambda: customer
        app.dependency_overrides[get_db] = lambda: db_session
        try:
            yield TestClient(app)
        finally:
            app.dependency_overrides.clear()

    @pytest.fixture
    def mock_service(self):
        with patch('app.routers.analytics_router.AnalyticsService') as mock:
            service_mock = Mock()
            mock.return_value = service_mock
            yield service_mock

    def login_as(self, user):
        app.dependency_overrides[get_current_user] = lambda: user

    def test_vendor_analytics(self, client, mock_service, vendor_a):
        self.login_as(vendor_a)
        mock_service.vendor_summary.return_value = {
            "total_products": 3,
            "total_orders": 4,
            "total_items_sold": 9,
            "total_revenue": 120.5,
        }

        response = client.get("/api/v1/analytics/vendor")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"] == {
            "totalProducts": 3,
            "totalOrders": 4,
            "totalItemsSold": 9,
            "totalRevenue": 120.5,
        }
        mock_service.vendor_summary.assert_called_once_with(vendor_a)

    def test_vendor_analytics_forbidden_for_customer(self, client, mock_service):
        response = client.get("/api/v1/analytics/vendor")

        assert response.status_code == 403
        assert response.json()["success"] is False
        mock_service.vendor_summary.assert_not_called()

    def test_vendor_without_shop(self, client, mock_service, vendor_a):
        self.login_as(vendor_a)
        mock_service.vendor_summary.side_effect = NotFoundError("店铺不存在")

        response = client.get("/api/v1/analytics/vendor")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "店铺不存在"}

    def test_admin_analytics_admin_only(self, client, mock_service, vendor_a, admin):
        self.login_as(vendor_a)
        assert client.get("/api/v1/analytics/admin").status_code == 403
        mock_service.admin_summary.assert_not_called()

        self.login_as(admin)
        mock_service.admin_summary.return_value = {
            "total_revenue": 40.0,
            "total_orders": 2,
            "total_shops": 2,
            "total_products": 2,
        }
        response = client.get("/api/v1/analytics/admin")

        assert response.status_code == 200
        assert response.json()["data"]["totalShops"] == 2

    def test_unexpected_error(self, client, mock_service, admin):
        self.login_as(admin)
        mock_service.admin_summary.side_effect = Exception("数据库连接失败")

        response = client.get("/api/v1/analytics/admin")

        assert response.status_code == 500
        assert response.json()["success"] is False

    def test_vendor_analytics_against_database(self, client, db_session, customer, vendor_a,
                                               catalog, sample_address):
        order = OrderService(db_session).place_order(
            customer,
            [
                {"product": catalog["product_a"].id, "quantity": 2},
                {"product": catalog["product_b"].id, "quantity": 1},
            ],
            sample_address,
        )
        OrderService(db_session).cancel_order(customer, order.id)
        OrderService(db_session).place_order(
            customer, [{"product": catalog["product_a"].id, "quantity": 1}], sample_address
        )

        self.login_as(vendor_a)
        data = client.get("/api/v1/analytics/vendor").json()["data"]

        assert data == {
            "totalProducts": 1,
            "totalOrders": 2,
            "totalItemsSold": 1,
            "totalRevenue": 10.0,
        }
