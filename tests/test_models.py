"""模型单元测试"""
import pytest
from decimal import Decimal
from sqlalchemy.exc import IntegrityError

from app.models import Order, Product, SubOrder
from app.models.order import OrderStatus, PaymentStatus


class TestModels:
    """数据模型测试类"""

    def test_product_stock_cannot_go_negative(self, db_session, catalog):
        product = catalog["product_a"]
        product.stock = -1

        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_order_defaults(self, db_session, customer, sample_address):
        order = Order(user_id=customer.id, total_amount=Decimal("0"), shipping_address=sample_address)
        db_session.add(order)
        db_session.commit()

        assert order.id is not None
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.payment_method == "Cash on Delivery"
        assert order.created_at is not None
        assert order.status_overridden is False

    def test_payment_session_id_unique(self, db_session, customer, sample_address):
        for _ in range(2):
            db_session.add(Order(
                user_id=customer.id,
                total_amount=Decimal("10"),
                shipping_address=sample_address,
                payment_session_id="cs_dup",
            ))

        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_status_stored_as_value(self, db_session, customer, catalog, sample_address):
        order = Order(user_id=customer.id, total_amount=Decimal("10"), shipping_address=sample_address)
        order.sub_orders.append(SubOrder(
            vendor_id="vendor-a",
            shop_id=catalog["shop_a"].id,
            total_amount=Decimal("10"),
            status=OrderStatus.SHIPPED,
        ))
        db_session.add(order)
        db_session.commit()

        raw = db_session.connection().exec_driver_sql(
            "SELECT status FROM sub_orders"
        ).scalar_one()
        assert raw == "shipped"

    def test_product_shop_relationship(self, catalog):
        assert catalog["product_a"].shop.name == "Shop A"
        assert isinstance(catalog["shop_b"].products[0], Product)
