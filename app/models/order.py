import enum

from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    TIMESTAMP,
    ForeignKey,
    Enum,
    Boolean,
    JSON,
    Index,
    false,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from app.db.base import Base, generate_id


# 1️ 订单状态枚举（父订单与子订单共用）

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


def order_status_column():
    return Column(
        Enum(
            OrderStatus,
            name="order_status_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=OrderStatus.PENDING,
        comment="订单状态",
    )


def payment_status_column():
    return Column(
        Enum(
            PaymentStatus,
            name="payment_status_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=PaymentStatus.PENDING,
        comment="支付状态",
    )


JSONType = JSON().with_variant(JSONB, "postgresql")


# 2️ 父订单表

class Order(Base):
    __tablename__ = "orders"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_id,
    )

    user_id = Column(
        String(36),
        nullable=False,
        index=True,
        comment="下单用户ID",
    )

    # 下单时的联系人快照，用于发送通知
    contact_name = Column(String(100), nullable=True)
    contact_email = Column(String(255), nullable=True)

    total_amount = Column(
        Numeric(12, 2),
        nullable=False,
        comment="订单总金额（所有子订单之和）",
    )

    status = order_status_column()
    payment_status = payment_status_column()

    # 管理员直接设置过父订单状态，批量校正时跳过
    status_overridden = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    payment_method = Column(
        String(50),
        nullable=False,
        default="Cash on Delivery",
    )

    # 支付会话ID，唯一约束保证同一支付只生成一个订单
    payment_session_id = Column(
        String(255),
        nullable=True,
        unique=True,
        comment="支付服务商会话ID",
    )

    payment_result = Column(
        JSONType,
        nullable=True,
        comment="支付回执（状态、付款邮箱、收据链接）",
    )

    paid_at = Column(
        TIMESTAMP(timezone=True),
        nullable=True,
    )

    shipping_address = Column(
        JSONType,
        nullable=False,
        comment="收货地址",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    items = relationship(
        "OrderItem",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    sub_orders = relationship(
        "SubOrder",
        back_populates="parent_order",
        cascade="all, delete-orphan",
    )


class OrderItem(Base):
    """父订单明细（只记录商品和数量，不做价格快照）"""
    __tablename__ = "order_items"

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    product_id = Column(
        String(36),
        nullable=False,
    )

    quantity = Column(
        Integer,
        nullable=False,
    )

    position = Column(
        Integer,
        nullable=False,
        default=0,
    )


# 3️ 索引

Index(
    "idx_orders_user_created_desc",
    Order.user_id,
    Order.created_at.desc(),
)
