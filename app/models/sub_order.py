from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    TIMESTAMP,
    ForeignKey,
    Index,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, generate_id
from app.models.order import order_status_column, payment_status_column


class SubOrder(Base):
    """子订单：父订单按店铺拆分，由各自商家独立处理"""
    __tablename__ = "sub_orders"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_id,
    )

    parent_order_id = Column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="父订单ID",
    )

    vendor_id = Column(
        String(36),
        nullable=False,
        index=True,
        comment="商家（店主）用户ID",
    )

    shop_id = Column(
        String(36),
        ForeignKey("shops.id"),
        nullable=False,
        comment="店铺ID",
    )

    total_amount = Column(
        Numeric(12, 2),
        nullable=False,
        comment="子订单金额",
    )

    status = order_status_column()
    payment_status = payment_status_column()

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

    parent_order = relationship("Order", back_populates="sub_orders")
    shop = relationship("Shop")
    items = relationship(
        "SubOrderItem",
        cascade="all, delete-orphan",
        order_by="SubOrderItem.position",
    )

    @property
    def shop_name(self):
        return self.shop.name if self.shop is not None else None


class SubOrderItem(Base):
    """子订单明细（名称、价格为下单时快照）"""
    __tablename__ = "sub_order_items"

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    sub_order_id = Column(
        String(36),
        ForeignKey("sub_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    product_id = Column(String(36), nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)

    position = Column(
        Integer,
        nullable=False,
        default=0,
    )


Index(
    "idx_sub_orders_vendor_created_desc",
    SubOrder.vendor_id,
    SubOrder.created_at.desc(),
)
