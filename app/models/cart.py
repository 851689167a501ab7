from sqlalchemy import (
    Column,
    String,
    Integer,
    Numeric,
    TIMESTAMP,
    ForeignKey,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, generate_id


class Cart(Base):
    __tablename__ = "carts"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_id,
    )

    # 每个用户只有一个购物车
    user_id = Column(
        String(36),
        nullable=False,
        unique=True,
        comment="用户ID",
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.position",
    )


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_id,
    )

    cart_id = Column(
        String(36),
        ForeignKey("carts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # 商品被删除后保留条目，结算时跳过
    product_id = Column(
        String(36),
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
    )

    quantity = Column(
        Integer,
        nullable=False,
        default=1,
    )

    variant_type = Column(String(50), nullable=True, comment="规格类型，如 Size")
    variant_value = Column(String(100), nullable=True, comment="规格值，如 XL")

    price = Column(
        Numeric(12, 2),
        nullable=True,
        comment="加入购物车时的价格快照",
    )

    position = Column(
        Integer,
        nullable=False,
        default=0,
    )

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")

    @property
    def variant(self):
        if self.variant_type is None and self.variant_value is None:
            return None
        return {"type": self.variant_type, "value": self.variant_value}
