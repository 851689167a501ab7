import enum

from sqlalchemy import (
    Column,
    String,
    Text,
    Integer,
    Numeric,
    TIMESTAMP,
    ForeignKey,
    CheckConstraint,
    Index,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, generate_id


class ProductCategory(str, enum.Enum):
    ELECTRONICS = "Electronics"
    FASHION = "Fashion"
    HOME = "Home"
    SPORTS = "Sports"
    BOOKS = "Books"
    BEAUTY = "Beauty"


class Product(Base):
    __tablename__ = "products"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_id,
    )

    shop_id = Column(
        String(36),
        ForeignKey("shops.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="所属店铺ID",
    )

    name = Column(
        String(255),
        nullable=False,
        comment="商品名称",
    )

    description = Column(
        Text,
        nullable=True,
    )

    category = Column(
        String(32),
        nullable=False,
        default=ProductCategory.HOME.value,
        comment="商品分类",
    )

    price = Column(
        Numeric(12, 2),
        nullable=False,
        comment="单价",
    )

    stock = Column(
        Integer,
        nullable=False,
        server_default="0",
        comment="当前可售库存",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
        onupdate=func.now(),
    )

    shop = relationship("Shop", back_populates="products")

    __table_args__ = (
        CheckConstraint(
            "stock >= 0",
            name="ck_product_stock_non_negative",
        ),
    )


Index(
    "idx_products_name",
    Product.name,
)
