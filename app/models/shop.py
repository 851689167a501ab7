import enum

from sqlalchemy import (
    Column,
    String,
    TIMESTAMP,
    Enum,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, generate_id


class ShopStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Shop(Base):
    __tablename__ = "shops"

    id = Column(
        String(36),
        primary_key=True,
        default=generate_id,
    )

    owner_id = Column(
        String(36),
        nullable=False,
        index=True,
        comment="店主（商家用户ID）",
    )

    name = Column(
        String(50),
        nullable=False,
        unique=True,
        comment="店铺名称",
    )

    description = Column(
        String(500),
        nullable=True,
    )

    status = Column(
        Enum(
            ShopStatus,
            name="shop_status_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=ShopStatus.ACTIVE,
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    products = relationship("Product", back_populates="shop")
