"""经营统计服务"""

import logging
from typing import Dict, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.core.security import CurrentUser
from app.models.order import Order, OrderStatus
from app.models.product import Product
from app.models.shop import Shop
from app.models.sub_order import SubOrder, SubOrderItem

logger = logging.getLogger(__name__)

Number = Union[int, float]


class AnalyticsService:

    def __init__(self, db: Session):
        self.db = db

    def _count(self, stmt) -> int:
        return int(self.db.execute(stmt).scalar_one() or 0)

    def vendor_summary(self, user: CurrentUser) -> Dict[str, Number]:
        """商家名下店铺的商品数、子订单数、售出件数和收入

        Raises:
            NotFoundError: 当前用户没有店铺
        """
        shop_ids = self.db.execute(
            select(Shop.id).where(Shop.owner_id == user.id)
        ).scalars().all()
        if not shop_ids:
            raise NotFoundError("店铺不存在")

        total_products = self._count(
            select(func.count(Product.id)).where(Product.shop_id.in_(shop_ids))
        )
        total_orders = self._count(
            select(func.count(SubOrder.id)).where(SubOrder.shop_id.in_(shop_ids))
        )

        active = (SubOrder.shop_id.in_(shop_ids), SubOrder.status != OrderStatus.CANCELLED)
        revenue = self.db.execute(
            select(func.coalesce(func.sum(SubOrder.total_amount), 0)).where(*active)
        ).scalar_one()
        items_sold = self._count(
            select(func.coalesce(func.sum(SubOrderItem.quantity), 0))
            .join(SubOrder, SubOrderItem.sub_order_id == SubOrder.id)
            .where(*active)
        )

        logger.info(f"商家统计: vendor_id={user.id}, shops={len(shop_ids)}, orders={total_orders}")
        return {
            "total_products": total_products,
            "total_orders": total_orders,
            "total_items_sold": items_sold,
            "total_revenue": float(revenue or 0),
        }

    def admin_summary(self) -> Dict[str, Number]:
        """平台父订单数、店铺数、商品数和收入"""
        revenue = self.db.execute(
            select(func.coalesce(func.sum(Order.total_amount), 0))
            .where(Order.status != OrderStatus.CANCELLED)
        ).scalar_one()

        return {
            "total_revenue": float(revenue or 0),
            "total_orders": self._count(select(func.count(Order.id))),
            "total_shops": self._count(select(func.count(Shop.id))),
            "total_products": self._count(select(func.count(Product.id))),
        }
