"""购物车服务"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.cart import Cart, CartItem
from app.models.product import Product

logger = logging.getLogger(__name__)


class CartService:

    def __init__(self, db: Session):
        self.db = db

    def find_cart(self, user_id: str) -> Optional[Cart]:
        return self.db.execute(
            select(Cart).where(Cart.user_id == user_id)
        ).scalar_one_or_none()

    def get_or_create_cart(self, user_id: str) -> Cart:
        """首次访问时创建购物车"""
        cart = self.find_cart(user_id)
        if cart is None:
            cart = Cart(user_id=user_id, items=[])
            self.db.add(cart)
            self.db.commit()
            logger.info(f"创建购物车: user_id={user_id}")
        return cart

    def add_item(self, user_id: str, product_id: str, quantity: int = 1, variant: Optional[dict] = None) -> Cart:
        """加入购物车，同商品同规格则累加数量"""
        product = self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError("商品不存在")

        cart = self.get_or_create_cart(user_id)
        variant = variant or {}
        quantity = quantity or 1

        existing = next(
            (
                item for item in cart.items
                if item.product_id == product_id
                and (not variant.get("value") or item.variant_value == variant.get("value"))
            ),
            None,
        )

        try:
            if existing is not None:
                existing.quantity += quantity
            else:
                cart.items.append(
                    CartItem(
                        product_id=product_id,
                        quantity=quantity,
                        variant_type=variant.get("type"),
                        variant_value=variant.get("value"),
                        price=product.price,
                        position=max((item.position for item in cart.items), default=-1) + 1,
                    )
                )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"加入购物车失败: user_id={user_id}, product_id={product_id}, error={str(e)}")
            raise

        logger.debug(f"购物车更新: user_id={user_id}, product_id={product_id}, quantity={quantity}")
        return cart

    def remove_item(self, user_id: str, item_id: str) -> Cart:
        cart = self.find_cart(user_id)
        if cart is None:
            raise NotFoundError("购物车不存在")

        cart.items = [item for item in cart.items if item.id != item_id]
        self.db.commit()
        return cart

    def clear_cart(self, user_id: str) -> None:
        """清空购物车（不提交，供结算流程在同一事务中使用）"""
        cart = self.find_cart(user_id)
        if cart is not None:
            cart.items.clear()
            self.db.flush()

    def clear(self, user_id: str) -> None:
        self.clear_cart(user_id)
        self.db.commit()
