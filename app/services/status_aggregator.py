"""父订单状态聚合

父订单状态完全由其全部子订单状态推导，任何时候都可以重新计算。
优先级自上而下，先命中者生效：
    1. 全部 cancelled            -> cancelled
    2. 全部 delivered/cancelled  -> delivered
    3. 任一 shipped/delivered    -> shipped
    4. 任一 processing           -> processing
    5. 其他                      -> pending
"""

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError
from app.models.order import Order, OrderStatus
from app.models.sub_order import SubOrder

logger = logging.getLogger(__name__)


def aggregate_parent_status(statuses: Iterable[str]) -> OrderStatus:
    """根据子订单状态集合推导父订单状态（纯函数）"""
    values = [OrderStatus(s) for s in statuses]

    # 没有子订单时不做推导
    if not values:
        return OrderStatus.PENDING

    if all(s == OrderStatus.CANCELLED for s in values):
        return OrderStatus.CANCELLED
    if all(s in (OrderStatus.DELIVERED, OrderStatus.CANCELLED) for s in values):
        return OrderStatus.DELIVERED
    if any(s in (OrderStatus.SHIPPED, OrderStatus.DELIVERED) for s in values):
        return OrderStatus.SHIPPED
    if any(s == OrderStatus.PROCESSING for s in values):
        return OrderStatus.PROCESSING
    return OrderStatus.PENDING


class StatusAggregator:
    """把子订单状态汇总回父订单"""

    def __init__(self, db: Session):
        self.db = db

    def sibling_statuses(self, parent_order_id: str) -> list:
        return list(
            self.db.execute(
                select(SubOrder.status).where(SubOrder.parent_order_id == parent_order_id)
            ).scalars().all()
        )

    def recompute(self, parent_order_id: str) -> Order:
        """重新计算并写回父订单状态（不提交事务，由调用方提交）

        即使状态没有变化也会写回。
        """
        parent = self.db.get(Order, parent_order_id)
        if parent is None:
            raise NotFoundError(f"父订单 {parent_order_id} 不存在")

        statuses = self.sibling_statuses(parent_order_id)
        new_status = aggregate_parent_status(statuses)
        logger.debug(
            f"父订单状态聚合: order_id={parent_order_id}, "
            f"siblings={[s.value for s in statuses]}, result={new_status.value}"
        )

        parent.status = new_status
        # 子订单变更后重新按规则推导，管理员的直接设置随之失效
        parent.status_overridden = False
        self.db.flush()
        return parent

    def recompute_all(self, batch_size: int = 500, dry_run: bool = False) -> int:
        """批量校正所有父订单状态（跳过管理员直接设置过状态的订单）

        Args:
            batch_size: 批处理大小
            dry_run: 试运行，只统计不写回

        Returns:
            状态与聚合结果不一致的父订单数量
        """
        changed = 0
        offset = 0

        while True:
            orders = self.db.execute(
                select(Order)
                .where(Order.status_overridden.is_(False))
                .order_by(Order.id)
                .offset(offset)
                .limit(batch_size)
            ).scalars().all()

            if not orders:
                break

            for order in orders:
                statuses = [sub.status for sub in order.sub_orders]
                if not statuses:
                    continue
                new_status = aggregate_parent_status(statuses)
                if new_status != order.status:
                    changed += 1
                    logger.info(
                        f"父订单状态不一致: order_id={order.id}, "
                        f"{order.status.value} -> {new_status.value}"
                    )
                    if not dry_run:
                        order.status = new_status

            if not dry_run:
                self.db.commit()

            if len(orders) < batch_size:
                break
            offset += batch_size

        logger.info(f"父订单状态校正完成，共 {changed} 条{'（试运行）' if dry_run else ''}")
        return changed
