"""订单相关的 Celery 任务"""

from celery_app import app
from app.db.session import SessionLocal
from app.services.status_aggregator import StatusAggregator
import logging

logger = logging.getLogger(__name__)

@app.task(name='tasks.orders.recompute_parent_statuses')
def recompute_parent_statuses(batch_size: int = 500):
    """按子订单状态批量校正父订单状态

    Args:
        batch_size: 批处理大小，默认500条

    Returns:
        校正的订单数量描述
    """
    db = SessionLocal()
    try:
        count = StatusAggregator(db).recompute_all(batch_size)
        result = f"成功校正 {count} 条父订单状态"
        logger.info(result)
        return result
    except Exception as e:
        logger.error(f"父订单状态校正任务执行失败: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()

# 导出任务
__all__ = [
    'recompute_parent_statuses',
]
