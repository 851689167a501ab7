"""父订单状态校正本地执行脚本"""

import argparse
import logging
from app.db.session import SessionLocal
from app.services.status_aggregator import StatusAggregator

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def run_recompute(batch_size: int = 500, dry_run: bool = False):
    """按子订单状态重新计算父订单状态

    Args:
        batch_size: 批处理大小
        dry_run: 是否为试运行模式（只统计不一致的订单）
    """
    db = SessionLocal()
    try:
        count = StatusAggregator(db).recompute_all(batch_size, dry_run=dry_run)
        if dry_run:
            logger.info(f"试运行模式：发现 {count} 条父订单状态与子订单不一致")
        else:
            logger.info(f"校正完成：更新了 {count} 条父订单状态")
        return count
    except Exception as e:
        logger.error(f"校正执行失败: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()

def main(argv=None):
    """主函数"""
    parser = argparse.ArgumentParser(description='父订单状态校正工具')
    parser.add_argument(
        '--batch-size',
        type=int,
        default=500,
        help='批处理大小 (默认: 500)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='试运行模式，只统计不写回'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='详细输出模式'
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        result = run_recompute(args.batch_size, args.dry_run)
        if args.dry_run:
            print(f"📊 试运行结果：发现 {result} 条不一致订单")
        else:
            print(f"✅ 校正完成：处理了 {result} 条订单")
    except Exception as e:
        print(f"❌ 执行失败: {str(e)}")
        return 1

    return 0

if __name__ == "__main__":
    exit(main())
