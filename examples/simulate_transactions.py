"""
합성 거래 시뮬레이션 예제

고정 시나리오 카탈로그(기본값) 또는 연속 랜덤 모드로 백엔드에 거래를 제출합니다.

Usage:
    python examples/simulate_transactions.py                 # 전체 카탈로그
    python examples/simulate_transactions.py velocity        # 특정 규칙 분류만
    python examples/simulate_transactions.py --random 60     # 60초 동안 랜덤 모드
"""

import asyncio
import logging
import sys

from txn_monitor.application.use_cases.run_scenarios import run_random_traffic, run_scenarios
from txn_monitor.domain.models.scenario import RuleClass
from txn_monitor.infrastructure.connectors.feed_config import load_monitor_config_from_env

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


async def main(argv: list[str]) -> int:
    config = load_monitor_config_from_env()

    if argv and argv[0] == "--random":
        duration = float(argv[1]) if len(argv) > 1 else 30.0
        report = await run_random_traffic(config, duration_seconds=duration)
    else:
        rule_classes = {RuleClass(name) for name in argv} if argv else None
        report = await run_scenarios(config, rule_classes=rule_classes)

    logger.info("=" * 80)
    for record in report.records:
        outcome = f"id={record.response.id}" if record.succeeded else f"FAILED: {record.error}"
        logger.info(
            f"{record.scenario:<22} #{record.step_index} user={record.request.user_id:<5} "
            f"amount={record.request.amount:>9} {outcome}"
        )
    logger.info(f"Submitted {len(report.succeeded)}, failed {len(report.failed)}")
    return 0 if not report.failed else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
