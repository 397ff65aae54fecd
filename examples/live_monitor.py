"""
실시간 거래 모니터 실행 예제

로컬 백엔드의 푸시 피드에 연결하여 최근 거래와 경고를 주기적으로 출력합니다.
환경 변수(MONITOR_FEED_URL, MONITOR_API_URL 등)로 대상을 바꿀 수 있습니다.
"""

import asyncio
import logging
import signal
import sys

from txn_monitor.application.services.monitoring_service import MonitoringService
from txn_monitor.application.use_cases.monitor_transactions import monitor_transactions
from txn_monitor.infrastructure.connectors.feed_config import load_monitor_config_from_env

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


def print_dashboard(service: MonitoringService) -> None:
    """최근 거래/경고를 콘솔에 출력"""
    status = service.get_status()
    indicator = "LIVE" if status["connected"] else "OFFLINE"
    logger.info("=" * 80)
    logger.info(
        f"[{indicator}] events={status['processed']} sessions={status['sessions']} "
        f"transactions={status['transactions']} alerts={status['alerts']}"
    )

    for tx in service.recent_transactions()[:10]:
        marker = "NEW " if service.is_new(tx.id) else "    "
        flag = "FRAUD" if tx.is_fraud else "ok"
        logger.info(
            f"  {marker}{tx.id:>8} user={tx.user_id:<6} amount={tx.amount:>10} "
            f"location={tx.location or '-':<12} {flag}"
        )

    for alert in service.recent_alerts()[:5]:
        logger.info(f"  ALERT {alert.reason} user={alert.user_id} tx={alert.transaction_id}")


async def main() -> None:
    config = load_monitor_config_from_env()
    logger.info(f"Starting live monitor: {config}")

    task = asyncio.create_task(
        monitor_transactions(config, report_interval_seconds=5.0, on_report=print_dashboard)
    )

    # Graceful shutdown을 위한 시그널 핸들러
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, task.cancel)

    try:
        await task
    except asyncio.CancelledError:
        logger.info("Live monitor stopped")


if __name__ == "__main__":
    asyncio.run(main())
