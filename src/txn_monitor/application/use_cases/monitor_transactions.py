"""
실시간 거래 모니터링 유즈케이스

푸시 피드를 구독하여 최근 거래/경고 뷰를 유지하는 전체 파이프라인을 관리합니다.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from txn_monitor.application.services.monitoring_service import MonitoringService
from txn_monitor.domain.models.monitor_config import MonitorConfig
from txn_monitor.infrastructure.connectors.feed_connector import TransactionFeedConnector
from txn_monitor.infrastructure.http.transaction_api_client import TransactionApiClient

logger = logging.getLogger(__name__)

StatusReporter = Callable[[MonitoringService], Awaitable[None] | None]


async def monitor_transactions(
    config: MonitorConfig,
    report_interval_seconds: float = 10.0,
    on_report: Optional[StatusReporter] = None,
) -> None:
    """
    실시간 거래 모니터링 유즈케이스

    외부에서 취소되거나 푸시 피드가 끊길 때까지 실행되며, 종료 시 서비스를 정리합니다.

    Args:
        config: 모니터링 클라이언트 설정
        report_interval_seconds: 상태 보고 간격 (초)
        on_report: 주기적으로 호출되는 보고 콜백 (없으면 상태를 로그로 남김)

    Raises:
        ConnectionFailedError: 최초 연결 실패 시

    Examples:
        >>> config = create_monitor_config()
        >>> await monitor_transactions(config)
    """
    connector = TransactionFeedConnector(config)
    gateway = TransactionApiClient(config)
    service = MonitoringService(connector, config, gateway=gateway)

    try:
        await service.start()
        logger.info("Transaction monitoring started successfully")

        # 외부에서 중단되거나 소비 루프가 끝날 때까지 실행
        while service.get_status()["consuming"]:
            await asyncio.sleep(report_interval_seconds)
            if on_report is not None:
                result = on_report(service)
                if asyncio.iscoroutine(result):
                    await result
            else:
                logger.info(f"Monitor status: {service.get_status()}")

    except asyncio.CancelledError:
        logger.info("Monitoring cancelled, stopping service...")
        raise
    except Exception as e:
        logger.error(f"Unexpected error in transaction monitoring: {e}")
        raise
    finally:
        logger.info("Stopping transaction monitoring...")
        await service.stop()
        await gateway.close()
        logger.info("Transaction monitoring stopped")
