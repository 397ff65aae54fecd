"""
거래 모니터링 오케스트레이션 서비스

EventStream과 TransactionGateway를 조합하여 푸시 피드를 소비하고,
ReconciliationEngine으로 최근 거래/경고 뷰를 유지합니다.
"""

import asyncio
import logging
from typing import Optional

from prometheus_client import Gauge

from txn_monitor.application.services.highlight_tracker import HighlightTracker
from txn_monitor.application.services.reconciliation_engine import (
    ReconciliationEngine,
    ReconciliationResult,
)
from txn_monitor.domain.exceptions import ConnectionException, SnapshotFetchError
from txn_monitor.domain.models.connection_state import ConnectionState
from txn_monitor.domain.models.monitor_config import MonitorConfig
from txn_monitor.domain.models.monitor_stats import MonitorStats
from txn_monitor.domain.models.transaction import FraudAlert, Transaction
from txn_monitor.domain.ports.event_stream import ConnectivityListener, EventStream
from txn_monitor.domain.ports.transaction_gateway import TransactionGateway

logger = logging.getLogger(__name__)

BUFFERED_TRANSACTIONS = Gauge(
    "txn_monitor_buffered_transactions",
    "Number of transactions currently held in the recent-transactions buffer",
)

BUFFERED_ALERTS = Gauge(
    "txn_monitor_buffered_alerts",
    "Number of alerts currently held in the recent-alerts buffer",
)


class MonitoringService:
    """
    푸시 피드 하나를 소비해 최근 거래/경고 뷰를 유지하는 서비스

    동작:
        - 시작 시 REST 스냅샷으로 버퍼 채우기 (실패 시 빈 버퍼로 계속)
        - 수신 순서대로 이벤트 조정 (단일 소비 경로)
        - 연결이 CLOSED 이후 다시 OPEN되면 새 세션 시작
        - Graceful shutdown: stop() 이후 버퍼 변경 없음

    Attributes:
        _stream: 푸시 피드
        _gateway: REST 게이트웨이 (스냅샷/통계용, 선택)
        _config: 모니터링 클라이언트 설정
        _engine: 현재 세션의 조정 엔진
        _highlights: 새 거래 강조 표시
        _running: start() 이후 stop() 전까지 True
        _lock: start/stop 직렬화
        _processed_count: 반영된 이벤트 수
        _session_count: 시작된 세션 수
        _has_opened: 현재 실행에서 연결이 OPEN된 적이 있는지 여부
        _last_error: 소비 루프를 끝낸 마지막 연결 오류
        _background_task: 소비 루프 태스크
    """

    def __init__(
        self,
        stream: EventStream,
        config: MonitorConfig,
        gateway: Optional[TransactionGateway] = None,
    ):
        """
        MonitoringService 초기화

        Args:
            stream: 푸시 피드
            config: 모니터링 클라이언트 설정
            gateway: 스냅샷/통계용 REST 게이트웨이 (없으면 스냅샷 생략)
        """
        self._stream = stream
        self._config = config
        self._gateway = gateway

        self._engine = self._new_engine()
        self._highlights = HighlightTracker(config.highlight_seconds)

        self._running = False
        self._lock = asyncio.Lock()
        self._processed_count = 0
        self._session_count = 0
        self._has_opened = False
        self._last_error: Optional[str] = None
        self._background_task: Optional[asyncio.Task] = None

        self._stream.add_connectivity_listener(self._on_connectivity_change)

    async def start(self) -> None:
        """
        피드에 연결하고 소비 루프를 띄웁니다.

        1. 새 세션 생성
        2. 푸시 피드 연결
        3. 스냅샷으로 버퍼 채우기 (설정 시)
        4. 백그라운드에서 이벤트 소비 시작

        Raises:
            RuntimeError: 이미 실행 중인 경우
            ConnectionFailedError: 연결 실패 시
        """
        async with self._lock:
            if self._running:
                raise RuntimeError("Service is already running")

            logger.info("Starting MonitoringService...")

            self._has_opened = False
            self._last_error = None
            self._start_session()

            await self._stream.connect()

            if self._config.seed_from_snapshot and self._gateway is not None:
                await self._seed_from_snapshot()

            self._running = True
            self._background_task = asyncio.create_task(self._consume_events())

            logger.info("MonitoringService started successfully")

    async def stop(self) -> None:
        """
        소비를 멈추고 피드 연결을 닫습니다.

        1. 세션 종료 (이후 이벤트는 버퍼를 바꾸지 않음)
        2. 푸시 피드 연결 종료
        3. 백그라운드 태스크 종료 대기 (최대 5초, 이후 취소)

        실행 중이 아니면 아무것도 하지 않습니다.
        """
        async with self._lock:
            if not self._running:
                logger.debug("Service is not running, skipping stop")
                return

            logger.info("Stopping MonitoringService...")
            self._running = False
            self._engine.close()
            self._highlights.clear()

        try:
            try:
                await self._stream.disconnect()
            except Exception as e:
                logger.error(f"Failed to disconnect stream: {e}")

            if self._background_task:
                try:
                    await asyncio.wait_for(self._background_task, timeout=5.0)
                except asyncio.TimeoutError:
                    logger.warning("Background task did not finish within timeout, cancelling")
                    self._background_task.cancel()
                    try:
                        await self._background_task
                    except asyncio.CancelledError:
                        pass
                except Exception as e:
                    logger.error(f"Consumption loop ended with error: {e}")

        finally:
            logger.info("MonitoringService stopped")

    async def wait_closed(self) -> None:
        """소비 루프가 끝날 때까지 대기합니다 (연결 종료 또는 stop)."""
        if self._background_task is not None:
            await asyncio.shield(self._background_task)

    async def _consume_events(self) -> None:
        """
        이벤트 소비 메인 루프

        각 이벤트의 조정이 완전히 끝난 뒤에 다음 프레임을 받습니다.
        재연결 없이 연결이 끊기면 오류를 기록하고 루프를 끝냅니다.
        """
        logger.info("Starting event consumption loop...")

        try:
            async for event in self._stream.stream_events():
                if not self._running:
                    logger.info("Service stopped, exiting consumption loop")
                    break

                result = self._engine.apply(event)
                self._after_apply(result)
                self._processed_count += 1

                if self._processed_count % 1000 == 0:
                    logger.info(f"Processed {self._processed_count} events")

        except ConnectionException as e:
            self._last_error = str(e)
            logger.error(f"Push feed unavailable, monitoring halted: {e}")
        except Exception as e:
            logger.error(f"Error in consumption loop: {e}")
            raise
        finally:
            logger.info("Event consumption loop ended")

    # ========== Session Management ==========

    def _new_engine(self) -> ReconciliationEngine:
        return ReconciliationEngine(
            transaction_capacity=self._config.transaction_capacity,
            alert_capacity=self._config.alert_capacity,
        )

    def _start_session(self) -> None:
        self._engine.close()
        self._highlights.clear()
        self._engine = self._new_engine()
        self._session_count += 1
        self._update_gauges()
        logger.info(f"Started stream session #{self._session_count}")

    def _on_connectivity_change(
        self, previous: ConnectionState, current: ConnectionState
    ) -> None:
        logger.info(f"Push feed connectivity: {previous.value} -> {current.value}")

        if current is not ConnectionState.OPEN:
            return

        # 재연결로 다시 OPEN된 경우에만 새 세션
        if self._has_opened and self._running:
            self._start_session()
        self._has_opened = True

    async def _seed_from_snapshot(self) -> None:
        """
        REST 스냅샷으로 버퍼를 채웁니다.

        스냅샷은 최신순이므로 오래된 것부터 삽입합니다.
        하나라도 실패하면 아무것도 반영하지 않고 빈 버퍼로 계속합니다.
        """
        try:
            transactions = await self._gateway.fetch_recent_transactions(
                self._config.transaction_capacity
            )
            alerts = await self._gateway.fetch_recent_alerts(self._config.alert_capacity)
        except SnapshotFetchError as e:
            logger.warning(f"Snapshot seeding failed, starting with empty buffers: {e}")
            return

        for transaction in reversed(transactions):
            self._engine.on_transaction(transaction)
        for alert in reversed(alerts):
            self._engine.on_alert(alert)

        self._update_gauges()
        logger.info(
            f"Seeded {len(transactions)} transactions and {len(alerts)} alerts from snapshot"
        )

    def _after_apply(self, result: ReconciliationResult) -> None:
        for evicted in result.evicted:
            self._highlights.forget(evicted.id)
        if result.inserted and result.transaction is not None:
            self._highlights.mark(result.transaction.id)
        self._update_gauges()

    def _update_gauges(self) -> None:
        BUFFERED_TRANSACTIONS.set(len(self._engine.transactions()))
        BUFFERED_ALERTS.set(len(self._engine.alerts()))

    # ========== Read Accessors ==========

    def recent_transactions(self) -> list[Transaction]:
        """최근 거래 (최신순)"""
        return self._engine.transactions()

    def recent_alerts(self) -> list[FraudAlert]:
        """최근 경고 (최신순)"""
        return self._engine.alerts()

    def is_new(self, transaction_id: str) -> bool:
        """거래가 아직 새 거래로 강조 표시 중인지 여부"""
        return self._highlights.is_new(transaction_id)

    @property
    def is_connected(self) -> bool:
        return self._stream.get_connection_state().is_connected

    @property
    def engine(self) -> ReconciliationEngine:
        return self._engine

    def add_connectivity_listener(self, listener: ConnectivityListener) -> None:
        """연결 표시기용 콜백 등록"""
        self._stream.add_connectivity_listener(listener)

    async def fetch_stats(self) -> MonitorStats:
        """
        집계 통계 조회

        Raises:
            RuntimeError: 게이트웨이가 없는 경우
            SnapshotFetchError: 조회 실패 시
        """
        if self._gateway is None:
            raise RuntimeError("No gateway configured for stats")
        return await self._gateway.fetch_stats()

    def get_status(self) -> dict:
        """
        서비스 상태 조회

        Returns:
            상태 정보 딕셔너리:
                - running: 실행 중 여부
                - consuming: 소비 루프가 살아 있는지 여부
                - connected: 연결 신호
                - processed: 반영된 이벤트 수
                - sessions: 시작된 세션 수
                - transactions / alerts: 버퍼 크기
                - last_error: 마지막 연결 오류
        """
        return {
            "running": self._running,
            "consuming": self._background_task is not None and not self._background_task.done(),
            "connected": self.is_connected,
            "processed": self._processed_count,
            "sessions": self._session_count,
            "transactions": len(self._engine.transactions()),
            "alerts": len(self._engine.alerts()),
            "last_error": self._last_error,
        }
