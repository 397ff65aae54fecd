"""
유즈케이스 테스트

어댑터(TransactionFeedConnector, TransactionApiClient)를 patch하여
조립과 정리 흐름만 검증합니다.
"""

from typing import AsyncIterator
from unittest.mock import AsyncMock, patch

import pytest

from txn_monitor.application.services.scenario_catalogue import ScenarioTiming
from txn_monitor.application.use_cases.monitor_transactions import monitor_transactions
from txn_monitor.application.use_cases.run_scenarios import run_random_traffic, run_scenarios
from txn_monitor.domain.exceptions import ConnectionClosedError, ValidationException
from txn_monitor.domain.models.connection_state import ConnectionState
from txn_monitor.domain.models.scenario import RuleClass, SubmissionResponse
from txn_monitor.domain.models.stream_event import StreamEvent
from txn_monitor.domain.ports.event_stream import ConnectivityListener, EventStream
from txn_monitor.infrastructure.connectors.feed_config import create_monitor_config
from txn_monitor.infrastructure.http.transaction_api_client import TransactionApiClient

MONITOR_MODULE = "txn_monitor.application.use_cases.monitor_transactions"
SCENARIO_MODULE = "txn_monitor.application.use_cases.run_scenarios"


class DroppingEventStream(EventStream):
    """연결 직후 끊기는 테스트용 스트림"""

    def __init__(self, config) -> None:
        self.state = ConnectionState.CLOSED
        self.listeners: list[ConnectivityListener] = []

    async def connect(self) -> None:
        self.state = ConnectionState.OPEN

    async def disconnect(self) -> None:
        self.state = ConnectionState.CLOSED

    async def stream_events(self) -> AsyncIterator[StreamEvent]:
        self.state = ConnectionState.CLOSED
        raise ConnectionClosedError("Push feed connection closed")
        yield  # pragma: no cover

    def get_connection_state(self) -> ConnectionState:
        return self.state

    def add_connectivity_listener(self, listener: ConnectivityListener) -> None:
        self.listeners.append(listener)


@pytest.fixture
def mock_gateway() -> AsyncMock:
    gateway = AsyncMock(spec=TransactionApiClient)
    gateway.submit_transaction = AsyncMock(return_value=SubmissionResponse(id="42"))
    gateway.fetch_recent_transactions = AsyncMock(return_value=[])
    gateway.fetch_recent_alerts = AsyncMock(return_value=[])
    gateway.__aenter__ = AsyncMock(return_value=gateway)
    gateway.__aexit__ = AsyncMock(return_value=None)
    return gateway


class TestMonitorTransactions:
    """monitor_transactions 유즈케이스 테스트"""

    @pytest.mark.asyncio
    async def test_피드가_끊기면_종료하고_리소스를_정리(self, mock_gateway: AsyncMock) -> None:
        """
        GIVEN: 연결 직후 끊기는 피드
        WHEN: monitor_transactions를 실행하면
        THEN: 예외 없이 반환되고 게이트웨이가 닫혀야 한다
        """
        reports = []

        with patch(f"{MONITOR_MODULE}.TransactionFeedConnector", DroppingEventStream), patch(
            f"{MONITOR_MODULE}.TransactionApiClient", return_value=mock_gateway
        ):
            await monitor_transactions(
                create_monitor_config(),
                report_interval_seconds=0.01,
                on_report=reports.append,
            )

        mock_gateway.fetch_recent_transactions.assert_awaited_once()
        mock_gateway.close.assert_awaited_once()


class TestRunScenarios:
    """run_scenarios / run_random_traffic 유즈케이스 테스트"""

    @pytest.mark.asyncio
    async def test_선택한_규칙_분류만_제출(self, mock_gateway: AsyncMock) -> None:
        with patch(f"{SCENARIO_MODULE}.TransactionApiClient", return_value=mock_gateway):
            report = await run_scenarios(
                create_monitor_config(),
                {RuleClass.HIGH_AMOUNT},
                timing=ScenarioTiming.immediate(),
            )

        assert [r.scenario for r in report.records] == ["high_amount"]
        assert report.succeeded[0].response.id == "42"
        mock_gateway.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_빈_규칙_분류는_ValidationException(self) -> None:
        with pytest.raises(ValidationException, match="cannot be empty"):
            await run_scenarios(create_monitor_config(), set())

    @pytest.mark.asyncio
    async def test_랜덤_모드는_양수_실행_시간_필요(self) -> None:
        with pytest.raises(ValidationException):
            await run_random_traffic(create_monitor_config(), duration_seconds=0)

    @pytest.mark.asyncio
    async def test_랜덤_모드_실행(self, mock_gateway: AsyncMock) -> None:
        with patch(f"{SCENARIO_MODULE}.TransactionApiClient", return_value=mock_gateway):
            report = await run_random_traffic(
                create_monitor_config(),
                duration_seconds=0.05,
                interval_seconds=0.01,
                impossible_travel_probability=0.0,
                seed=1,
            )

        assert len(report.succeeded) >= 1
        assert mock_gateway.submit_transaction.await_count == len(report.records)
