"""
실 백엔드 통합 테스트 (네트워크 필요)

환경 변수 ALLOW_NETWORK=1 일 때만 실행됩니다.
MONITOR_FEED_URL / MONITOR_API_URL로 대상 백엔드를 지정합니다 (기본값: localhost:8080).
"""

import asyncio
import os
from decimal import Decimal

import pytest

from txn_monitor.domain.models.connection_state import ConnectionState
from txn_monitor.domain.models.scenario import TransactionRequest
from txn_monitor.domain.models.stream_event import EventType
from txn_monitor.infrastructure.connectors.feed_config import load_monitor_config_from_env
from txn_monitor.infrastructure.connectors.feed_connector import TransactionFeedConnector
from txn_monitor.infrastructure.http.transaction_api_client import TransactionApiClient


requires_network = pytest.mark.skipif(
    os.environ.get("ALLOW_NETWORK") != "1",
    reason="Network tests are disabled. Set ALLOW_NETWORK=1 to enable.",
)


@requires_network
@pytest.mark.asyncio
async def test_real_backend_pushes_submitted_transaction() -> None:
    config = load_monitor_config_from_env()
    connector = TransactionFeedConnector(config)
    await connector.connect()
    assert connector.get_connection_state() == ConnectionState.OPEN

    async with TransactionApiClient(config) as client:
        response = await client.submit_transaction(
            TransactionRequest(user_id="9001", amount=Decimal("12.34"), merchant="INTEGRATION")
        )

    async def consume():
        async for event in connector.stream_events():
            if event.event_type is EventType.NEW_TRANSACTION and event.payload.id == response.id:
                return event

    try:
        event = await asyncio.wait_for(consume(), timeout=10)
    finally:
        await connector.disconnect()

    assert event.payload.amount == Decimal("12.34")


@requires_network
@pytest.mark.asyncio
async def test_real_backend_serves_snapshots() -> None:
    config = load_monitor_config_from_env()

    async with TransactionApiClient(config) as client:
        transactions = await client.fetch_recent_transactions(config.transaction_capacity)
        stats = await client.fetch_stats()

    assert len(transactions) <= config.transaction_capacity
    assert stats.total_transactions >= 0
