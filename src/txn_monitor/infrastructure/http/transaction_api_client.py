"""
거래 REST API 클라이언트

TransactionGateway 인터페이스를 구현하며, httpx.AsyncClient로
거래 제출과 스냅샷/통계 조회를 수행합니다.
"""

import logging
import time
from typing import Any

import httpx
from prometheus_client import Counter, Histogram

from txn_monitor.domain.exceptions import (
    InvalidMessageError,
    SnapshotFetchError,
    SubmissionFailedError,
)
from txn_monitor.domain.models.monitor_config import MonitorConfig
from txn_monitor.domain.models.monitor_stats import MonitorStats
from txn_monitor.domain.models.scenario import SubmissionResponse, TransactionRequest
from txn_monitor.domain.models.transaction import FraudAlert, Transaction
from txn_monitor.domain.ports.transaction_gateway import TransactionGateway
from txn_monitor.infrastructure.serialization.json_utils import (
    json_dumps_bytes,
    json_loads,
)
from txn_monitor.infrastructure.serialization.payload_mapper import (
    alerts_from_snapshot,
    stats_from_payload,
    submission_response_from_payload,
    transactions_from_snapshot,
)

logger = logging.getLogger(__name__)

# ===== Prometheus Metrics =====
API_REQUESTS = Counter(
    "txn_monitor_api_requests_total",
    "REST API calls labeled by endpoint/result",
    ["endpoint", "result"],
)

API_REQUEST_LATENCY = Histogram(
    "txn_monitor_api_request_latency_seconds",
    "Latency of REST API calls",
    ["endpoint"],
)

TRANSACTIONS_PATH = "/transactions"
ALERTS_PATH = "/alerts"
STATS_PATH = "/transactions/stats"


class TransactionApiClient(TransactionGateway):
    """
    거래 REST API 어댑터

    Features:
        - 요청별 타임아웃 (request_timeout_seconds)
        - 선택적 Bearer 토큰 헤더
        - 모든 전송/상태 코드/응답 본문 오류를 도메인 예외로 변환

    Attributes:
        _config: 모니터링 클라이언트 설정
        _client: httpx 비동기 클라이언트
        _closed: close() 호출 여부
    """

    def __init__(
        self,
        config: MonitorConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            config: 모니터링 클라이언트 설정
            transport: httpx 전송 계층 (테스트에서 MockTransport 주입용)
        """
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=httpx.Timeout(config.request_timeout_seconds),
            headers={"Content-Type": "application/json", **config.auth_headers()},
            transport=transport,
        )
        self._closed = False

    async def submit_transaction(self, request: TransactionRequest) -> SubmissionResponse:
        try:
            body = await self._request(
                "POST", TRANSACTIONS_PATH, content=json_dumps_bytes(request.to_payload())
            )
            response = submission_response_from_payload(body)
        except (httpx.HTTPError, ValueError, InvalidMessageError) as e:
            raise SubmissionFailedError(
                f"Failed to submit transaction for user {request.user_id}: {e}", cause=e
            )

        logger.debug(
            f"Submitted transaction for user {request.user_id} -> id={response.id}"
        )
        return response

    async def fetch_recent_transactions(self, limit: int) -> list[Transaction]:
        body = await self._fetch(TRANSACTIONS_PATH, params={"limit": limit})
        try:
            return transactions_from_snapshot(body)
        except InvalidMessageError as e:
            raise SnapshotFetchError(f"Invalid transaction snapshot: {e}", cause=e)

    async def fetch_recent_alerts(self, limit: int) -> list[FraudAlert]:
        body = await self._fetch(ALERTS_PATH, params={"limit": limit})
        try:
            return alerts_from_snapshot(body)
        except InvalidMessageError as e:
            raise SnapshotFetchError(f"Invalid alert snapshot: {e}", cause=e)

    async def fetch_stats(self) -> MonitorStats:
        body = await self._fetch(STATS_PATH)
        try:
            return stats_from_payload(body)
        except InvalidMessageError as e:
            raise SnapshotFetchError(f"Invalid stats response: {e}", cause=e)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._client.aclose()

    async def __aenter__(self) -> "TransactionApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ========== Private Helpers ==========

    async def _fetch(self, path: str, params: dict[str, Any] | None = None) -> Any:
        try:
            return await self._request("GET", path, params=params)
        except (httpx.HTTPError, ValueError) as e:
            raise SnapshotFetchError(f"Failed to fetch {path}: {e}", cause=e)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """
        요청을 보내고 JSON 본문을 디코딩합니다.

        Raises:
            httpx.HTTPError: 전송 오류 또는 2xx 이외의 응답
            ValueError: JSON이 아닌 응답 본문
        """
        started = time.perf_counter()
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
            body = json_loads(resp.content)
        except (httpx.HTTPError, ValueError):
            API_REQUESTS.labels(endpoint=path, result="failure").inc()
            raise
        finally:
            API_REQUEST_LATENCY.labels(endpoint=path).observe(time.perf_counter() - started)

        API_REQUESTS.labels(endpoint=path, result="success").inc()
        return body
