"""
거래 게이트웨이 포트 인터페이스

거래 제출과 스냅샷 조회를 담당하는 REST 백엔드의 추상 인터페이스입니다.
"""

from abc import ABC, abstractmethod

from txn_monitor.domain.models.monitor_stats import MonitorStats
from txn_monitor.domain.models.scenario import SubmissionResponse, TransactionRequest
from txn_monitor.domain.models.transaction import FraudAlert, Transaction


class TransactionGateway(ABC):
    """
    거래 게이트웨이 포트 인터페이스

    Implementation Requirements:
        1. 모든 실패는 SubmissionFailedError로 변환되어야 함
        2. 스냅샷 조회는 최신순 목록을 반환해야 함
        3. close()는 멱등해야 함

    Examples:
        >>> gateway: TransactionGateway = TransactionApiClient(config)
        >>> response = await gateway.submit_transaction(
        ...     TransactionRequest(user_id="u1", amount=Decimal("15000"))
        ... )
        >>> response.id
        '42'
        >>> await gateway.close()
    """

    @abstractmethod
    async def submit_transaction(self, request: TransactionRequest) -> SubmissionResponse:
        """
        거래 제출

        Args:
            request: 제출할 거래 요청

        Returns:
            백엔드가 부여한 id를 포함한 응답

        Raises:
            SubmissionFailedError: 비 2xx 응답, 전송 오류, 잘못된 응답 본문
        """

    @abstractmethod
    async def fetch_recent_transactions(self, limit: int) -> list[Transaction]:
        """최근 거래 스냅샷 (최신순)"""

    @abstractmethod
    async def fetch_recent_alerts(self, limit: int) -> list[FraudAlert]:
        """최근 경고 스냅샷 (최신순)"""

    @abstractmethod
    async def fetch_stats(self) -> MonitorStats:
        """집계 통계 조회"""

    @abstractmethod
    async def close(self) -> None:
        """리소스 정리"""
