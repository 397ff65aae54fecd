"""
푸시 피드 포트 인터페이스

백엔드가 푸시하는 거래/경고 이벤트 스트림의 추상 인터페이스입니다.
Application Layer는 이 인터페이스에만 의존하며, 실제 WebSocket 구현은
Infrastructure Layer에서 제공됩니다.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable

from txn_monitor.domain.models.connection_state import ConnectionState
from txn_monitor.domain.models.stream_event import StreamEvent

# (이전 상태, 현재 상태)를 받는 연결 신호 콜백
ConnectivityListener = Callable[[ConnectionState, ConnectionState], None]


class EventStream(ABC):
    """
    푸시 피드 포트 인터페이스

    Implementation Requirements:
        1. connect()와 disconnect()는 멱등(idempotent)해야 함
        2. stream_events()는 수신 순서대로 이벤트를 yield 해야 함
        3. 디코딩할 수 없는 프레임은 버리고 스트림을 계속 유지해야 함
        4. OPEN 진입/이탈 시 등록된 연결 신호 콜백을 호출해야 함

    Examples:
        >>> stream: EventStream = TransactionFeedConnector(config)
        >>> await stream.connect()
        >>> async for event in stream.stream_events():
        ...     engine.apply(event)
        >>> await stream.disconnect()
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        푸시 피드에 연결

        Raises:
            ConnectionFailedError: 연결 실패 시
        """

    @abstractmethod
    async def disconnect(self) -> None:
        """푸시 피드 연결 해제. 이미 CLOSED면 아무 일도 하지 않습니다."""

    @abstractmethod
    def stream_events(self) -> AsyncIterator[StreamEvent]:
        """
        디코딩된 이벤트를 수신 순서대로 제공

        Yields:
            StreamEvent: new_transaction 또는 fraud_alert 이벤트

        Raises:
            ConnectionClosedError: 연결이 끊기고 재연결하지 않는 경우
        """

    @abstractmethod
    def get_connection_state(self) -> ConnectionState:
        """현재 연결 상태 조회"""

    @abstractmethod
    def add_connectivity_listener(self, listener: ConnectivityListener) -> None:
        """
        연결 신호 콜백 등록

        Args:
            listener: 상태가 바뀔 때마다 (previous, current)로 호출되는 콜백
        """
