"""
WebSocket 푸시 피드 커넥터 공통부

연결 생명주기(CLOSED -> CONNECTING -> OPEN -> CLOSED), 연결 신호,
선택적 재연결을 담당합니다. 하위 클래스는 구독 메시지, 프레임 파싱,
이벤트 변환만 구현합니다.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict

import orjson
import websockets
from prometheus_client import Gauge
from websockets.asyncio.client import ClientConnection

from txn_monitor.domain.exceptions import (
    ConnectionClosedError,
    ConnectionFailedError,
    InvalidMessageError,
)
from txn_monitor.domain.models.connection_state import (
    ConnectionState,
    StateTransition,
    StateTransitionTracker,
)
from txn_monitor.domain.models.monitor_config import MonitorConfig
from txn_monitor.domain.models.stream_event import StreamEvent
from txn_monitor.domain.ports.event_stream import ConnectivityListener, EventStream

logger = logging.getLogger(__name__)

# pong이 이 시간 안에 오지 않으면 라이브러리가 연결을 끊음
PING_TIMEOUT_SECONDS = 30

FEED_CONNECTION_STATE = Gauge(
    "txn_monitor_feed_connection_open",
    "1 while the push feed connection is OPEN, 0 otherwise",
)


class BaseWebSocketConnector(EventStream, ABC):
    """
    WebSocket 기반 EventStream 구현의 추상 기본 클래스

    - connect()는 단일 비행: 동시에 여러 번 불려도 핸드셰이크는 한 번
    - disconnect() 이후 stream_events()는 조용히 끝남
    - 재연결은 reconnect_enabled일 때만, 2^n 초 백오프 (상한 exponential_backoff_max_seconds)

    Attributes:
        _config: 모니터링 클라이언트 설정
        _state: 현재 연결 상태
        _websocket: 열린 연결 (없으면 None)
        _reconnect_attempts: 이번 끊김 이후 재연결 시도 횟수
        _lock: connect/disconnect 직렬화
        _inflight: 핸드셰이크를 진행 중인 태스크
        _closing: 로컬에서 disconnect()를 요청했는지 여부
        _listeners: 연결 신호 콜백
        _tracker: 상태 전환 이력
    """

    def __init__(self, config: MonitorConfig) -> None:
        self._config = config
        self._state = ConnectionState.CLOSED
        self._websocket: ClientConnection | None = None
        self._reconnect_attempts = 0
        self._lock = asyncio.Lock()
        self._inflight: asyncio.Task | None = None
        self._closing = False
        self._listeners: list[ConnectivityListener] = []
        self._tracker = StateTransitionTracker()

        logger.info(f"{self.__class__.__name__} configured for {config.feed_url}")

    @property
    def config(self) -> MonitorConfig:
        return self._config

    def add_connectivity_listener(self, listener: ConnectivityListener) -> None:
        self._listeners.append(listener)

    def get_connection_state(self) -> ConnectionState:
        return self._state

    def get_state_history(self) -> list[StateTransition]:
        return self._tracker.get_history()

    async def connect(self) -> None:
        """
        피드에 연결하고 구독 메시지를 보낸 뒤 OPEN으로 전환합니다.

        이미 OPEN이면 아무것도 하지 않습니다. 다른 태스크가 연결 중이면
        그 결과를 기다렸다가 공유합니다.

        Raises:
            ConnectionFailedError: 핸드셰이크 또는 구독에 실패한 경우 (상태는 CLOSED)
        """
        if self._state is ConnectionState.OPEN:
            return

        if self._inflight is not None and not self._inflight.done():
            logger.debug("Handshake already in flight, waiting for it")
            async with self._lock:
                pass
            if self._state is ConnectionState.OPEN:
                return

        async with self._lock:
            if self._state is ConnectionState.OPEN:
                return

            task = asyncio.current_task()
            self._inflight = task
            self._closing = False
            try:
                await self._open()
            finally:
                if self._inflight is task:
                    self._inflight = None

    async def disconnect(self) -> None:
        """연결을 닫고 CLOSED로 전환합니다. 이미 CLOSED면 아무것도 하지 않습니다."""
        self._closing = True
        if self._state is ConnectionState.CLOSED:
            return

        async with self._lock:
            if self._state is ConnectionState.CLOSED:
                return
            await self._cleanup()
            self._transition_state(ConnectionState.CLOSED, "disconnect requested")
            logger.info(f"Disconnected from {self._config.feed_url}")

    async def stream_events(self) -> AsyncIterator[StreamEvent]:
        """
        디코딩된 이벤트를 수신 순서대로 내보냅니다.

        디코딩할 수 없는 프레임은 버리고 계속 받습니다. 취소는 그대로 전파됩니다.

        Raises:
            ConnectionFailedError: 재연결이 꺼진 상태에서 연결하지 못한 경우
            ConnectionClosedError: 연결이 끊겼는데 재연결이 꺼져 있거나 시도를 모두 쓴 경우
        """
        while True:
            if self._state is not ConnectionState.OPEN:
                if self._closing:
                    logger.info("Push feed closed locally, event stream finished")
                    return
                try:
                    await self.connect()
                except ConnectionFailedError as e:
                    if not self._config.reconnect_enabled:
                        raise
                    await self._recover(f"connect failed: {e}")
                    continue

            try:
                events = await self._next_events()
            except (orjson.JSONDecodeError, InvalidMessageError) as e:
                logger.warning(f"Dropping undecodable frame: {e}")
                continue
            except websockets.exceptions.ConnectionClosed as e:
                if self._closing:
                    logger.info("Socket closed after disconnect(), event stream finished")
                    return
                await self._recover(f"closed by peer: {e}")
                continue
            except (OSError, TimeoutError) as e:
                await self._recover(f"network error: {e}")
                continue
            except Exception as e:
                logger.error(f"Unexpected error while reading push feed: {e}", exc_info=True)
                await self._recover(f"unexpected error: {e}")
                continue

            for event in events:
                yield event

    # ========== Connection ==========

    async def _open(self) -> None:
        url = self._config.feed_url
        self._transition_state(ConnectionState.CONNECTING, "connect requested")
        logger.info(f"Connecting to {url}...")

        try:
            self._websocket = await websockets.connect(
                url,
                ping_interval=self._config.ping_interval_seconds,
                ping_timeout=PING_TIMEOUT_SECONDS,
                additional_headers=self._config.auth_headers() or None,
            )
            await self._send_subscription_message()
        except asyncio.CancelledError:
            await self._cleanup()
            self._transition_state(ConnectionState.CLOSED, "connect cancelled")
            raise
        except Exception as e:
            logger.error(f"Handshake with {url} failed: {e}", exc_info=True)
            await self._cleanup()
            self._transition_state(ConnectionState.CLOSED, f"connect failed: {e}")
            raise ConnectionFailedError(f"Failed to connect to {url}", cause=e)

        self._transition_state(ConnectionState.OPEN, "handshake completed")
        self._reconnect_attempts = 0
        logger.info(f"Push feed {url} is open")

    async def _next_events(self) -> list[StreamEvent]:
        if self._websocket is None:
            raise ConnectionClosedError("WebSocket is not connected")
        frame = await self._websocket.recv()
        envelope = await self._parse_message(frame)
        if not envelope:
            return []
        return self._convert_to_events(envelope)

    async def _cleanup(self) -> None:
        websocket, self._websocket = self._websocket, None
        if websocket is None:
            return
        try:
            await websocket.close()
        except Exception as e:
            logger.warning(f"Error while closing push feed socket: {e}")

    def _transition_state(self, target: ConnectionState, reason: str = "") -> None:
        """
        상태를 바꾸고 기록한 뒤 리스너에 (이전, 현재)를 알립니다. 같은 상태면 아무것도 하지 않습니다.

        Raises:
            InvalidTransitionError: 허용되지 않는 전환인 경우
        """
        previous = self._state
        previous.validate_transition(target)
        if previous is target:
            return

        self._state = target
        self._tracker.record_transition(previous, target, reason)
        FEED_CONNECTION_STATE.set(1 if target.is_connected else 0)
        logger.debug(f"Feed state {previous.value} -> {target.value} ({reason})")

        for listener in tuple(self._listeners):
            try:
                listener(previous, target)
            except Exception as e:
                logger.error(f"Connectivity listener failed: {e}", exc_info=True)

    # ========== Reconnection ==========

    async def _recover(self, reason: str) -> None:
        """
        끊긴 연결을 정리해 CLOSED로 만들고, 켜져 있으면 재연결합니다.

        Raises:
            ConnectionClosedError: 재연결이 꺼져 있거나 시도를 모두 쓴 경우
        """
        await self._cleanup()
        self._transition_state(ConnectionState.CLOSED, reason)

        if self._closing:
            return

        if not self._config.reconnect_enabled:
            raise ConnectionClosedError(
                f"Push feed connection to {self._config.feed_url} closed ({reason})"
            )

        logger.warning(f"Push feed lost ({reason}), reconnecting")

        while self._should_attempt_reconnect():
            self._reconnect_attempts += 1
            attempt = self._reconnect_attempts
            delay = self._calculate_backoff_delay()
            limit = self._config.max_reconnect_attempts or "unlimited"
            logger.info(f"Reconnect attempt {attempt}/{limit} in {delay:.1f}s")

            await asyncio.sleep(delay)
            if self._closing:
                return

            try:
                await self.connect()
                return
            except ConnectionFailedError as e:
                logger.warning(f"Reconnect attempt {attempt} failed: {e}")

        raise ConnectionClosedError(
            f"Failed to reconnect to {self._config.feed_url} "
            f"after {self._reconnect_attempts} attempts"
        )

    def _should_attempt_reconnect(self) -> bool:
        limit = self._config.max_reconnect_attempts
        return limit == 0 or self._reconnect_attempts < limit

    def _calculate_backoff_delay(self) -> float:
        return float(min(2**self._reconnect_attempts, self._config.exponential_backoff_max_seconds))

    # ========== Subclass hooks ==========

    @abstractmethod
    async def _send_subscription_message(self) -> None:
        """OPEN 직전에 호출됩니다. 보낼 것이 없으면 아무것도 하지 않습니다."""
        raise NotImplementedError

    @abstractmethod
    async def _parse_message(self, raw_message: str | bytes) -> Dict[str, Any] | None:
        """
        원시 프레임을 봉투로 파싱합니다. 무시할 프레임이면 None

        Raises:
            InvalidMessageError: 디코딩할 수 없는 프레임
        """
        raise NotImplementedError

    @abstractmethod
    def _convert_to_events(self, parsed_data: Dict[str, Any]) -> list[StreamEvent]:
        """
        Raises:
            InvalidMessageError: 페이로드를 도메인 모델로 바꿀 수 없는 경우
        """
        raise NotImplementedError
