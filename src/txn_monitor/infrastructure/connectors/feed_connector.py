"""
거래 푸시 피드 WebSocket Connector 구현

백엔드의 WebSocket 피드로부터 {type, payload} 봉투를 수신하여
new_transaction / fraud_alert 이벤트로 변환합니다.
"""

import logging
from datetime import UTC, datetime
from typing import Any, Dict

from prometheus_client import Counter

from txn_monitor.domain.exceptions import ConnectionException, InvalidMessageError
from txn_monitor.domain.models.monitor_config import MonitorConfig
from txn_monitor.domain.models.stream_event import EventType, StreamEvent
from txn_monitor.infrastructure.connectors.base_websocket import (
    BaseWebSocketConnector,
)
from txn_monitor.infrastructure.serialization.json_utils import (
    json_dumps,
    json_loads,
)
from txn_monitor.infrastructure.serialization.payload_mapper import (
    alert_from_payload,
    transaction_from_payload,
)

logger = logging.getLogger(__name__)

# 백엔드가 보내는 제어 프레임: 이벤트가 아니므로 조용히 무시
CONTROL_MESSAGE_TYPES = frozenset({"connection", "pong", "subscription_confirmed"})

# ===== Prometheus Metrics =====
FEED_FRAMES_RECEIVED = Counter(
    "txn_monitor_feed_frames_received_total",
    "Number of decoded push feed events",
    ["type"],
)

FEED_FRAMES_DROPPED = Counter(
    "txn_monitor_feed_frames_dropped_total",
    "Number of push feed frames dropped without producing an event",
    ["reason"],
)


class TransactionFeedConnector(BaseWebSocketConnector):
    """
    거래 푸시 피드 커넥터

    피드 메시지 형식:
        - 거래: {"type": "new_transaction", "payload": {"id": 42, "userId": "u1", "amount": 15000, ...}}
        - 경고: {"type": "fraud_alert", "payload": {"rule_violated": "HIGH_AMOUNT", "transaction": {...}}}
        - 구독 (선택): {"type": "subscribe", "alert_types": ["HIGH_AMOUNT", ...]}

    그 외의 type, JSON이 아닌 데이터, 객체가 아닌 JSON은 버려집니다.
    """

    def __init__(self, config: MonitorConfig) -> None:
        super().__init__(config)
        self._dropped_count = 0

    @property
    def dropped_count(self) -> int:
        """연결 이후 버려진 프레임 수"""
        return self._dropped_count

    async def _send_subscription_message(self) -> None:
        """
        경고 유형 구독 메시지를 전송합니다.

        subscribed_alert_types가 비어 있으면 아무것도 보내지 않습니다.

        Raises:
            ConnectionException: 구독 메시지 전송에 실패한 경우
        """
        if not self._config.subscribed_alert_types:
            return
        if not self._websocket:
            raise ConnectionException("WebSocket is not connected")

        message = {
            "type": "subscribe",
            "alert_types": sorted(self._config.subscribed_alert_types),
        }
        try:
            await self._websocket.send(json_dumps(message))
        except Exception as e:
            logger.error(f"Failed to send subscription message: {e}", exc_info=True)
            raise ConnectionException("Failed to send subscription message", cause=e)

    async def _parse_message(self, raw_message: str | bytes) -> Dict[str, Any] | None:
        """
        원시 프레임을 {type, payload} 봉투로 파싱합니다.

        Returns:
            이벤트 봉투, 제어 프레임이나 알 수 없는 type이면 None

        Raises:
            InvalidMessageError: UTF-8/JSON 디코딩 실패, 객체가 아닌 JSON
        """
        # 바이너리 프레임은 UTF-8로 엄격 디코딩
        if isinstance(raw_message, (bytes, bytearray)):
            try:
                raw_message = raw_message.decode("utf-8", errors="strict")
            except UnicodeDecodeError as e:
                self._drop("undecodable")
                raise InvalidMessageError("Binary frame is not valid UTF-8", cause=e)

        try:
            parsed = json_loads(raw_message)
        except ValueError as e:
            self._drop("invalid_json")
            raise InvalidMessageError(f"Frame is not valid JSON: {e}", cause=e)

        if not isinstance(parsed, dict):
            self._drop("not_object")
            raise InvalidMessageError(f"Frame is not a JSON object: {type(parsed).__name__}")

        message_type = parsed.get("type")

        if not isinstance(message_type, str):
            self._drop("unknown_type")
            logger.debug(f"Frame type is not a string: {message_type!r}")
            return None

        if message_type in CONTROL_MESSAGE_TYPES:
            logger.debug(f"Ignoring control frame: {message_type}")
            return None

        if EventType.from_wire(message_type) is None:
            self._drop("unknown_type")
            logger.debug(f"Unknown message type: {message_type}")
            return None

        return parsed

    def _convert_to_events(self, parsed_data: Dict[str, Any]) -> list[StreamEvent]:
        """
        봉투의 payload를 도메인 모델로 변환합니다.

        Returns:
            StreamEvent 리스트 (항상 단일 이벤트)

        Raises:
            InvalidMessageError: payload를 변환할 수 없는 경우 (id 없는 거래 포함)
        """
        event_type = EventType.from_wire(parsed_data.get("type"))
        payload = parsed_data.get("payload")

        try:
            if event_type is EventType.NEW_TRANSACTION:
                domain_payload = transaction_from_payload(payload)
            else:
                domain_payload = alert_from_payload(payload)
        except InvalidMessageError:
            self._drop("invalid_payload")
            raise

        FEED_FRAMES_RECEIVED.labels(type=event_type.value).inc()
        return [
            StreamEvent(
                event_type=event_type,
                payload=domain_payload,
                received_timestamp=datetime.now(UTC),
            )
        ]

    def _drop(self, reason: str) -> None:
        self._dropped_count += 1
        FEED_FRAMES_DROPPED.labels(reason=reason).inc()
