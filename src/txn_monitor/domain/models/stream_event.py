"""
푸시 피드 이벤트 모델

{type, payload} 봉투를 디코딩한 결과를 표현합니다.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from txn_monitor.domain.models.transaction import FraudAlert, Transaction


class EventType(Enum):
    """푸시 피드가 전달하는 이벤트 종류"""

    NEW_TRANSACTION = "new_transaction"
    FRAUD_ALERT = "fraud_alert"

    @classmethod
    def from_wire(cls, value: object) -> "EventType | None":
        """봉투의 type 문자열을 EventType으로 변환합니다. 알 수 없는 값이면 None"""
        for member in cls:
            if member.value == value:
                return member
        return None


@dataclass(frozen=True)
class StreamEvent:
    """
    디코딩된 푸시 이벤트

    Attributes:
        event_type: 이벤트 종류
        payload: Transaction 또는 FraudAlert
        received_timestamp: 클라이언트 수신 시각 (UTC)
    """

    event_type: EventType
    payload: Transaction | FraudAlert
    received_timestamp: datetime

    def __post_init__(self) -> None:
        expected = Transaction if self.event_type is EventType.NEW_TRANSACTION else FraudAlert
        if not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.event_type.value} event requires {expected.__name__} payload, "
                f"got {type(self.payload).__name__}"
            )
