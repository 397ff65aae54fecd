"""
푸시 피드 연결 상태

    CLOSED ──> CONNECTING ──> OPEN
      ^            │            │
      └────────────┴────────────┘

OPEN은 CONNECTING을 거쳐야만 도달하고, CLOSED는 어느 상태에서든 갈 수 있습니다.
초기 상태는 CLOSED이며 새 연결 시도는 항상 CLOSED -> CONNECTING으로 시작합니다.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Deque

from txn_monitor.domain.exceptions import InvalidTransitionError


class ConnectionState(Enum):
    """
    스트림 클라이언트 연결 상태

    Examples:
        >>> ConnectionState.CLOSED.is_valid_transition(ConnectionState.OPEN)
        False
        >>> ConnectionState.CONNECTING.is_valid_transition(ConnectionState.OPEN)
        True
    """

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"

    @property
    def is_connected(self) -> bool:
        """연결 표시기 값. OPEN일 때만 True"""
        return self is ConnectionState.OPEN

    def allowed_targets(self) -> frozenset["ConnectionState"]:
        return _ALLOWED_TRANSITIONS[self]

    def is_valid_transition(self, target: "ConnectionState") -> bool:
        # 같은 상태로의 전환은 no-op으로 허용
        return target is self or target in self.allowed_targets()

    def validate_transition(self, target: "ConnectionState") -> None:
        """
        Raises:
            InvalidTransitionError: 허용되지 않는 전환인 경우
        """
        if self.is_valid_transition(target):
            return
        allowed = ", ".join(sorted(s.name for s in self.allowed_targets()))
        raise InvalidTransitionError(
            f"Invalid state transition: {self.name} -> {target.name} (allowed: {allowed})"
        )


_ALLOWED_TRANSITIONS: dict[ConnectionState, frozenset[ConnectionState]] = {
    ConnectionState.CLOSED: frozenset({ConnectionState.CONNECTING}),
    ConnectionState.CONNECTING: frozenset({ConnectionState.OPEN, ConnectionState.CLOSED}),
    ConnectionState.OPEN: frozenset({ConnectionState.CLOSED}),
}


@dataclass(frozen=True)
class StateTransition:
    """기록된 상태 전환 한 건"""

    from_state: ConnectionState
    to_state: ConnectionState
    reason: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class StateTransitionTracker:
    """
    최근 상태 전환 이력 (진단용)

    max_entries를 넘으면 가장 오래된 기록부터 버립니다.
    """

    def __init__(self, max_entries: int = 100) -> None:
        self._history: Deque[StateTransition] = deque(maxlen=max_entries)

    def record_transition(
        self, from_state: ConnectionState, to_state: ConnectionState, reason: str
    ) -> None:
        self._history.append(StateTransition(from_state, to_state, reason))

    def get_history(self) -> list[StateTransition]:
        """오래된 순 이력 복사본"""
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
