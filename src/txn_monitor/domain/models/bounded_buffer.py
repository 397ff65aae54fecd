"""
고정 용량 이벤트 버퍼

거래와 경고에 동일하게 사용되는 삽입 순서 유지 버퍼입니다.
항목은 최신순으로 보관되며, 용량을 넘으면 가장 오래된 항목이 제거됩니다.
"""

from collections import deque
from typing import Deque, Generic, Iterator, List, Optional, TypeVar

from txn_monitor.domain.exceptions import InvalidConfigurationError

T = TypeVar("T")


class BoundedEventBuffer(Generic[T]):
    """
    최신순 고정 용량 버퍼

    불변식: len(buffer) <= capacity 가 항상 성립합니다.
    용량이 찬 상태에서 push하면 가장 오래된(마지막) 항목을 제거하고 반환하므로,
    호출자는 제거된 항목에 연결된 인덱스를 함께 정리할 수 있습니다.

    Attributes:
        _capacity: 최대 보관 개수 (양의 정수)
        _entries: 최신순 항목 (왼쪽이 최신)

    Examples:
        >>> buffer = BoundedEventBuffer[str](capacity=2)
        >>> buffer.push("A")
        >>> buffer.push("B")
        >>> buffer.push("C")
        'A'
        >>> buffer.entries()
        ['C', 'B']
    """

    def __init__(self, capacity: int) -> None:
        """
        Args:
            capacity: 최대 보관 개수

        Raises:
            InvalidConfigurationError: capacity가 양의 정수가 아닌 경우
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise InvalidConfigurationError(
                f"Buffer capacity must be a positive integer, got {capacity!r}"
            )
        self._capacity = capacity
        self._entries: Deque[T] = deque()

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, entry: T) -> Optional[T]:
        """
        항목을 맨 앞(최신)에 추가합니다.

        Args:
            entry: 추가할 항목

        Returns:
            용량 초과로 제거된 가장 오래된 항목, 제거가 없으면 None
        """
        self._entries.appendleft(entry)
        if len(self._entries) > self._capacity:
            return self._entries.pop()
        return None

    def entries(self) -> List[T]:
        """최신순 항목의 복사본을 반환합니다."""
        return list(self._entries)

    def newest(self) -> Optional[T]:
        return self._entries[0] if self._entries else None

    def is_full(self) -> bool:
        return len(self._entries) >= self._capacity

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        # 순회 중 변경에 안전하도록 스냅샷을 순회
        return iter(list(self._entries))

    def __repr__(self) -> str:
        return f"BoundedEventBuffer(size={len(self._entries)}, capacity={self._capacity})"
