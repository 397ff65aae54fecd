"""
새 거래 강조(is_new) 표시 추적기

is_new는 Transaction의 필드가 아니라 화면용 일시 주석입니다.
거래가 버퍼에 들어오면 표시되고, 정해진 시간이 지나면 예약된 콜백이 해제합니다.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)


class HighlightTracker:
    """
    거래 id별 강조 표시 상태

    표시는 True -> False 방향으로만 바뀌며, 해제는 이벤트 루프의 call_later로 예약됩니다.

    Attributes:
        _duration: 강조 유지 시간 (초)
        _handles: 거래 id -> 해제 예약 핸들
    """

    def __init__(self, duration_seconds: float) -> None:
        self._duration = duration_seconds
        self._handles: dict[str, asyncio.TimerHandle] = {}

    def mark(self, transaction_id: str) -> None:
        """
        거래를 새 거래로 표시하고 해제를 예약합니다.

        이미 표시된 거래는 기존 예약을 유지합니다.
        실행 중인 이벤트 루프 안에서 호출해야 합니다.
        """
        if transaction_id in self._handles or self._duration <= 0:
            return
        loop = asyncio.get_running_loop()
        self._handles[transaction_id] = loop.call_later(
            self._duration, self._expire, transaction_id
        )

    def is_new(self, transaction_id: str) -> bool:
        return transaction_id in self._handles

    def forget(self, transaction_id: str) -> None:
        """버퍼에서 밀려난 거래의 표시와 예약을 제거합니다."""
        handle = self._handles.pop(transaction_id, None)
        if handle is not None:
            handle.cancel()

    def clear(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()

    def __len__(self) -> int:
        return len(self._handles)

    def _expire(self, transaction_id: str) -> None:
        self._handles.pop(transaction_id, None)
        logger.debug(f"Highlight expired for transaction {transaction_id}")
