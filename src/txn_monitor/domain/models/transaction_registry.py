"""
거래 레지스트리

버퍼에 있는 거래를 id로 색인하여, 나중에 도착한 경고가 참조하는 거래를
O(1)로 찾아 제자리에서 갱신할 수 있게 합니다.
"""

from typing import Dict, Optional

from txn_monitor.domain.exceptions import ValidationException
from txn_monitor.domain.models.transaction import Transaction


class TransactionRegistry:
    """
    id -> Transaction 색인

    불변식: 키 집합은 거래 버퍼에 현재 들어 있는 거래의 id 집합과 같아야 합니다.
    이 불변식은 버퍼 제거 시 unregister를 호출하는 ReconciliationEngine이 유지합니다.
    """

    def __init__(self) -> None:
        self._by_id: Dict[str, Transaction] = {}

    def register(self, transaction: Transaction) -> None:
        """
        거래를 색인에 추가합니다.

        Raises:
            ValidationException: id가 없는 거래인 경우
        """
        if transaction.id is None:
            raise ValidationException(
                f"Cannot register transaction without id (user_id={transaction.user_id})"
            )
        self._by_id[transaction.id] = transaction

    def unregister(self, transaction_id: str | None) -> Optional[Transaction]:
        """색인에서 제거하고 제거된 거래를 반환합니다. 없으면 None"""
        if transaction_id is None:
            return None
        return self._by_id.pop(transaction_id, None)

    def get(self, transaction_id: str | None) -> Optional[Transaction]:
        if transaction_id is None:
            return None
        return self._by_id.get(transaction_id)

    def ids(self) -> frozenset[str]:
        return frozenset(self._by_id)

    def clear(self) -> None:
        self._by_id.clear()

    def __contains__(self, transaction_id: object) -> bool:
        return transaction_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)
