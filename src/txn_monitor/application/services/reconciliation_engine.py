"""
거래/경고 조정(Reconciliation) 엔진

한 스트림 세션의 거래 버퍼, 경고 버퍼, 거래 레지스트리를 단독으로 소유하고
수신 이벤트를 순서대로 반영합니다. 모든 변경은 apply()를 통해서만 일어나며,
각 호출은 반환 전에 완전히 끝납니다.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from prometheus_client import Counter

from txn_monitor.domain.models.bounded_buffer import BoundedEventBuffer
from txn_monitor.domain.models.stream_event import EventType, StreamEvent
from txn_monitor.domain.models.transaction import FraudAlert, Transaction
from txn_monitor.domain.models.transaction_registry import TransactionRegistry

logger = logging.getLogger(__name__)

RECONCILIATION_ACTIONS = Counter(
    "txn_monitor_reconciliation_actions_total",
    "Reconciliation outcomes labeled by action",
    ["action"],
)


class ReconciliationAction(Enum):
    """apply() 한 번의 결과 분류"""

    TRANSACTION_INSERTED = "transaction_inserted"
    DUPLICATE_IGNORED = "duplicate_ignored"
    MARKED_FRAUD = "marked_fraud"
    ALREADY_FRAUD = "already_fraud"
    FRAUD_COPY_INSERTED = "fraud_copy_inserted"
    ALERT_ONLY = "alert_only"
    IGNORED_CLOSED = "ignored_closed"


@dataclass(frozen=True)
class ReconciliationResult:
    """
    apply() 결과

    Attributes:
        action: 수행된 동작
        transaction: 삽입되거나 사기로 표시된 거래 (없으면 None)
        evicted: 용량 초과로 거래 버퍼에서 제거된 거래들
    """

    action: ReconciliationAction
    transaction: Optional[Transaction] = None
    evicted: tuple[Transaction, ...] = field(default_factory=tuple)

    @property
    def inserted(self) -> bool:
        return self.action in (
            ReconciliationAction.TRANSACTION_INSERTED,
            ReconciliationAction.FRAUD_COPY_INSERTED,
        )


class ReconciliationEngine:
    """
    단일 세션 조정 상태 객체

    불변식:
        - len(transactions) <= transaction_capacity, len(alerts) <= alert_capacity
        - 레지스트리의 키 집합 == 거래 버퍼에 있는 거래 id 집합
        - 거래의 is_fraud는 False -> True 방향으로만 바뀜

    Examples:
        >>> engine = ReconciliationEngine(transaction_capacity=2, alert_capacity=20)
        >>> for tx_id in ("A", "B", "C"):
        ...     engine.on_transaction(Transaction(id=tx_id, user_id="u", amount=1))
        >>> [t.id for t in engine.transactions()]
        ['C', 'B']
    """

    def __init__(self, transaction_capacity: int, alert_capacity: int) -> None:
        """
        Raises:
            InvalidConfigurationError: 용량이 양의 정수가 아닌 경우
        """
        self._transactions: BoundedEventBuffer[Transaction] = BoundedEventBuffer(
            transaction_capacity
        )
        self._alerts: BoundedEventBuffer[FraudAlert] = BoundedEventBuffer(alert_capacity)
        self._registry = TransactionRegistry()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def apply(self, event: StreamEvent) -> ReconciliationResult:
        """
        디코딩된 이벤트 하나를 반영합니다.

        close() 이후에는 아무것도 바꾸지 않고 IGNORED_CLOSED를 반환합니다.
        """
        if event.event_type is EventType.NEW_TRANSACTION:
            return self.on_transaction(event.payload)
        return self.on_alert(event.payload)

    def on_transaction(self, transaction: Transaction) -> ReconciliationResult:
        """
        거래를 버퍼 맨 앞에 넣고 레지스트리에 등록합니다.

        이미 등록된 id는 중복 전달로 보고 무시합니다.
        """
        if self._closed:
            return self._record(ReconciliationResult(ReconciliationAction.IGNORED_CLOSED))

        if transaction.id in self._registry:
            logger.debug(f"Ignoring duplicate transaction delivery: id={transaction.id}")
            return self._record(
                ReconciliationResult(
                    ReconciliationAction.DUPLICATE_IGNORED,
                    transaction=self._registry.get(transaction.id),
                )
            )

        evicted = self._insert(transaction)
        return self._record(
            ReconciliationResult(
                ReconciliationAction.TRANSACTION_INSERTED,
                transaction=transaction,
                evicted=evicted,
            )
        )

    def on_alert(self, alert: FraudAlert) -> ReconciliationResult:
        """
        경고를 경고 버퍼에 넣고, 스냅샷이 가리키는 거래를 조정합니다.

        - 등록된 거래: 제자리에서 사기로 표시 (이미 표시되어 있으면 변화 없음)
        - 등록되지 않은 거래: 스냅샷의 사기 표시 사본을 거래 버퍼에 삽입
        - 스냅샷이 없거나 id가 없는 경우: 경고만 표시
        - 불완전한 스냅샷(id만 남은 경우)이 등록되지 않은 거래를 가리키면: 경고만 표시
        """
        if self._closed:
            return self._record(ReconciliationResult(ReconciliationAction.IGNORED_CLOSED))

        # 경고 버퍼의 제거는 레지스트리와 무관
        self._alerts.push(alert)

        if not alert.is_reconcilable:
            return self._record(ReconciliationResult(ReconciliationAction.ALERT_ONLY))

        existing = self._registry.get(alert.transaction_id)
        if existing is not None:
            changed = existing.mark_fraud()
            if changed:
                logger.info(f"Marked transaction {existing.id} as fraud ({alert.reason})")
            action = (
                ReconciliationAction.MARKED_FRAUD if changed else ReconciliationAction.ALREADY_FRAUD
            )
            return self._record(ReconciliationResult(action, transaction=existing))

        if alert.transaction is None:
            logger.debug(
                f"Alert {alert.id} refers to unregistered transaction {alert.transaction_id} "
                f"without a usable snapshot"
            )
            return self._record(ReconciliationResult(ReconciliationAction.ALERT_ONLY))

        # 경고가 거래보다 먼저 도착했거나 거래가 이미 밀려난 경우
        fraud_copy = alert.transaction.as_fraud_copy()
        evicted = self._insert(fraud_copy)
        logger.info(
            f"Inserted fraud-marked transaction {fraud_copy.id} from alert {alert.id}"
        )
        return self._record(
            ReconciliationResult(
                ReconciliationAction.FRAUD_COPY_INSERTED,
                transaction=fraud_copy,
                evicted=evicted,
            )
        )

    def close(self) -> None:
        """세션을 종료합니다. 이후의 이벤트는 무시됩니다."""
        self._closed = True

    # ========== Read Accessors ==========

    def transactions(self) -> list[Transaction]:
        """최근 거래 (최신순)"""
        return self._transactions.entries()

    def alerts(self) -> list[FraudAlert]:
        """최근 경고 (최신순)"""
        return self._alerts.entries()

    def registered_ids(self) -> frozenset[str]:
        return self._registry.ids()

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._registry.get(transaction_id)

    # ========== Private Helpers ==========

    def _insert(self, transaction: Transaction) -> tuple[Transaction, ...]:
        self._registry.register(transaction)
        evicted = self._transactions.push(transaction)
        if evicted is None:
            return ()
        self._registry.unregister(evicted.id)
        logger.debug(f"Evicted transaction {evicted.id} from buffer")
        return (evicted,)

    def _record(self, result: ReconciliationResult) -> ReconciliationResult:
        RECONCILIATION_ACTIONS.labels(action=result.action.value).inc()
        return result
