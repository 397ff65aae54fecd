"""
거래 및 사기 경고 도메인 엔티티

백엔드가 푸시하는 Transaction과 FraudAlert를 표현합니다.
Transaction은 생성 후 is_fraud 외의 모든 필드가 불변이며,
is_fraud는 False -> True 방향으로만 전환됩니다.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from txn_monitor.domain.exceptions import ValidationException


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationException(f"amount must be numeric, got {value!r}")
    try:
        # float는 str 경유로 변환해 이진 표현 오차를 남기지 않음
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationException(f"amount must be numeric, got {value!r}", cause=e)


@dataclass(frozen=True)
class Transaction:
    """
    거래 엔티티

    Attributes:
        id: 백엔드가 부여한 식별자 (문자열로 정규화). 제출 전 로컬 요청은 None
        user_id: 거래를 발생시킨 사용자 식별자
        amount: 음수가 아닌 금액 (통화 무관)
        merchant: 가맹점 설명 (선택)
        location: 거래 위치 (선택)
        card_number: 카드 번호 (선택)
        created_at: 백엔드가 부여한 생성 시각 (선택)
        is_fraud: 사기 판정 여부. mark_fraud()로만 변경됨

    Examples:
        >>> tx = Transaction(id="42", user_id="u1", amount=Decimal("15000"))
        >>> tx.mark_fraud()
        True
        >>> tx.mark_fraud()  # 이미 표시됨: 변화 없음
        False
    """

    id: str | None
    user_id: str
    amount: Decimal
    merchant: str | None = None
    location: str | None = None
    card_number: str | None = None
    created_at: datetime | None = None
    is_fraud: bool = field(default=False, compare=False)

    def __post_init__(self) -> None:
        if self.id is not None:
            object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "user_id", str(self.user_id) if self.user_id is not None else "")
        object.__setattr__(self, "amount", to_decimal(self.amount))
        self.validate()

    def validate(self) -> None:
        """
        비즈니스 규칙 검증

        Raises:
            ValidationException: user_id가 비어 있거나 금액이 음수인 경우
        """
        errors = []

        if not self.user_id.strip():
            errors.append("user_id cannot be empty")

        if not self.amount.is_finite():
            errors.append(f"amount must be finite, got {self.amount}")
        elif self.amount < 0:
            errors.append(f"amount must be non-negative, got {self.amount}")

        if errors:
            raise ValidationException(
                f"Transaction validation failed: {'; '.join(errors)}"
            )

    def mark_fraud(self) -> bool:
        """
        거래를 사기로 표시합니다.

        Returns:
            실제로 상태가 바뀌었으면 True, 이미 사기로 표시되어 있었으면 False
        """
        if self.is_fraud:
            return False
        object.__setattr__(self, "is_fraud", True)
        return True

    def as_fraud_copy(self) -> "Transaction":
        """동일한 내용의 사기 표시된 새 Transaction을 반환합니다. 원본은 변경되지 않습니다."""
        return replace(self, is_fraud=True)

    def __str__(self) -> str:
        flag = " FRAUD" if self.is_fraud else ""
        return f"Transaction(id={self.id}, user_id={self.user_id}, amount={self.amount}{flag})"


@dataclass(frozen=True)
class FraudAlert:
    """
    사기 경고 엔티티

    경고는 자신이 소유한 거래 스냅샷(transaction)을 가질 수 있으며,
    버퍼에 있는 거래와는 id 조회로만 연결됩니다 (소유 관계가 아님).

    Attributes:
        id: 경고 식별자
        reason: 사람이 읽을 수 있는 원인 (규칙 이름)
        user_id: 대상 사용자 (없으면 스냅샷의 user_id)
        timestamp: 경고 발생 시각
        transaction: 경고를 유발한 거래의 스냅샷 (선택)
        transaction_ref: 스냅샷을 도메인 모델로 만들 수 없을 때 남겨 둔 거래 id (선택)
        details: 추가 설명 (선택)
        severity: 심각도 (선택)
    """

    id: str
    reason: str
    user_id: str | None = None
    timestamp: datetime | None = None
    transaction: Transaction | None = None
    details: str | None = None
    severity: str | None = None
    transaction_ref: str | None = None

    @property
    def transaction_id(self) -> str | None:
        """참조하는 거래의 id. 스냅샷이 있으면 스냅샷의 id, 없으면 transaction_ref"""
        if self.transaction is None:
            return self.transaction_ref
        return self.transaction.id

    @property
    def is_reconcilable(self) -> bool:
        """참조하는 거래 id가 있어 조정(reconciliation)이 가능한지 여부"""
        return self.transaction_id is not None

    def __str__(self) -> str:
        return f"FraudAlert(id={self.id}, reason='{self.reason}', transaction_id={self.transaction_id})"
