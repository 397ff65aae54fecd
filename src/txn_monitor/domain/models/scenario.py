"""
시나리오 도메인 모델

백엔드의 특정 사기 탐지 규칙을 결정적으로 발동시키기 위한
합성 거래 요청, 단계, 시나리오, 제출 결과를 정의합니다.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Tuple

from txn_monitor.domain.exceptions import ValidationException
from txn_monitor.domain.models.transaction import to_decimal


class RuleClass(Enum):
    """시나리오가 겨냥하는 사기 탐지 규칙 분류"""

    BASELINE = "baseline"
    HIGH_AMOUNT = "high_amount"
    VELOCITY = "velocity"
    ROUND_AMOUNT = "round_amount"
    TIME_ANOMALY = "time_anomaly"
    NEW_LOCATION = "new_location"
    IMPOSSIBLE_TRAVEL = "impossible_travel"


@dataclass(frozen=True)
class TransactionRequest:
    """
    제출 엔드포인트로 보낼 합성 거래 요청

    Attributes:
        user_id: 사용자 식별자
        amount: 음수가 아닌 금액
        merchant: 가맹점 (선택)
        location: 위치 (선택)
        card_number: 카드 번호 (선택)
        currency: 통화 코드 (선택)
    """

    user_id: str
    amount: Decimal
    merchant: str | None = None
    location: str | None = None
    card_number: str | None = None
    currency: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "user_id", str(self.user_id))
        object.__setattr__(self, "amount", to_decimal(self.amount))
        if not self.user_id.strip():
            raise ValidationException("TransactionRequest user_id cannot be empty")
        if not self.amount.is_finite() or self.amount < 0:
            raise ValidationException(
                f"TransactionRequest amount must be non-negative, got {self.amount}"
            )

    def to_payload(self) -> dict[str, Any]:
        """
        제출 JSON 본문을 만듭니다. 선택 필드는 값이 있을 때만 포함됩니다.

        Returns:
            {userId, amount, merchant?, location?, cardNumber?, currency?}
        """
        payload: dict[str, Any] = {
            "userId": self.user_id,
            "amount": float(self.amount),
        }
        if self.merchant is not None:
            payload["merchant"] = self.merchant
        if self.location is not None:
            payload["location"] = self.location
        if self.card_number is not None:
            payload["cardNumber"] = self.card_number
        if self.currency is not None:
            payload["currency"] = self.currency
        return payload


@dataclass(frozen=True)
class ScenarioStep:
    """
    시나리오의 한 단계

    Attributes:
        request: 제출할 거래 요청
        delay_after_seconds: 이 단계 이후 다음 단계까지 대기할 시간 (초)
    """

    request: TransactionRequest
    delay_after_seconds: float = 0.0

    def __post_init__(self) -> None:
        if self.delay_after_seconds < 0:
            raise ValidationException(
                f"delay_after_seconds cannot be negative, got {self.delay_after_seconds}"
            )


@dataclass(frozen=True)
class Scenario:
    """
    하나의 규칙 분류를 겨냥하는 순서 있는 단계 묶음

    Attributes:
        name: 시나리오 이름
        rule_class: 겨냥하는 규칙 분류
        steps: 순서대로 제출할 단계들
        description: 설명 (선택)
    """

    name: str
    rule_class: RuleClass
    steps: Tuple[ScenarioStep, ...]
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))
        if not self.steps:
            raise ValidationException(f"Scenario '{self.name}' must have at least one step")

    def total_delay_seconds(self) -> float:
        return sum(step.delay_after_seconds for step in self.steps)


@dataclass(frozen=True)
class SubmissionResponse:
    """
    제출 성공 응답

    Attributes:
        id: 백엔드가 부여한 거래 id (문자열로 정규화)
        fraud_score: 동기 사기 점수 (선택)
        status: 처리 상태 (선택)
    """

    id: str
    fraud_score: float | None = None
    status: str | None = None


@dataclass(frozen=True)
class SubmissionRecord:
    """
    단계 하나의 제출 결과 기록

    Attributes:
        scenario: 시나리오 이름 (연속 모드는 "random")
        rule_class: 겨냥한 규칙 분류
        step_index: 시나리오 내 단계 번호 (0부터)
        request: 제출한 요청
        submitted_at: 제출 시작 시각 (단조 시계, 초)
        response: 성공 응답 (실패 시 None)
        error: 실패 사유 (성공 시 None)
    """

    scenario: str
    rule_class: RuleClass
    step_index: int
    request: TransactionRequest
    submitted_at: float
    response: SubmissionResponse | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.response is not None


@dataclass
class SequencerReport:
    """시퀀서 실행 결과 모음"""

    records: list[SubmissionRecord] = field(default_factory=list)

    @property
    def succeeded(self) -> list[SubmissionRecord]:
        return [r for r in self.records if r.succeeded]

    @property
    def failed(self) -> list[SubmissionRecord]:
        return [r for r in self.records if not r.succeeded]

    def for_scenario(self, name: str) -> list[SubmissionRecord]:
        return [r for r in self.records if r.scenario == name]
