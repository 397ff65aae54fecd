"""
고정 시나리오 카탈로그

규칙 분류마다 하나씩, 백엔드의 사기 탐지 규칙을 결정적으로 발동시키는
시나리오를 정해진 순서로 제공합니다.
"""

from dataclasses import dataclass
from decimal import Decimal

from txn_monitor.domain.exceptions import InvalidConfigurationError
from txn_monitor.domain.models.scenario import (
    RuleClass,
    Scenario,
    ScenarioStep,
    TransactionRequest,
)

# 백엔드 고액 거래 임계값과 그보다 확실히 큰 시나리오 금액
HIGH_AMOUNT_THRESHOLD = Decimal("10000")
HIGH_AMOUNT = Decimal("15000.00")

ROUND_AMOUNT = Decimal("5000.00")

# 속도(velocity) 규칙: 탐지 창 안에서 같은 사용자의 거래가 3건을 넘으면 발동
VELOCITY_DETECTION_WINDOW_SECONDS = 60.0
VELOCITY_BURST_SIZE = 4


@dataclass(frozen=True)
class ScenarioTiming:
    """
    시나리오 단계 사이 대기 시간

    Attributes:
        settle_seconds: 단일 규칙 시나리오 이후 백엔드 처리 대기
        velocity_spacing_seconds: 속도 시나리오 거래 간격
        window_reset_seconds: 속도 시나리오 이후 탐지 창이 비워질 때까지 대기
        travel_gap_seconds: 불가능한 이동 시나리오의 두 거래 간격
    """

    settle_seconds: float = 2.0
    velocity_spacing_seconds: float = 1.0
    window_reset_seconds: float = 65.0
    travel_gap_seconds: float = 1.0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Raises:
            InvalidConfigurationError: 음수 대기이거나 속도 버스트가 탐지 창을 넘는 경우
        """
        errors = []

        for name in (
            "settle_seconds",
            "velocity_spacing_seconds",
            "window_reset_seconds",
            "travel_gap_seconds",
        ):
            if getattr(self, name) < 0:
                errors.append(f"{name} cannot be negative")

        burst_span = self.velocity_spacing_seconds * (VELOCITY_BURST_SIZE - 1)
        if burst_span >= VELOCITY_DETECTION_WINDOW_SECONDS:
            errors.append(
                f"velocity burst spans {burst_span}s, must stay under "
                f"{VELOCITY_DETECTION_WINDOW_SECONDS}s detection window"
            )

        reset = self.window_reset_seconds
        if reset and reset <= VELOCITY_DETECTION_WINDOW_SECONDS:
            errors.append(
                "window_reset_seconds must exceed the velocity detection window "
                "(use 0 to disable the pause)"
            )

        if errors:
            raise InvalidConfigurationError(
                f"ScenarioTiming validation failed: {'; '.join(errors)}"
            )

    @classmethod
    def immediate(cls) -> "ScenarioTiming":
        """모든 대기를 0으로 둔 타이밍 (테스트/드라이런용)"""
        return cls(
            settle_seconds=0.0,
            velocity_spacing_seconds=0.0,
            window_reset_seconds=0.0,
            travel_gap_seconds=0.0,
        )


def _request(
    user_id: str, amount: str, merchant: str, location: str, currency: str = "USD"
) -> TransactionRequest:
    return TransactionRequest(
        user_id=user_id,
        amount=Decimal(amount),
        merchant=merchant,
        location=location,
        currency=currency,
    )


def build_default_catalogue(timing: ScenarioTiming | None = None) -> list[Scenario]:
    """
    기본 시나리오 카탈로그를 생성합니다.

    Args:
        timing: 단계 사이 대기 시간 (기본값: ScenarioTiming())

    Returns:
        실행 순서대로 정렬된 시나리오 목록 (규칙 분류당 하나)
    """
    timing = timing or ScenarioTiming()
    settle = timing.settle_seconds
    spacing = timing.velocity_spacing_seconds

    baseline = Scenario(
        name="baseline_legitimate",
        rule_class=RuleClass.BASELINE,
        description="Small everyday purchases from distinct users and cities",
        steps=(
            ScenarioStep(_request("101", "50.00", "SHOP_ABC", "New York")),
            ScenarioStep(_request("102", "120.75", "EAT_DEF", "Chicago")),
            ScenarioStep(_request("103", "75.00", "BOOK_STORE", "Berlin", currency="EUR")),
            ScenarioStep(_request("104", "25.50", "GAS_XYZ", "Seattle")),
        ),
    )

    high_amount = Scenario(
        name="high_amount",
        rule_class=RuleClass.HIGH_AMOUNT,
        description=f"Single purchase above the {HIGH_AMOUNT_THRESHOLD} threshold",
        steps=(
            ScenarioStep(
                _request("201", str(HIGH_AMOUNT), "LUXURY_GOODS", "Los Angeles"),
                delay_after_seconds=settle,
            ),
        ),
    )

    velocity_amounts = ("10.00", "20.00", "5.00", "15.00")
    velocity_steps = []
    for index, amount in enumerate(velocity_amounts):
        is_last = index == len(velocity_amounts) - 1
        velocity_steps.append(
            ScenarioStep(
                _request("301", amount, "GAME_PURCHASE", "Online"),
                delay_after_seconds=timing.window_reset_seconds if is_last else spacing,
            )
        )
    velocity = Scenario(
        name="velocity",
        rule_class=RuleClass.VELOCITY,
        description=f"{VELOCITY_BURST_SIZE} purchases by one user inside the detection window",
        steps=tuple(velocity_steps),
    )

    round_amount = Scenario(
        name="round_amount",
        rule_class=RuleClass.ROUND_AMOUNT,
        description="Suspiciously round amount",
        steps=(
            ScenarioStep(
                _request("401", str(ROUND_AMOUNT), "INVESTMENT_FIRM", "Miami"),
                delay_after_seconds=settle,
            ),
        ),
    )

    # 백엔드가 서버 시각으로 판정하므로 제출 시각을 조작하지 않음
    time_anomaly = Scenario(
        name="time_anomaly",
        rule_class=RuleClass.TIME_ANOMALY,
        description="Purchase evaluated against the backend's late-night window",
        steps=(
            ScenarioStep(
                _request("501", "300.00", "LATE_NIGHT_SHOP", "London", currency="GBP"),
                delay_after_seconds=settle,
            ),
        ),
    )

    new_location = Scenario(
        name="new_location",
        rule_class=RuleClass.NEW_LOCATION,
        description="Same user appears in two previously unseen cities",
        steps=(
            ScenarioStep(
                _request("601", "200.00", "TRAVEL_AGENT", "Tokyo"),
                delay_after_seconds=settle,
            ),
            ScenarioStep(
                _request("601", "100.00", "TOUR_OPERATOR", "Kyoto"),
                delay_after_seconds=settle,
            ),
        ),
    )

    impossible_travel = Scenario(
        name="impossible_travel",
        rule_class=RuleClass.IMPOSSIBLE_TRAVEL,
        description="Same user in New York and Tokyo moments apart",
        steps=(
            ScenarioStep(
                _request("701", "120.00", "DEPARTMENT_STORE", "New York"),
                delay_after_seconds=timing.travel_gap_seconds,
            ),
            ScenarioStep(
                _request("701", "95.00", "ELECTRONICS_SHOP", "Tokyo"),
                delay_after_seconds=settle,
            ),
        ),
    )

    return [
        baseline,
        high_amount,
        velocity,
        round_amount,
        time_anomaly,
        new_location,
        impossible_travel,
    ]
