"""
연속 랜덤 거래 생성기

고정 간격으로 무작위 거래(사용자, 금액, 위치)를 제출합니다.
설정한 확률로 금액을 고액 구간으로 치우치게 하거나,
같은 사용자의 먼 지역 후속 거래(불가능한 이동)를 덧붙입니다.
"""

import asyncio
import logging
import random
import time
from decimal import Decimal
from typing import Optional

from txn_monitor.application.services.scenario_catalogue import HIGH_AMOUNT_THRESHOLD
from txn_monitor.application.services.scenario_sequencer import SCENARIO_SUBMISSIONS, ClockFn
from txn_monitor.domain.exceptions import InvalidConfigurationError, SubmissionException
from txn_monitor.domain.models.scenario import (
    RuleClass,
    SequencerReport,
    SubmissionRecord,
    TransactionRequest,
)
from txn_monitor.domain.ports.transaction_gateway import TransactionGateway

logger = logging.getLogger(__name__)

RANDOM_SCENARIO_NAME = "random"

# 지역이 다르면 짧은 간격 안에 이동할 수 없는 거리로 간주
CITIES_BY_REGION: dict[str, tuple[str, ...]] = {
    "north_america": ("New York", "Chicago", "Los Angeles", "Miami", "Seattle"),
    "europe": ("London", "Berlin", "Paris", "Madrid"),
    "asia": ("Tokyo", "Seoul", "Singapore", "Hong Kong"),
}

MERCHANTS = (
    "GROCERY_MART",
    "COFFEE_HOUSE",
    "GAS_STATION",
    "ONLINE_RETAIL",
    "BOOK_STORE",
    "RESTAURANT",
)


class RandomTransactionGenerator:
    """
    연속 랜덤 모드 거래 생성기

    취소 보장: stop()이 반환된 뒤에는 새 제출이 시작되지 않습니다.
    stop() 시점에 진행 중이던 제출은 스스로 끝나거나 실패하도록 둡니다.

    Attributes:
        _gateway: 거래 제출 게이트웨이
        _interval: 연속한 두 제출의 시작 간격 (초). 한 번의 제출이 간격보다 길면 곧바로 다음 제출
        _high_value_probability: 금액을 고액 구간으로 치우칠 확률
        _impossible_travel_probability: 먼 지역 후속 거래를 덧붙일 확률
        _travel_gap: 후속 거래까지의 간격 (초)
        _rng: 난수 생성기 (테스트에서 시드 고정)
        _stop_event: 중단 신호
        _task: start()로 띄운 백그라운드 태스크
    """

    def __init__(
        self,
        gateway: TransactionGateway,
        interval_seconds: float = 3.0,
        high_value_probability: float = 0.1,
        impossible_travel_probability: float = 0.05,
        travel_gap_seconds: float = 1.0,
        rng: Optional[random.Random] = None,
        clock: ClockFn = time.monotonic,
    ) -> None:
        """
        Raises:
            InvalidConfigurationError: 간격이 양수가 아니거나 확률이 [0, 1] 밖인 경우
        """
        errors = []
        if interval_seconds <= 0:
            errors.append("interval_seconds must be positive")
        if travel_gap_seconds < 0:
            errors.append("travel_gap_seconds cannot be negative")
        for name, value in (
            ("high_value_probability", high_value_probability),
            ("impossible_travel_probability", impossible_travel_probability),
        ):
            if not 0.0 <= value <= 1.0:
                errors.append(f"{name} must be within [0, 1], got {value}")
        if errors:
            raise InvalidConfigurationError(
                f"RandomTransactionGenerator validation failed: {'; '.join(errors)}"
            )

        self._gateway = gateway
        self._interval = interval_seconds
        self._high_value_probability = high_value_probability
        self._impossible_travel_probability = impossible_travel_probability
        self._travel_gap = travel_gap_seconds
        self._rng = rng or random.Random()
        self._clock = clock
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._step_index = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """
        백그라운드에서 생성을 시작합니다.

        Raises:
            RuntimeError: 이미 실행 중인 경우
        """
        if self.is_running:
            raise RuntimeError("Generator is already running")
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> Optional[SequencerReport]:
        """
        생성을 중단합니다. 멱등합니다.

        Returns:
            start()로 띄운 실행의 제출 기록 (없으면 None)
        """
        self._stop_event.set()
        if self._task is None:
            return None
        task, self._task = self._task, None
        return await task

    async def run(self, duration_seconds: Optional[float] = None) -> SequencerReport:
        """
        현재 태스크에서 생성 루프를 실행합니다.

        Args:
            duration_seconds: 실행 시간 (초). None이면 stop()까지 계속

        Returns:
            제출 기록
        """
        report = SequencerReport()
        deadline = self._clock() + duration_seconds if duration_seconds is not None else None

        logger.info(
            f"Random generator started (interval={self._interval}s, "
            f"high_value_p={self._high_value_probability}, "
            f"travel_p={self._impossible_travel_probability})"
        )

        while not self._stop_event.is_set():
            tick_started = self._clock()
            if deadline is not None and tick_started >= deadline:
                break
            await self._emit_once(report)
            # 제출과 후속 거래에 걸린 시간만큼 대기를 줄여 시작 간격을 유지
            remaining = self._interval - (self._clock() - tick_started)
            if await self._wait_for_stop(max(remaining, 0.0)):
                break

        logger.info(f"Random generator stopped after {len(report.records)} submissions")
        return report

    def next_request(self) -> tuple[TransactionRequest, RuleClass]:
        """다음 무작위 거래 요청과 그 의도한 규칙 분류를 만듭니다."""
        region = self._rng.choice(sorted(CITIES_BY_REGION))
        user_id = str(self._rng.randint(1000, 9999))

        if self._rng.random() < self._high_value_probability:
            amount = HIGH_AMOUNT_THRESHOLD + Decimal(str(round(self._rng.uniform(500, 10000), 2)))
            rule_class = RuleClass.HIGH_AMOUNT
        else:
            amount = Decimal(str(round(self._rng.uniform(5, 500), 2)))
            rule_class = RuleClass.BASELINE

        request = TransactionRequest(
            user_id=user_id,
            amount=amount,
            merchant=self._rng.choice(MERCHANTS),
            location=self._rng.choice(CITIES_BY_REGION[region]),
        )
        return request, rule_class

    def distant_follow_up(self, request: TransactionRequest) -> TransactionRequest:
        """같은 사용자의 다른 지역 후속 거래를 만듭니다."""
        home_region = next(
            (r for r, cities in CITIES_BY_REGION.items() if request.location in cities),
            None,
        )
        far_regions = sorted(r for r in CITIES_BY_REGION if r != home_region)
        far_region = self._rng.choice(far_regions)
        return TransactionRequest(
            user_id=request.user_id,
            amount=Decimal(str(round(self._rng.uniform(5, 500), 2))),
            merchant=self._rng.choice(MERCHANTS),
            location=self._rng.choice(CITIES_BY_REGION[far_region]),
        )

    # ========== Private Helpers ==========

    async def _emit_once(self, report: SequencerReport) -> None:
        request, rule_class = self.next_request()
        await self._submit(request, rule_class, report)

        if self._rng.random() >= self._impossible_travel_probability:
            return

        follow_up = self.distant_follow_up(request)
        if await self._wait_for_stop(self._travel_gap):
            return
        await self._submit(follow_up, RuleClass.IMPOSSIBLE_TRAVEL, report)

    async def _submit(
        self, request: TransactionRequest, rule_class: RuleClass, report: SequencerReport
    ) -> None:
        # stop() 이후에는 새 제출을 시작하지 않음
        if self._stop_event.is_set():
            return

        index = self._step_index
        self._step_index += 1
        submitted_at = self._clock()
        try:
            response = await self._gateway.submit_transaction(request)
        except SubmissionException as e:
            SCENARIO_SUBMISSIONS.labels(scenario=RANDOM_SCENARIO_NAME, result="failure").inc()
            logger.warning(f"Random submission for user {request.user_id} failed: {e}")
            report.records.append(
                SubmissionRecord(
                    scenario=RANDOM_SCENARIO_NAME,
                    rule_class=rule_class,
                    step_index=index,
                    request=request,
                    submitted_at=submitted_at,
                    error=str(e),
                )
            )
            return

        SCENARIO_SUBMISSIONS.labels(scenario=RANDOM_SCENARIO_NAME, result="success").inc()
        logger.debug(
            f"Random {rule_class.value} transaction {response.id} "
            f"(user={request.user_id}, amount={request.amount}, location={request.location})"
        )
        report.records.append(
            SubmissionRecord(
                scenario=RANDOM_SCENARIO_NAME,
                rule_class=rule_class,
                step_index=index,
                request=request,
                submitted_at=submitted_at,
                response=response,
            )
        )

    async def _wait_for_stop(self, seconds: float) -> bool:
        """최대 seconds 동안 중단 신호를 기다립니다. 중단되었으면 True"""
        if self._stop_event.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False
