"""
시나리오 시퀀서

고정 카탈로그의 시나리오를 순서대로 실행하며, 각 단계의 거래를 제출한 뒤
선언된 대기 시간을 그대로 지킵니다. 실패한 제출은 기록만 하고 다음 단계로 넘어갑니다.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Iterable, Optional

from prometheus_client import Counter

from txn_monitor.application.services.scenario_catalogue import build_default_catalogue
from txn_monitor.domain.exceptions import SubmissionException
from txn_monitor.domain.models.scenario import (
    RuleClass,
    Scenario,
    ScenarioStep,
    SequencerReport,
    SubmissionRecord,
)
from txn_monitor.domain.ports.transaction_gateway import TransactionGateway

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], float]

SCENARIO_SUBMISSIONS = Counter(
    "txn_monitor_scenario_submissions_total",
    "Synthetic transaction submissions labeled by scenario/result",
    ["scenario", "result"],
)


class ScenarioSequencer:
    """
    시나리오 시퀀서

    실패 정책:
        - 제출 실패는 로그로 남기고 다음 단계로 진행 (재시도 없음)
        - 실패한 단계의 대기 시간도 그대로 지킴
        - 한 시나리오의 실패가 다른 시나리오를 막지 않음

    Attributes:
        _gateway: 거래 제출 게이트웨이
        _scenarios: 실행 순서대로 정렬된 시나리오
        _sleep: 대기 함수 (테스트에서 주입)
        _clock: 단조 시계 (테스트에서 주입)

    Examples:
        >>> sequencer = ScenarioSequencer(gateway)
        >>> report = await sequencer.run({RuleClass.VELOCITY})
        >>> len(report.succeeded)
        4
    """

    def __init__(
        self,
        gateway: TransactionGateway,
        scenarios: Optional[Iterable[Scenario]] = None,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = time.monotonic,
    ) -> None:
        self._gateway = gateway
        self._scenarios = list(scenarios) if scenarios is not None else build_default_catalogue()
        self._sleep = sleep
        self._clock = clock

    @property
    def scenarios(self) -> list[Scenario]:
        return list(self._scenarios)

    def select(self, rule_classes: Optional[Iterable[RuleClass]] = None) -> list[Scenario]:
        """
        규칙 분류로 시나리오를 고릅니다. 카탈로그 순서는 유지됩니다.

        Args:
            rule_classes: 실행할 규칙 분류. None이면 전체
        """
        if rule_classes is None:
            return list(self._scenarios)
        wanted = set(rule_classes)
        return [s for s in self._scenarios if s.rule_class in wanted]

    async def run(self, rule_classes: Optional[Iterable[RuleClass]] = None) -> SequencerReport:
        """
        선택된 시나리오를 한 번 실행합니다.

        Args:
            rule_classes: 실행할 규칙 분류. None이면 전체 카탈로그

        Returns:
            단계별 제출 기록
        """
        selected = self.select(rule_classes)
        report = SequencerReport()

        if not selected:
            logger.warning(f"No scenarios match rule classes {rule_classes}")
            return report

        logger.info(f"Running {len(selected)} scenarios: {[s.name for s in selected]}")

        for scenario in selected:
            await self.run_scenario(scenario, report)

        logger.info(
            f"Scenario run complete: {len(report.succeeded)} submitted, "
            f"{len(report.failed)} failed"
        )
        return report

    async def run_scenario(
        self, scenario: Scenario, report: Optional[SequencerReport] = None
    ) -> SequencerReport:
        """시나리오 하나의 단계를 순서대로 실행합니다."""
        report = report if report is not None else SequencerReport()
        logger.info(f"Scenario '{scenario.name}' ({scenario.rule_class.value}) started")

        for index, step in enumerate(scenario.steps):
            record = await self._submit_step(scenario, index, step)
            report.records.append(record)

            # 이전 단계가 느렸더라도 다음 단계는 선언된 대기 이후에만 실행
            if step.delay_after_seconds > 0:
                logger.debug(
                    f"Scenario '{scenario.name}' step {index}: waiting {step.delay_after_seconds}s"
                )
                await self._sleep(step.delay_after_seconds)

        return report

    async def _submit_step(
        self, scenario: Scenario, index: int, step: ScenarioStep
    ) -> SubmissionRecord:
        submitted_at = self._clock()
        try:
            response = await self._gateway.submit_transaction(step.request)
        except SubmissionException as e:
            SCENARIO_SUBMISSIONS.labels(scenario=scenario.name, result="failure").inc()
            logger.warning(
                f"Scenario '{scenario.name}' step {index} failed, continuing: {e}"
            )
            return SubmissionRecord(
                scenario=scenario.name,
                rule_class=scenario.rule_class,
                step_index=index,
                request=step.request,
                submitted_at=submitted_at,
                error=str(e),
            )

        SCENARIO_SUBMISSIONS.labels(scenario=scenario.name, result="success").inc()
        logger.info(
            f"Scenario '{scenario.name}' step {index}: transaction {response.id} "
            f"(user={step.request.user_id}, amount={step.request.amount}, "
            f"fraud_score={response.fraud_score}, status={response.status})"
        )
        return SubmissionRecord(
            scenario=scenario.name,
            rule_class=scenario.rule_class,
            step_index=index,
            request=step.request,
            submitted_at=submitted_at,
            response=response,
        )
