"""
시나리오 실행 유즈케이스

고정 카탈로그 또는 연속 랜덤 모드로 합성 거래를 백엔드에 제출합니다.
"""

import logging
import random
from typing import Iterable, Optional

from txn_monitor.application.services.random_transaction_generator import (
    RandomTransactionGenerator,
)
from txn_monitor.application.services.scenario_catalogue import (
    ScenarioTiming,
    build_default_catalogue,
)
from txn_monitor.application.services.scenario_sequencer import ScenarioSequencer
from txn_monitor.domain.exceptions import ValidationException
from txn_monitor.domain.models.monitor_config import MonitorConfig
from txn_monitor.domain.models.scenario import RuleClass, SequencerReport
from txn_monitor.infrastructure.http.transaction_api_client import TransactionApiClient

logger = logging.getLogger(__name__)


async def run_scenarios(
    config: MonitorConfig,
    rule_classes: Optional[Iterable[RuleClass]] = None,
    timing: Optional[ScenarioTiming] = None,
) -> SequencerReport:
    """
    고정 시나리오 카탈로그를 한 번 실행합니다.

    Args:
        config: REST API 주소와 토큰을 담은 설정
        rule_classes: 실행할 규칙 분류 (None이면 전체)
        timing: 단계 사이 대기 시간 (None이면 기본값)

    Returns:
        단계별 제출 기록

    Examples:
        >>> report = await run_scenarios(config, {RuleClass.HIGH_AMOUNT})
        >>> report.succeeded[0].response.id
        '42'
    """
    selected = set(rule_classes) if rule_classes is not None else None
    if selected is not None and not selected:
        raise ValidationException("rule_classes cannot be empty")

    async with TransactionApiClient(config) as gateway:
        sequencer = ScenarioSequencer(gateway, build_default_catalogue(timing))
        return await sequencer.run(selected)


async def run_random_traffic(
    config: MonitorConfig,
    duration_seconds: float,
    interval_seconds: float = 3.0,
    high_value_probability: float = 0.1,
    impossible_travel_probability: float = 0.05,
    seed: Optional[int] = None,
) -> SequencerReport:
    """
    연속 랜덤 모드로 정해진 시간 동안 거래를 제출합니다.

    Args:
        config: REST API 주소와 토큰을 담은 설정
        duration_seconds: 실행 시간 (초)
        interval_seconds: 제출 간격 (초)
        high_value_probability: 고액 거래 확률
        impossible_travel_probability: 먼 지역 후속 거래 확률
        seed: 난수 시드 (재현용)

    Returns:
        제출 기록
    """
    if duration_seconds <= 0:
        raise ValidationException(f"duration_seconds must be positive, got {duration_seconds}")

    async with TransactionApiClient(config) as gateway:
        generator = RandomTransactionGenerator(
            gateway,
            interval_seconds=interval_seconds,
            high_value_probability=high_value_probability,
            impossible_travel_probability=impossible_travel_probability,
            rng=random.Random(seed),
        )
        report = await generator.run(duration_seconds=duration_seconds)

    logger.info(
        f"Random traffic complete: {len(report.succeeded)} submitted, {len(report.failed)} failed"
    )
    return report
