"""
시나리오 도메인 모델 테스트
"""

from decimal import Decimal

import pytest

from txn_monitor.domain.exceptions import ValidationException
from txn_monitor.domain.models.scenario import (
    RuleClass,
    Scenario,
    ScenarioStep,
    SequencerReport,
    SubmissionRecord,
    SubmissionResponse,
    TransactionRequest,
)


class TestTransactionRequest:
    """제출 요청 테스트"""

    def test_선택_필드는_값이_있을_때만_포함됨(self) -> None:
        """
        GIVEN: merchant만 지정한 요청
        WHEN: to_payload를 호출하면
        THEN: userId, amount, merchant만 포함되어야 한다
        """
        request = TransactionRequest(user_id="201", amount=Decimal("15000.00"), merchant="LUX")

        assert request.to_payload() == {"userId": "201", "amount": 15000.0, "merchant": "LUX"}

    def test_모든_필드_포함(self) -> None:
        request = TransactionRequest(
            user_id="1",
            amount="10",
            merchant="M",
            location="Seoul",
            card_number="4111",
            currency="KRW",
        )

        payload = request.to_payload()

        assert payload["location"] == "Seoul"
        assert payload["cardNumber"] == "4111"
        assert payload["currency"] == "KRW"

    @pytest.mark.parametrize("amount", [-5, "inf"])
    def test_음수나_무한대_금액은_거부됨(self, amount) -> None:
        with pytest.raises(ValidationException):
            TransactionRequest(user_id="1", amount=amount)


class TestScenario:
    """시나리오/단계 검증 테스트"""

    def test_단계가_없으면_거부됨(self) -> None:
        with pytest.raises(ValidationException):
            Scenario(name="empty", rule_class=RuleClass.BASELINE, steps=())

    def test_음수_대기는_거부됨(self) -> None:
        with pytest.raises(ValidationException):
            ScenarioStep(TransactionRequest(user_id="1", amount=1), delay_after_seconds=-1)

    def test_총_대기_시간(self) -> None:
        request = TransactionRequest(user_id="1", amount=1)
        scenario = Scenario(
            name="s",
            rule_class=RuleClass.VELOCITY,
            steps=[ScenarioStep(request, 1.0), ScenarioStep(request, 2.5)],
        )

        assert isinstance(scenario.steps, tuple)
        assert scenario.total_delay_seconds() == 3.5


class TestSequencerReport:
    """실행 결과 집계 테스트"""

    def test_성공과_실패를_분리함(self) -> None:
        request = TransactionRequest(user_id="1", amount=1)
        ok = SubmissionRecord(
            scenario="a",
            rule_class=RuleClass.BASELINE,
            step_index=0,
            request=request,
            submitted_at=0.0,
            response=SubmissionResponse(id="9"),
        )
        failed = SubmissionRecord(
            scenario="b",
            rule_class=RuleClass.BASELINE,
            step_index=0,
            request=request,
            submitted_at=1.0,
            error="HTTP 500",
        )

        report = SequencerReport(records=[ok, failed])

        assert report.succeeded == [ok]
        assert report.failed == [failed]
        assert report.for_scenario("b") == [failed]
