"""
Transaction / FraudAlert 엔티티 테스트
"""

from decimal import Decimal

import pytest

from txn_monitor.domain.exceptions import ValidationException
from txn_monitor.domain.models.transaction import FraudAlert, Transaction, to_decimal


class TestTransactionCreation:
    """거래 생성 및 검증 테스트"""

    def test_id와_금액이_정규화됨(self) -> None:
        """
        GIVEN: 정수 id와 float 금액
        WHEN: Transaction을 생성하면
        THEN: id는 문자열, 금액은 오차 없는 Decimal이어야 한다
        """
        tx = Transaction(id=42, user_id=7, amount=0.1)

        assert tx.id == "42"
        assert tx.user_id == "7"
        assert tx.amount == Decimal("0.1")
        assert tx.is_fraud is False

    @pytest.mark.parametrize("amount", [-1, "-0.01", "NaN", "abc", True])
    def test_유효하지_않은_금액은_거부됨(self, amount) -> None:
        with pytest.raises(ValidationException):
            Transaction(id="1", user_id="u1", amount=amount)

    def test_빈_user_id는_거부됨(self) -> None:
        with pytest.raises(ValidationException, match="user_id cannot be empty"):
            Transaction(id="1", user_id="  ", amount=Decimal("1"))

    def test_금액_0은_허용됨(self) -> None:
        assert Transaction(id="1", user_id="u1", amount=0).amount == Decimal("0")


class TestTransactionFraudMarking:
    """사기 표시 단방향 전환 테스트"""

    def test_mark_fraud는_한_번만_상태를_바꿈(self) -> None:
        """
        GIVEN: 정상 거래
        WHEN: mark_fraud를 두 번 호출하면
        THEN: 첫 호출만 True를 반환하고 이후에도 사기로 남아야 한다
        """
        # GIVEN
        tx = Transaction(id="42", user_id="u1", amount=Decimal("15000"))

        # WHEN
        first = tx.mark_fraud()
        second = tx.mark_fraud()

        # THEN
        assert first is True
        assert second is False
        assert tx.is_fraud is True

    def test_as_fraud_copy는_원본을_바꾸지_않음(self) -> None:
        tx = Transaction(id="42", user_id="u1", amount=Decimal("10"), location="Seoul")

        copy = tx.as_fraud_copy()

        assert copy is not tx
        assert copy.is_fraud is True
        assert tx.is_fraud is False
        assert copy.location == "Seoul"

    def test_사기_여부는_동등성_비교에서_제외됨(self) -> None:
        tx = Transaction(id="42", user_id="u1", amount=Decimal("10"))
        assert tx == tx.as_fraud_copy()


class TestFraudAlert:
    """경고 엔티티 테스트"""

    def test_스냅샷이_있으면_조정_가능(self) -> None:
        snapshot = Transaction(id="42", user_id="u1", amount=Decimal("15000"))
        alert = FraudAlert(id="a1", reason="HIGH_AMOUNT", transaction=snapshot)

        assert alert.transaction_id == "42"
        assert alert.is_reconcilable is True

    def test_스냅샷이_없으면_경고만_표시(self) -> None:
        alert = FraudAlert(id="a1", reason="VELOCITY", user_id="u1")

        assert alert.transaction_id is None
        assert alert.is_reconcilable is False

    def test_id_없는_스냅샷은_조정_불가(self) -> None:
        snapshot = Transaction(id=None, user_id="u1", amount=Decimal("1"))
        alert = FraudAlert(id="a1", reason="X", transaction=snapshot)

        assert alert.is_reconcilable is False

    def test_스냅샷_대신_거래_참조만_있어도_조정_가능(self) -> None:
        alert = FraudAlert(id="a1", reason="High Value", transaction_ref="5")

        assert alert.transaction is None
        assert alert.transaction_id == "5"
        assert alert.is_reconcilable is True


def test_to_decimal_Decimal은_그대로_반환() -> None:
    value = Decimal("1.50")
    assert to_decimal(value) is value
