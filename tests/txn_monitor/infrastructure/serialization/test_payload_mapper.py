from datetime import UTC, datetime
from decimal import Decimal

import pytest

from txn_monitor.domain.exceptions import InvalidMessageError
from txn_monitor.infrastructure.serialization.payload_mapper import (
    alert_from_payload,
    alerts_from_snapshot,
    parse_timestamp,
    stats_from_payload,
    submission_response_from_payload,
    transaction_from_payload,
    transactions_from_snapshot,
    unwrap_list,
)


class TestParseTimestamp:
    def test_iso_with_z_suffix(self) -> None:
        assert parse_timestamp("2024-05-01T12:30:00Z") == datetime(2024, 5, 1, 12, 30, tzinfo=UTC)

    def test_iso_nanosecond_fraction_is_truncated(self) -> None:
        parsed = parse_timestamp("2024-05-01T12:30:00.123456789+00:00")
        assert parsed.microsecond == 123456

    def test_naive_iso_is_utc(self) -> None:
        assert parse_timestamp("2024-05-01T12:30:00").tzinfo is UTC

    def test_epoch_millis_number_and_digit_string(self) -> None:
        expected = datetime.fromtimestamp(1730200000.123, tz=UTC)
        assert parse_timestamp(1730200000123) == expected
        assert parse_timestamp("1730200000123") == datetime.fromtimestamp(1730200000123 / 1000, tz=UTC)

    @pytest.mark.parametrize("value", [None, "", "   ", True])
    def test_empty_values(self, value) -> None:
        assert parse_timestamp(value) is None

    def test_garbage_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_timestamp("yesterday")


class TestTransactionFromPayload:
    def test_camel_case_payload(self) -> None:
        # GIVEN
        payload = {
            "id": 42,
            "userId": "u1",
            "amount": 15000,
            "merchant": "LUXURY_GOODS",
            "location": "Los Angeles",
            "cardNumber": "4111",
            "createdAt": "2024-05-01T00:00:00Z",
            "isFraud": False,
        }

        # WHEN
        tx = transaction_from_payload(payload)

        # THEN
        assert tx.id == "42"
        assert tx.user_id == "u1"
        assert tx.amount == Decimal("15000")
        assert tx.merchant == "LUXURY_GOODS"
        assert tx.location == "Los Angeles"
        assert tx.card_number == "4111"
        assert tx.created_at == datetime(2024, 5, 1, tzinfo=UTC)
        assert tx.is_fraud is False

    def test_snake_case_aliases(self) -> None:
        tx = transaction_from_payload(
            {
                "transaction_id": "abc",
                "user_id": 7,
                "amount": "12.50",
                "merchant_details": "SHOP",
                "timestamp": 1730200000000,
                "is_fraud": True,
            }
        )

        assert tx.id == "abc"
        assert tx.user_id == "7"
        assert tx.amount == Decimal("12.50")
        assert tx.merchant == "SHOP"
        assert tx.is_fraud is True

    def test_float_id_is_normalized_to_integer_text(self) -> None:
        assert transaction_from_payload({"id": 5.0, "userId": "u", "amount": 1}).id == "5"

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"userId": "u", "amount": 1},
            {"id": 1, "userId": "u"},
            {"id": 1, "userId": "u", "amount": -3},
            {"id": 1, "amount": 3},
            {"id": 1, "userId": "u", "amount": "abc"},
            {"id": 1, "userId": "u", "amount": 1, "createdAt": "not-a-date"},
        ],
    )
    def test_invalid_payloads(self, payload) -> None:
        with pytest.raises(InvalidMessageError):
            transaction_from_payload(payload)

    def test_id_optional_for_snapshots(self) -> None:
        tx = transaction_from_payload({"userId": "u", "amount": 1}, require_id=False)
        assert tx.id is None

    @pytest.mark.parametrize("flag", ["false", "true", 0, 1, "yes"])
    def test_fraud_flag_must_be_json_boolean(self, flag) -> None:
        with pytest.raises(InvalidMessageError):
            transaction_from_payload({"id": 1, "userId": "u", "amount": 1, "isFraud": flag})

    def test_missing_fraud_flag_is_false(self) -> None:
        assert transaction_from_payload({"id": 1, "userId": "u", "amount": 1}).is_fraud is False


class TestAlertFromPayload:
    def test_embedded_snapshot_shape(self) -> None:
        # GIVEN
        payload = {
            "rule_violated": "HIGH_AMOUNT",
            "transaction": {"id": 42, "user_id": "u1", "amount": 15000},
        }

        # WHEN
        alert = alert_from_payload(payload)

        # THEN
        assert alert.reason == "HIGH_AMOUNT"
        assert alert.transaction_id == "42"
        assert alert.user_id == "u1"
        assert alert.is_reconcilable
        assert alert.id  # generated

    def test_flat_shape(self) -> None:
        alert = alert_from_payload(
            {
                "id": "a-1",
                "userId": "u2",
                "ruleName": "VELOCITY",
                "timestamp": "2024-05-01T00:00:00Z",
                "details": "4 tx in 60s",
                "severity": "HIGH",
            }
        )

        assert alert.id == "a-1"
        assert alert.reason == "VELOCITY"
        assert alert.user_id == "u2"
        assert alert.details == "4 tx in 60s"
        assert alert.severity == "HIGH"
        assert alert.transaction is None
        assert not alert.is_reconcilable

    def test_generated_ids_are_unique(self) -> None:
        first = alert_from_payload({"reason": "X"})
        second = alert_from_payload({"reason": "X"})
        assert first.id != second.id

    def test_missing_reason_defaults_to_unknown(self) -> None:
        assert alert_from_payload({"id": 1}).reason == "unknown"

    def test_reasons_list_becomes_reason_text(self) -> None:
        alert = alert_from_payload(
            {"id": "a-2", "userId": "u2", "reasons": ["High amount", "", "New location"]}
        )
        assert alert.reason == "High amount, New location"

    def test_rule_name_wins_over_reasons_list(self) -> None:
        alert = alert_from_payload({"ruleName": "VELOCITY", "reasons": ["ignored"]})
        assert alert.reason == "VELOCITY"

    def test_empty_reasons_list_defaults_to_unknown(self) -> None:
        assert alert_from_payload({"reasons": []}).reason == "unknown"

    @pytest.mark.parametrize(
        "embedded",
        [
            {"id": 5},
            {"id": 5, "userId": "u", "amount": -1},
            {"id": 5, "userId": "", "amount": 10},
            {"id": 5, "userId": "u", "amount": 10, "createdAt": "not-a-date"},
        ],
    )
    def test_partial_snapshot_keeps_alert_with_reference(self, embedded) -> None:
        # GIVEN
        payload = {"rule_violated": "High Value", "transaction": embedded}

        # WHEN
        alert = alert_from_payload(payload)

        # THEN
        assert alert.reason == "High Value"
        assert alert.transaction is None
        assert alert.transaction_ref == "5"
        assert alert.transaction_id == "5"
        assert alert.is_reconcilable

    def test_partial_snapshot_user_is_kept(self) -> None:
        alert = alert_from_payload({"reason": "X", "transaction": {"id": 5, "userId": "u9"}})
        assert alert.user_id == "u9"

    def test_non_object_snapshot_gives_alert_only(self) -> None:
        alert = alert_from_payload({"reason": "X", "transaction": "5"})
        assert alert.transaction is None
        assert alert.transaction_ref is None
        assert not alert.is_reconcilable

    def test_embedded_snapshot_without_id_is_not_reconcilable(self) -> None:
        alert = alert_from_payload({"reason": "X", "transaction": {"userId": "u", "amount": 1}})
        assert alert.transaction is not None
        assert not alert.is_reconcilable

    @pytest.mark.parametrize(
        "payload",
        [
            "text",
            {"reason": "X", "timestamp": "garbage"},
        ],
    )
    def test_invalid_alerts(self, payload) -> None:
        with pytest.raises(InvalidMessageError):
            alert_from_payload(payload)


class TestSnapshotsAndResponses:
    @pytest.mark.parametrize("key", ["transactions", "alerts", "data", "items"])
    def test_unwrap_wrapped_lists(self, key) -> None:
        assert unwrap_list({key: [1, 2]}) == [1, 2]

    def test_unwrap_rejects_non_list(self) -> None:
        with pytest.raises(InvalidMessageError):
            unwrap_list({"count": 3})

    def test_transactions_snapshot_skips_invalid_entries(self) -> None:
        txs = transactions_from_snapshot(
            [
                {"id": 2, "userId": "u", "amount": 5},
                {"userId": "u", "amount": 5},
                {"id": 1, "userId": "u", "amount": 7},
            ]
        )
        assert [t.id for t in txs] == ["2", "1"]

    def test_alerts_snapshot_skips_invalid_entries(self) -> None:
        alerts = alerts_from_snapshot({"alerts": [{"id": "a", "reason": "R"}, 5]})
        assert [a.id for a in alerts] == ["a"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"TotalTransactions": 10, "FraudulentCount": 2, "FraudRate": 0.2, "TotalAmount": 100.0, "AvgAmount": 10.0},
            {"totalTransactions": 10, "fraudulentCount": 2, "fraudRate": 0.2, "totalAmount": 100.0, "avgAmount": 10.0},
            {"total": 10, "fraudulent_count": 2, "fraud_rate": 0.2, "total_amount": 100.0, "avg_amount": 10.0},
        ],
    )
    def test_stats_case_variants(self, payload) -> None:
        stats = stats_from_payload(payload)

        assert stats.total_transactions == 10
        assert stats.fraudulent_count == 2
        assert stats.fraud_rate == pytest.approx(0.2)
        assert stats.total_amount == pytest.approx(100.0)
        assert stats.avg_amount == pytest.approx(10.0)

    def test_stats_missing_fields_default_to_zero(self) -> None:
        stats = stats_from_payload({})
        assert stats.total_transactions == 0
        assert stats.fraud_rate == 0.0

    def test_submission_response(self) -> None:
        response = submission_response_from_payload({"id": 9, "fraud_score": "0.75", "status": "PENDING"})

        assert response.id == "9"
        assert response.fraud_score == pytest.approx(0.75)
        assert response.status == "PENDING"

    def test_submission_response_ignores_bad_score(self) -> None:
        assert submission_response_from_payload({"id": 9, "fraudScore": "n/a"}).fraud_score is None

    def test_submission_response_requires_id(self) -> None:
        with pytest.raises(InvalidMessageError):
            submission_response_from_payload({"status": "OK"})
