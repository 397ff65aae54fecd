"""
Payload mapper utilities for converting backend JSON objects into domain models.

The backend is not consistent about field naming: the push feed and the REST
API may send camelCase (``userId``) or snake_case (``user_id``) keys, numeric or
string ids, and ISO-8601 or epoch-millisecond timestamps. Every accepted alias
is resolved here so the rest of the client only sees domain objects.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import UTC, datetime
from typing import Any, Iterable, Mapping, Optional

from txn_monitor.domain.exceptions import InvalidMessageError, ValidationException
from txn_monitor.domain.models.monitor_stats import MonitorStats
from txn_monitor.domain.models.scenario import SubmissionResponse
from txn_monitor.domain.models.transaction import FraudAlert, Transaction

logger = logging.getLogger(__name__)


# -------------------------
# Field aliases
# -------------------------
_ID_KEYS = ("id", "transactionId", "transaction_id")
_USER_KEYS = ("userId", "user_id")
_MERCHANT_KEYS = ("merchant", "merchantDetails", "merchant_details", "merchantId", "merchant_id")
_CARD_KEYS = ("cardNumber", "card_number")
_CREATED_KEYS = ("createdAt", "created_at", "timestamp")
_FRAUD_KEYS = ("isFraud", "is_fraud")

_ALERT_ID_KEYS = ("id", "alertId", "alert_id")
_REASON_KEYS = ("ruleName", "rule_name", "rule_violated", "reason", "message")
_REASON_LIST_KEY = "reasons"
_ALERT_TIME_KEYS = ("timestamp", "createdAt", "created_at", "detectedAt", "detected_at")

_LIST_WRAPPER_KEYS = ("transactions", "alerts", "data", "items")

# Python datetime은 마이크로초(6자리)까지만 표현하므로 초과 자릿수는 잘라냅니다.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def _first(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _normalize_id(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch milliseconds into an aware UTC datetime.

    Naive values are interpreted as UTC. Returns ``None`` for ``None`` or empty
    strings.

    Raises:
        ValueError: when the value is neither a number nor an ISO-8601 string.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return datetime.fromtimestamp(int(text) / 1000, tz=UTC)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(_FRACTION_RE.sub(r"\1", text))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _fraud_flag(data: Mapping[str, Any], tx_id: Optional[str]) -> bool:
    value = _first(data, _FRAUD_KEYS)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InvalidMessageError(
            f"Transaction fraud flag must be a JSON boolean (id={tx_id}), got {value!r}"
        )
    return value


def _alert_reason(data: Mapping[str, Any]) -> str:
    reason = _optional_text(_first(data, _REASON_KEYS))
    if reason is not None:
        return reason
    reasons = data.get(_REASON_LIST_KEY)
    if isinstance(reasons, list):
        parts = [text for text in (_optional_text(r) for r in reasons) if text]
        if parts:
            return ", ".join(parts)
    return "unknown"


def transaction_from_payload(data: Any, require_id: bool = True) -> Transaction:
    """Convert a transaction JSON object into a Transaction.

    Args:
        data: decoded JSON object
        require_id: reject objects without an id. Embedded alert snapshots are
            decoded with ``require_id=False``.

    Raises:
        InvalidMessageError: when the object is malformed or fails validation.
    """
    if not isinstance(data, dict):
        raise InvalidMessageError(f"Transaction payload must be an object, got {type(data).__name__}")

    tx_id = _normalize_id(_first(data, _ID_KEYS))
    if require_id and tx_id is None:
        raise InvalidMessageError("Transaction payload is missing id")

    amount = data.get("amount")
    if amount is None:
        raise InvalidMessageError(f"Transaction payload is missing amount (id={tx_id})")

    is_fraud = _fraud_flag(data, tx_id)

    try:
        return Transaction(
            id=tx_id,
            user_id=_first(data, _USER_KEYS),
            amount=amount,
            merchant=_optional_text(_first(data, _MERCHANT_KEYS)),
            location=_optional_text(data.get("location")),
            card_number=_optional_text(_first(data, _CARD_KEYS)),
            created_at=parse_timestamp(_first(data, _CREATED_KEYS)),
            is_fraud=is_fraud,
        )
    except (ValidationException, ValueError, TypeError, OverflowError, OSError) as e:
        raise InvalidMessageError(f"Invalid transaction payload (id={tx_id}): {e}", cause=e)


def alert_from_payload(data: Any) -> FraudAlert:
    """Convert a fraud alert JSON object into a FraudAlert.

    Both shapes are accepted:
        - embedded: ``{"rule_violated": ..., "transaction": {...}}``
        - flat: ``{"id", "userId", "ruleName", "timestamp", "details", "severity"}``

    An alert without an id is given a generated one; alerts are never deduplicated.
    When the embedded snapshot cannot be decoded, the alert is kept and only the
    snapshot id is carried as ``transaction_ref``.

    Raises:
        InvalidMessageError: when the object is not a JSON object or its timestamp is invalid.
    """
    if not isinstance(data, dict):
        raise InvalidMessageError(f"Alert payload must be an object, got {type(data).__name__}")

    snapshot = None
    transaction_ref = None
    embedded = data.get("transaction")
    if embedded is not None:
        try:
            snapshot = transaction_from_payload(embedded, require_id=False)
        except InvalidMessageError as e:
            if isinstance(embedded, dict):
                transaction_ref = _normalize_id(_first(embedded, _ID_KEYS))
            logger.warning(
                "Keeping alert with unusable transaction snapshot (ref=%s): %s", transaction_ref, e
            )

    alert_id = _normalize_id(_first(data, _ALERT_ID_KEYS))
    if alert_id is None:
        alert_id = str(uuid.uuid4())
        logger.debug("Alert payload without id, generated %s", alert_id)

    user_id = _optional_text(_first(data, _USER_KEYS))
    if user_id is None and snapshot is not None:
        user_id = snapshot.user_id
    if user_id is None and isinstance(embedded, dict):
        user_id = _optional_text(_first(embedded, _USER_KEYS))

    try:
        timestamp = parse_timestamp(_first(data, _ALERT_TIME_KEYS))
    except (ValueError, TypeError, OverflowError, OSError) as e:
        raise InvalidMessageError(f"Invalid alert timestamp (id={alert_id}): {e}", cause=e)

    return FraudAlert(
        id=alert_id,
        reason=_alert_reason(data),
        user_id=user_id,
        timestamp=timestamp,
        transaction=snapshot,
        details=_optional_text(data.get("details")),
        severity=_optional_text(data.get("severity")),
        transaction_ref=transaction_ref,
    )


def unwrap_list(data: Any) -> list[Any]:
    """Return the list carried by a snapshot response.

    Accepts a bare JSON array or an object wrapping it under one of
    ``transactions``, ``alerts``, ``data`` or ``items``.

    Raises:
        InvalidMessageError: when no list can be found.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in _LIST_WRAPPER_KEYS:
            value = data.get(key)
            if isinstance(value, list):
                return value
    raise InvalidMessageError(f"Snapshot response does not contain a list: {type(data).__name__}")


def transactions_from_snapshot(data: Any) -> list[Transaction]:
    """Decode a transaction snapshot, skipping entries that cannot be mapped."""
    result: list[Transaction] = []
    for item in unwrap_list(data):
        try:
            result.append(transaction_from_payload(item))
        except InvalidMessageError as e:
            logger.warning("Skipping invalid snapshot transaction: %s", e)
    return result


def alerts_from_snapshot(data: Any) -> list[FraudAlert]:
    """Decode an alert snapshot, skipping entries that cannot be mapped."""
    result: list[FraudAlert] = []
    for item in unwrap_list(data):
        try:
            result.append(alert_from_payload(item))
        except InvalidMessageError as e:
            logger.warning("Skipping invalid snapshot alert: %s", e)
    return result


def _number(data: Mapping[str, Any], keys: Iterable[str], cast: type) -> Any:
    value = _first(data, keys)
    if value is None:
        return cast(0)
    return cast(value)


def stats_from_payload(data: Any) -> MonitorStats:
    """Convert the stats response (PascalCase, camelCase or snake_case) into MonitorStats.

    Raises:
        InvalidMessageError: when the object is malformed.
    """
    if not isinstance(data, dict):
        raise InvalidMessageError(f"Stats payload must be an object, got {type(data).__name__}")
    try:
        return MonitorStats(
            total_transactions=_number(
                data, ("TotalTransactions", "totalTransactions", "total_transactions", "total"), int
            ),
            fraudulent_count=_number(
                data, ("FraudulentCount", "fraudulentCount", "fraudulent_count"), int
            ),
            fraud_rate=_number(data, ("FraudRate", "fraudRate", "fraud_rate"), float),
            total_amount=_number(data, ("TotalAmount", "totalAmount", "total_amount"), float),
            avg_amount=_number(data, ("AvgAmount", "avgAmount", "avg_amount"), float),
        )
    except (ValueError, TypeError) as e:
        raise InvalidMessageError(f"Invalid stats payload: {e}", cause=e)


def submission_response_from_payload(data: Any) -> SubmissionResponse:
    """Convert the submission response into a SubmissionResponse.

    Raises:
        InvalidMessageError: when the response carries no id.
    """
    if not isinstance(data, dict):
        raise InvalidMessageError(f"Submission response must be an object, got {type(data).__name__}")

    tx_id = _normalize_id(_first(data, _ID_KEYS))
    if tx_id is None:
        raise InvalidMessageError("Submission response is missing id")

    score = _first(data, ("fraudScore", "fraud_score"))
    try:
        fraud_score = float(score) if score is not None else None
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric fraud score %r for transaction %s", score, tx_id)
        fraud_score = None

    return SubmissionResponse(
        id=tx_id,
        fraud_score=fraud_score,
        status=_optional_text(data.get("status")),
    )
