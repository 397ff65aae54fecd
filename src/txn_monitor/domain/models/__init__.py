"""Domain Models Package"""

from txn_monitor.domain.models.bounded_buffer import BoundedEventBuffer
from txn_monitor.domain.models.connection_state import (
    ConnectionState,
    StateTransition,
    StateTransitionTracker,
)
from txn_monitor.domain.models.monitor_config import MonitorConfig
from txn_monitor.domain.models.monitor_stats import MonitorStats
from txn_monitor.domain.models.scenario import (
    RuleClass,
    Scenario,
    ScenarioStep,
    SequencerReport,
    SubmissionRecord,
    SubmissionResponse,
    TransactionRequest,
)
from txn_monitor.domain.models.stream_event import EventType, StreamEvent
from txn_monitor.domain.models.transaction import FraudAlert, Transaction
from txn_monitor.domain.models.transaction_registry import TransactionRegistry

__all__ = [
    "BoundedEventBuffer",
    "ConnectionState",
    "EventType",
    "FraudAlert",
    "MonitorConfig",
    "MonitorStats",
    "RuleClass",
    "Scenario",
    "ScenarioStep",
    "SequencerReport",
    "StateTransition",
    "StateTransitionTracker",
    "StreamEvent",
    "SubmissionRecord",
    "SubmissionResponse",
    "Transaction",
    "TransactionRegistry",
    "TransactionRequest",
]
