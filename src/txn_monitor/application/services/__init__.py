"""Application Services Package"""

from txn_monitor.application.services.highlight_tracker import HighlightTracker
from txn_monitor.application.services.monitoring_service import MonitoringService
from txn_monitor.application.services.random_transaction_generator import (
    RandomTransactionGenerator,
)
from txn_monitor.application.services.reconciliation_engine import (
    ReconciliationAction,
    ReconciliationEngine,
    ReconciliationResult,
)
from txn_monitor.application.services.scenario_catalogue import (
    ScenarioTiming,
    build_default_catalogue,
)
from txn_monitor.application.services.scenario_sequencer import ScenarioSequencer

__all__ = [
    "HighlightTracker",
    "MonitoringService",
    "RandomTransactionGenerator",
    "ReconciliationAction",
    "ReconciliationEngine",
    "ReconciliationResult",
    "ScenarioSequencer",
    "ScenarioTiming",
    "build_default_catalogue",
]
