"""Application Layer Package"""

from txn_monitor.application.services import (
    MonitoringService,
    RandomTransactionGenerator,
    ReconciliationEngine,
    ScenarioSequencer,
)
from txn_monitor.application.use_cases import (
    monitor_transactions,
    run_random_traffic,
    run_scenarios,
)

__all__ = [
    "MonitoringService",
    "RandomTransactionGenerator",
    "ReconciliationEngine",
    "ScenarioSequencer",
    "monitor_transactions",
    "run_random_traffic",
    "run_scenarios",
]
