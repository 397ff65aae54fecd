"""Application Use Cases Package"""

from txn_monitor.application.use_cases.monitor_transactions import monitor_transactions
from txn_monitor.application.use_cases.run_scenarios import run_random_traffic, run_scenarios

__all__ = [
    "monitor_transactions",
    "run_random_traffic",
    "run_scenarios",
]
