"""Domain Ports Package"""

from txn_monitor.domain.ports.event_stream import ConnectivityListener, EventStream
from txn_monitor.domain.ports.transaction_gateway import TransactionGateway

__all__ = [
    "ConnectivityListener",
    "EventStream",
    "TransactionGateway",
]
