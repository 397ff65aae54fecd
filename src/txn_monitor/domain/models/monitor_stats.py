"""
집계 통계 스냅샷 모델
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class MonitorStats:
    """
    백엔드가 제공하는 거래 집계 통계

    Attributes:
        total_transactions: 전체 거래 수
        fraudulent_count: 사기 거래 수
        fraud_rate: 사기 비율 (0.0 ~ 1.0)
        total_amount: 총 거래 금액
        avg_amount: 평균 거래 금액
    """

    total_transactions: int = 0
    fraudulent_count: int = 0
    fraud_rate: float = 0.0
    total_amount: float = 0.0
    avg_amount: float = 0.0
