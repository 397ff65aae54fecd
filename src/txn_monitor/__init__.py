"""실시간 거래 모니터링 클라이언트"""

__version__ = "0.1.0"
