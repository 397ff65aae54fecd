"""
모니터링 클라이언트 설정 팩토리

로컬 백엔드 기본값과 환경 변수로부터 MonitorConfig를 생성하는 헬퍼 함수를 제공합니다.
"""

import os

from txn_monitor.domain.exceptions import InvalidConfigurationError
from txn_monitor.domain.models.monitor_config import MonitorConfig


# 백엔드 푸시 피드 Endpoint
DEFAULT_FEED_URL = "ws://localhost:8080/ws"

# 백엔드 REST API Endpoint
DEFAULT_API_BASE_URL = "http://localhost:8080/api"

# 화면에 유지하는 최근 거래/경고 개수
DEFAULT_TRANSACTION_CAPACITY = 50
DEFAULT_ALERT_CAPACITY = 20

# 새 거래 강조 표시 유지 시간
DEFAULT_HIGHLIGHT_SECONDS = 3.0

# 재연결 설정
DEFAULT_MAX_RECONNECT_ATTEMPTS = 5
DEFAULT_EXPONENTIAL_BACKOFF_MAX = 30

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def create_monitor_config(
    feed_url: str = DEFAULT_FEED_URL,
    api_base_url: str = DEFAULT_API_BASE_URL,
    transaction_capacity: int = DEFAULT_TRANSACTION_CAPACITY,
    alert_capacity: int = DEFAULT_ALERT_CAPACITY,
    reconnect_enabled: bool = False,
    max_reconnect_attempts: int = DEFAULT_MAX_RECONNECT_ATTEMPTS,
    exponential_backoff_max_seconds: int = DEFAULT_EXPONENTIAL_BACKOFF_MAX,
    subscribed_alert_types: set[str] | None = None,
    auth_token: str | None = None,
) -> MonitorConfig:
    """
    모니터링 클라이언트를 위한 MonitorConfig를 생성합니다.

    Args:
        feed_url: 푸시 피드 WebSocket URL
        api_base_url: REST API 기본 URL
        transaction_capacity: 최근 거래 버퍼 용량
        alert_capacity: 최근 경고 버퍼 용량
        reconnect_enabled: 자동 재연결 여부 (기본값: 끔)
        max_reconnect_attempts: 최대 재연결 시도 횟수. 0이면 무한 재시도.
        exponential_backoff_max_seconds: 지수 백오프 최대 대기 시간 (초)
        subscribed_alert_types: 구독할 경고 유형 (대문자로 정규화)
        auth_token: REST 호출용 Bearer 토큰

    Returns:
        MonitorConfig 객체

    Raises:
        InvalidConfigurationError: 설정 검증 실패 시

    Examples:
        >>> config = create_monitor_config(transaction_capacity=2)
        >>> config.transaction_capacity
        2
        >>> config.reconnect_enabled
        False
    """
    normalized_types = {t.strip().upper() for t in (subscribed_alert_types or set()) if t.strip()}

    return MonitorConfig(
        feed_url=feed_url,
        api_base_url=api_base_url,
        transaction_capacity=transaction_capacity,
        alert_capacity=alert_capacity,
        highlight_seconds=DEFAULT_HIGHLIGHT_SECONDS,
        reconnect_enabled=reconnect_enabled,
        max_reconnect_attempts=max_reconnect_attempts,
        exponential_backoff_max_seconds=exponential_backoff_max_seconds,
        subscribed_alert_types=frozenset(normalized_types),
        auth_token=auth_token or None,
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidConfigurationError(f"{name} must be an integer, got {raw!r}", cause=e)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise InvalidConfigurationError(f"{name} must be a boolean flag, got {raw!r}")


def load_monitor_config_from_env() -> MonitorConfig:
    """
    환경 변수로부터 MonitorConfig를 생성합니다.

    Environment:
        MONITOR_FEED_URL: 푸시 피드 URL (기본값: ws://localhost:8080/ws)
        MONITOR_API_URL: REST API URL (기본값: http://localhost:8080/api)
        MONITOR_TX_CAPACITY: 최근 거래 버퍼 용량
        MONITOR_ALERT_CAPACITY: 최근 경고 버퍼 용량
        MONITOR_RECONNECT: 자동 재연결 여부 (1/0, true/false)
        MONITOR_AUTH_TOKEN: Bearer 토큰

    Raises:
        InvalidConfigurationError: 값 형식이 잘못되었거나 검증에 실패한 경우
    """
    return create_monitor_config(
        feed_url=os.getenv("MONITOR_FEED_URL", DEFAULT_FEED_URL),
        api_base_url=os.getenv("MONITOR_API_URL", DEFAULT_API_BASE_URL),
        transaction_capacity=_env_int("MONITOR_TX_CAPACITY", DEFAULT_TRANSACTION_CAPACITY),
        alert_capacity=_env_int("MONITOR_ALERT_CAPACITY", DEFAULT_ALERT_CAPACITY),
        reconnect_enabled=_env_bool("MONITOR_RECONNECT", False),
        auth_token=os.getenv("MONITOR_AUTH_TOKEN"),
    )
