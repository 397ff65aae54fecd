"""
모니터링 클라이언트 설정 모델

푸시 피드 연결, REST 호출, 버퍼 용량에 필요한 설정을 담는 불변 도메인 모델입니다.
"""

from dataclasses import dataclass, field
from typing import FrozenSet
from urllib.parse import urlparse

from txn_monitor.domain.exceptions import InvalidConfigurationError


@dataclass(frozen=True)
class MonitorConfig:
    """
    거래 모니터링 클라이언트 설정을 담는 불변 객체입니다.

    Attributes:
        feed_url: 푸시 피드 WebSocket URL (ws:// 또는 wss://).
        api_base_url: 거래 제출/스냅샷 REST API 기본 URL (http:// 또는 https://).
        transaction_capacity: 최근 거래 버퍼 용량.
        alert_capacity: 최근 경고 버퍼 용량.
        highlight_seconds: 새 거래 강조(is_new) 표시 유지 시간 (초).
        ping_interval_seconds: WebSocket 프로토콜 ping 간격 (초).
        reconnect_enabled: 피드 끊김 시 자동 재연결 여부. 기본값은 재연결 없음.
        max_reconnect_attempts: 재연결 시도 최대 횟수. 0이면 무한 재시도.
        exponential_backoff_max_seconds: 지수 백오프 재시도 시 최대 대기 시간 (초).
        request_timeout_seconds: REST 호출 타임아웃 (초).
        seed_from_snapshot: 시작 시 REST 스냅샷으로 버퍼를 채울지 여부.
        subscribed_alert_types: 연결 직후 구독 요청할 경고 유형. 비어 있으면 구독 메시지 없음.
        auth_token: REST 호출과 피드 핸드셰이크에 붙일 Bearer 토큰 (외부에서 발급).
    """

    feed_url: str
    api_base_url: str
    transaction_capacity: int = 50
    alert_capacity: int = 20
    highlight_seconds: float = 3.0
    ping_interval_seconds: int = 20
    reconnect_enabled: bool = False
    max_reconnect_attempts: int = 5
    exponential_backoff_max_seconds: int = 30
    request_timeout_seconds: float = 5.0
    seed_from_snapshot: bool = True
    subscribed_alert_types: FrozenSet[str] = field(default_factory=frozenset)
    auth_token: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """객체 생성 후 불변 필드에 대한 추가 검증 및 정규화를 수행합니다."""
        # 끝의 슬래시 제거: 경로 결합 시 "//" 방지
        object.__setattr__(self, "api_base_url", (self.api_base_url or "").rstrip("/"))
        object.__setattr__(
            self, "subscribed_alert_types", frozenset(self.subscribed_alert_types)
        )

        self.validate()

    def validate(self) -> None:
        """
        설정 값의 유효성을 검사합니다.

        Raises:
            InvalidConfigurationError: 설정이 유효하지 않을 경우 발생합니다.
        """
        errors = []

        if not self._is_valid_url(self.feed_url, {"ws", "wss"}):
            errors.append(f"Invalid feed_url format: {self.feed_url}")

        if not self._is_valid_url(self.api_base_url, {"http", "https"}):
            errors.append(f"Invalid api_base_url format: {self.api_base_url}")

        if self.transaction_capacity < 1:
            errors.append("transaction_capacity must be a positive integer.")

        if self.alert_capacity < 1:
            errors.append("alert_capacity must be a positive integer.")

        if self.highlight_seconds < 0:
            errors.append("highlight_seconds cannot be negative.")

        if self.ping_interval_seconds < 1:
            errors.append("ping_interval_seconds must be at least 1 second.")

        if self.max_reconnect_attempts < 0:
            errors.append("max_reconnect_attempts cannot be negative.")

        if self.exponential_backoff_max_seconds < 1:
            errors.append("exponential_backoff_max_seconds must be at least 1 second.")

        if self.request_timeout_seconds <= 0:
            errors.append("request_timeout_seconds must be positive.")

        if errors:
            raise InvalidConfigurationError(
                f"MonitorConfig validation failed: {'; '.join(errors)}"
            )

    def _is_valid_url(self, url: str, schemes: set[str]) -> bool:
        """주어진 문자열이 허용된 스킴의 유효한 URL인지 검사합니다."""
        try:
            result = urlparse(url)
            return result.scheme in schemes and bool(result.netloc)
        except (ValueError, AttributeError):
            return False

    def is_infinite_reconnect(self) -> bool:
        """
        무한 재연결 모드 여부를 반환합니다.

        Returns:
            재연결이 켜져 있고 max_reconnect_attempts가 0이면 True
        """
        return self.reconnect_enabled and self.max_reconnect_attempts == 0

    def auth_headers(self) -> dict[str, str]:
        """Bearer 토큰이 설정되어 있으면 Authorization 헤더를 반환합니다."""
        if not self.auth_token:
            return {}
        return {"Authorization": f"Bearer {self.auth_token}"}

    def __str__(self) -> str:
        """객체의 사용자 친화적인 문자열 표현을 반환합니다."""
        return (
            f"MonitorConfig(feed_url={self.feed_url}, "
            f"api_base_url={self.api_base_url}, "
            f"capacity={self.transaction_capacity}/{self.alert_capacity}, "
            f"reconnect={'on' if self.reconnect_enabled else 'off'})"
        )
