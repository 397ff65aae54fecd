"""
모니터링 설정 팩토리 테스트
"""

import pytest

from txn_monitor.domain.exceptions import InvalidConfigurationError
from txn_monitor.infrastructure.connectors.feed_config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_FEED_URL,
    create_monitor_config,
    load_monitor_config_from_env,
)

ENV_NAMES = (
    "MONITOR_FEED_URL",
    "MONITOR_API_URL",
    "MONITOR_TX_CAPACITY",
    "MONITOR_ALERT_CAPACITY",
    "MONITOR_RECONNECT",
    "MONITOR_AUTH_TOKEN",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


class TestCreateMonitorConfig:
    def test_기본값은_로컬_백엔드(self) -> None:
        config = create_monitor_config()

        assert config.feed_url == DEFAULT_FEED_URL
        assert config.api_base_url == DEFAULT_API_BASE_URL
        assert config.reconnect_enabled is False
        assert config.subscribed_alert_types == frozenset()

    def test_빈_토큰은_None(self) -> None:
        assert create_monitor_config(auth_token="").auth_token is None


class TestLoadFromEnv:
    def test_환경_변수_적용(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        GIVEN: MONITOR_* 환경 변수
        WHEN: 설정을 로드하면
        THEN: 각 값이 반영되어야 한다
        """
        # GIVEN
        monkeypatch.setenv("MONITOR_FEED_URL", "wss://feed.example.com/ws")
        monkeypatch.setenv("MONITOR_API_URL", "https://api.example.com/api/")
        monkeypatch.setenv("MONITOR_TX_CAPACITY", "10")
        monkeypatch.setenv("MONITOR_ALERT_CAPACITY", "5")
        monkeypatch.setenv("MONITOR_RECONNECT", "yes")
        monkeypatch.setenv("MONITOR_AUTH_TOKEN", "tok")

        # WHEN
        config = load_monitor_config_from_env()

        # THEN
        assert config.feed_url == "wss://feed.example.com/ws"
        assert config.api_base_url == "https://api.example.com/api"
        assert config.transaction_capacity == 10
        assert config.alert_capacity == 5
        assert config.reconnect_enabled is True
        assert config.auth_headers() == {"Authorization": "Bearer tok"}

    def test_환경_변수가_없으면_기본값(self) -> None:
        config = load_monitor_config_from_env()
        assert config.transaction_capacity == 50
        assert config.auth_token is None

    @pytest.mark.parametrize(
        "name, value",
        [
            ("MONITOR_TX_CAPACITY", "many"),
            ("MONITOR_RECONNECT", "maybe"),
            ("MONITOR_ALERT_CAPACITY", "0"),
        ],
    )
    def test_잘못된_값은_InvalidConfigurationError(
        self, monkeypatch: pytest.MonkeyPatch, name: str, value: str
    ) -> None:
        monkeypatch.setenv(name, value)

        with pytest.raises(InvalidConfigurationError):
            load_monitor_config_from_env()
