"""
거래 모니터 예외

푸시 피드, 프레임 디코딩, REST 제출/조회에서 나는 오류를 세 갈래로 나눕니다.
호출자는 갈래 단위로 잡고, 원인 예외는 cause로 넘겨 __cause__에 연결합니다.

    MonitorException
    ├── ConnectionException    피드 연결이 없거나 끊김
    ├── ValidationException    값/프레임/설정/상태 전환이 규칙에 어긋남
    └── SubmissionException    백엔드 REST 호출 실패
"""


class MonitorException(Exception):
    """
    모든 모니터 예외의 루트

    Attributes:
        message: 무엇이 어디서 실패했는지 (URL, 사용자, 거래 id 등)

    Examples:
        >>> try:
        ...     int("15,000")
        ... except ValueError as e:
        ...     err = MonitorException("amount is not numeric", cause=e)
        >>> str(err)
        "amount is not numeric (Caused by: invalid literal for int() with base 10: '15,000')"
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.__cause__:
            return f"{self.message} (Caused by: {self.__cause__})"
        return self.message


# ---------- 푸시 피드 연결 ----------


class ConnectionException(MonitorException):
    """푸시 피드를 쓸 수 없는 상태. MonitoringService는 이 갈래를 받으면 소비를 멈춥니다."""


class ConnectionFailedError(ConnectionException):
    """핸드셰이크 또는 구독 메시지 전송까지 가지 못함 (상태는 CLOSED로 돌아감)"""


class ConnectionClosedError(ConnectionException):
    """OPEN이던 피드가 끊겼고 재연결하지 않거나 재연결 시도를 모두 썼음"""


# ---------- 검증 ----------


class ValidationException(MonitorException):
    """
    도메인 규칙 위반

    Examples:
        >>> raise ValidationException("Transaction validation failed: amount must be non-negative, got -10")
    """


class InvalidMessageError(ValidationException):
    """디코딩할 수 없는 프레임/페이로드. 피드에서는 프레임만 버리고 계속 받습니다."""


class InvalidConfigurationError(ValidationException):
    """MonitorConfig, 버퍼 용량, 시나리오 타이밍 등 설정 값 오류"""


class InvalidTransitionError(ValidationException):
    """ConnectionState가 허용하지 않는 전환 (예: CLOSED -> OPEN)"""


# ---------- REST 백엔드 ----------


class SubmissionException(MonitorException):
    """REST 백엔드 호출 실패. 시퀀서는 기록만 하고 다음 단계로 넘어갑니다."""


class SubmissionFailedError(SubmissionException):
    """POST /transactions 실패: 전송 오류, 2xx 이외 응답, id 없는 응답"""


class SnapshotFetchError(SubmissionException):
    """GET 스냅샷/통계 실패. 시작 시 시드는 건너뛰고 빈 버퍼로 계속합니다."""
