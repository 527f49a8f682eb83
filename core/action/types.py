"""
core/action/types.py - 액션 타입 정의

(service, resource-kind)별로 선언하는 변경 작업(시작, 중지, 삭제 등)과
그 실행 결과를 표현합니다.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from core.exceptions import InvalidResourceTypeError, UnknownOperationError

if TYPE_CHECKING:
    from core.context import RequestContext
    from core.dao import Resource


class ActionType(str, Enum):
    """액션 종류"""

    API = "api"  # AWS API 호출
    EXEC = "exec"  # 외부 명령 실행
    VIEW = "view"  # 다른 화면으로 이동


class ConfirmLevel(str, Enum):
    """확인 정책 (프롬프트 구현은 호스트 몫)"""

    NONE = "none"  # 즉시 실행
    SIMPLE = "simple"  # 한 번 확인
    DANGEROUS = "dangerous"  # 리소스 이름 재입력 등 명시적 확인


# 교차 참조용 액션 이름
ACTION_NAME_SSO_LOGIN = "SSO Login"
ACTION_NAME_LOGIN = "Login"
ACTION_NAME_TAIL_LOGS = "Tail Logs"
ACTION_NAME_VIEW_RECENT_1H = "View Recent (1h)"
ACTION_NAME_VIEW_RECENT_24H = "View Recent (24h)"


@dataclass(frozen=True)
class ActionResult:
    """액션 실행 결과

    Attributes:
        success: 성공 여부
        message: 사용자 표시 메시지
        error: 실패 원인
        follow_up: 성공 후 호스트에 전달할 후속 메시지 (선택)
    """

    success: bool
    message: str = ""
    error: Exception | None = None
    follow_up: Any = None

    @classmethod
    def ok(cls, message: str) -> ActionResult:
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, error: Exception) -> ActionResult:
        return cls(success=False, error=error)

    @classmethod
    def failf(cls, error: Exception, fmt: str, *args: Any) -> ActionResult:
        """원인에 문맥을 붙인 실패 결과 (예: "stop instance i-123: <원인>")"""
        context = fmt % args if args else fmt
        return cls(success=False, message=f"{context}: {error}", error=error)

    @classmethod
    def unknown_operation(cls, operation: str) -> ActionResult:
        return cls(success=False, error=UnknownOperationError(operation))

    @classmethod
    def invalid_resource(cls, expected: str = "", actual: str = "") -> ActionResult:
        return cls(success=False, error=InvalidResourceTypeError(expected, actual))

    @property
    def display(self) -> str:
        """호스트 표시용 문자열"""
        if self.message:
            return self.message
        if self.error is not None:
            return str(self.error)
        return "OK" if self.success else "failed"


ActionHandler = Callable[["RequestContext", "Resource"], ActionResult]
ExecutorFunc = Callable[["RequestContext", "Action", "Resource"], ActionResult]


@dataclass(frozen=True)
class Action:
    """리소스에 수행할 수 있는 액션 선언

    Attributes:
        name: 표시 이름
        shortcut: 키보드 단축키
        type: 액션 종류
        operation: API 액션의 operation 식별자 (실행기 분기 키)
        command: EXEC 액션의 셸 명령 (${ID} 등 변수 치환)
        target: VIEW 액션의 이동 대상
        confirm: 확인 정책
        skip_aws_env: EXEC 시 AWS 환경 변수 주입 생략 (aws sso login 등)
        filter: 리소스별 표시 여부 (None이면 항상 표시)
        handler: 액션 고유 처리기. 지정하면 문자열 분기 없이 직접 호출
    """

    name: str
    shortcut: str = ""
    type: ActionType = ActionType.API
    operation: str = ""
    command: str = ""
    target: str = ""
    confirm: ConfirmLevel = ConfirmLevel.NONE
    skip_aws_env: bool = False
    filter: Callable[[Resource], bool] | None = None
    handler: ActionHandler | None = None

    def applies_to(self, resource: Resource) -> bool:
        """리소스에 이 액션을 표시할지 여부"""
        return self.filter is None or bool(self.filter(resource))

    @property
    def requires_confirmation(self) -> bool:
        return self.confirm != ConfirmLevel.NONE
