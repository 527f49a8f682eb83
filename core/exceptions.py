"""
core/exceptions.py - 통합 예외 계층 구조

브라우저 코어(DAO, 레지스트리, 액션) 전체에서 사용되는 예외 클래스와
AWS 에러 분류 유틸리티를 정의합니다.

예외 계층 구조:
    BrowserError (베이스)
    ├── DAOError (데이터 접근)
    │   ├── NotFoundError
    │   ├── ResourceInUseError
    │   ├── UnsupportedOperationError
    │   └── UpstreamError
    ├── OperationCancelledError (컨텍스트 취소/타임아웃)
    ├── ActionError (액션 실행)
    │   ├── UnknownOperationError
    │   ├── EmptyOperationError
    │   ├── EmptyCommandError
    │   ├── UnsafeValueError
    │   ├── InvalidResourceTypeError
    │   ├── ReadOnlyDeniedError
    │   ├── ExecutorNotFoundError
    │   └── InvalidStateError
    ├── RegistryError (플러그인 레지스트리)
    │   ├── RegistryFrozenError
    │   ├── ResourceTypeNotRegisteredError
    │   └── PluginLoadError
    └── ConfigError (설정 관련)

Usage:
    from core.exceptions import upstream_call, is_not_found

    with upstream_call("ec2", "terminate instance", instance_id):
        client.terminate_instances(InstanceIds=[instance_id])
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# =============================================================================
# 베이스 예외
# =============================================================================


class BrowserError(Exception):
    """리소스 브라우저 기본 예외 클래스

    모든 커스텀 예외의 베이스 클래스입니다.

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """예외 정보를 딕셔너리로 반환"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# DAO 관련 예외
# =============================================================================


class DAOError(BrowserError):
    """DAO 호출 관련 예외"""

    def __init__(
        self,
        message: str,
        service: str = "",
        operation: str = "",
        target: str = "",
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.service = service
        self.operation = operation
        self.target = target
        self.details.update({"service": service, "operation": operation, "target": target})


class NotFoundError(DAOError):
    """대상 리소스가 업스트림에 존재하지 않음

    Get은 호출자에게 전달하고, Delete는 성공(no-op)으로 취급합니다.
    """


class ResourceInUseError(DAOError):
    """의존 리소스가 있어 삭제가 거부됨 (Conflict)"""


class UnsupportedOperationError(DAOError):
    """DAO가 지원하지 않는 작업 (supports()가 False인 작업을 호출)"""

    def __init__(self, service: str, operation: str, target: str = ""):
        context = f"{operation} {target}".strip()
        super().__init__(f"{context}: operation not supported", service=service, operation=operation, target=target)


class UpstreamError(DAOError):
    """그 외 업스트림 호출 실패

    botocore ClientError를 래핑하여 작업 이름과 대상 ID를 함께 보관합니다.
    """

    def __init__(
        self,
        message: str,
        service: str = "",
        operation: str = "",
        target: str = "",
        error_code: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, service=service, operation=operation, target=target, cause=cause)
        self.error_code = error_code
        self.details["error_code"] = error_code


class OperationCancelledError(BrowserError):
    """요청 컨텍스트가 취소되었거나 데드라인을 넘김

    UpstreamError로 뭉개지지 않도록 별도 종류로 전파됩니다.
    """

    def __init__(self, reason: str = "context cancelled"):
        super().__init__(reason)
        self.reason = reason


# =============================================================================
# 액션 관련 예외
# =============================================================================


class ActionError(BrowserError):
    """액션 실행 관련 예외"""


class UnknownOperationError(ActionError):
    """실행기에 해당 operation 분기가 없음 (등록/프로그래밍 오류)"""

    def __init__(self, operation: str):
        super().__init__(f"unknown operation: {operation}")
        self.operation = operation
        self.details["operation"] = operation


class EmptyOperationError(ActionError):
    """API 액션에 operation이 정의되지 않음"""

    def __init__(self, action_name: str = ""):
        super().__init__("API action has no operation defined")
        self.details["action"] = action_name


class EmptyCommandError(ActionError):
    """exec 액션의 명령이 비어 있음"""

    def __init__(self, action_name: str = ""):
        super().__init__("empty command")
        self.details["action"] = action_name


class UnsafeValueError(ActionError):
    """치환 값에 셸 메타문자가 포함됨"""

    def __init__(self, variable: str):
        super().__init__(f"variable value contains unsafe characters: {variable} contains shell metacharacters")
        self.variable = variable
        self.details["variable"] = variable


class InvalidResourceTypeError(ActionError):
    """실행기가 기대한 리소스 타입이 아님"""

    def __init__(self, expected: str = "", actual: str = ""):
        message = "invalid resource type"
        if expected:
            message = f"{message}: expected {expected}, got {actual}"
        super().__init__(message)
        self.details.update({"expected": expected, "actual": actual})


class ReadOnlyDeniedError(ActionError):
    """읽기 전용 모드에서 거부된 액션"""

    def __init__(self, action_name: str):
        super().__init__(f"action denied in read-only mode: {action_name}")
        self.action_name = action_name
        self.details["action"] = action_name


class ExecutorNotFoundError(ActionError):
    """(service, resource) 키에 실행기가 등록되지 않음"""

    def __init__(self, service: str, resource_type: str):
        super().__init__(f"no executor registered for {service}/{resource_type}")
        self.details.update({"service": service, "resource_type": resource_type})


class InvalidStateError(ActionError):
    """액션 호출 상태 머신의 잘못된 전이"""

    def __init__(self, current: str, attempted: str):
        super().__init__(f"cannot {attempted} from state {current}")
        self.details.update({"state": current, "attempted": attempted})


# =============================================================================
# 레지스트리 관련 예외
# =============================================================================


class RegistryError(BrowserError):
    """플러그인 레지스트리 관련 예외"""


class RegistryFrozenError(RegistryError):
    """시작 단계 이후의 등록 시도"""

    def __init__(self, service: str, resource_type: str):
        super().__init__(f"registry is frozen: cannot register {service}/{resource_type}")
        self.details.update({"service": service, "resource_type": resource_type})


class ResourceTypeNotRegisteredError(RegistryError):
    """조회한 (service, resource) 키가 등록되어 있지 않음"""

    def __init__(self, service: str, resource_type: str):
        super().__init__(f"resource type not registered: {service}/{resource_type}")
        self.service = service
        self.resource_type = resource_type
        self.details.update({"service": service, "resource_type": resource_type})


class PluginLoadError(RegistryError):
    """플러그인 로드 실패 예외"""

    def __init__(
        self,
        plugin_name: str,
        reason: str,
        cause: Exception | None = None,
    ):
        message = f"플러그인 로드 실패 [{plugin_name}]: {reason}"
        super().__init__(message, cause)
        self.plugin_name = plugin_name
        self.reason = reason
        self.details["plugin_path"] = plugin_name


# =============================================================================
# 설정 관련 예외
# =============================================================================


class ConfigError(BrowserError):
    """설정 관련 예외"""

    def __init__(
        self,
        key: str,
        message: str,
        cause: Exception | None = None,
    ):
        full_message = f"설정 오류 [{key}]: {message}"
        super().__init__(full_message, cause)
        self.config_key = key
        self.details["config_key"] = key


# =============================================================================
# 에러 분류
# =============================================================================


class ErrorKind(Enum):
    """에러 분류"""

    UNKNOWN = "Unknown"
    AUTH = "Auth"
    THROTTLING = "Throttling"
    NOT_FOUND = "NotFound"
    IN_USE = "InUse"
    VALIDATION = "Validation"
    CANCELLED = "Cancelled"

    def __str__(self) -> str:
        return self.value


NOT_FOUND_CODES = frozenset(
    {
        "NotFound",
        "ResourceNotFoundException",
        "NoSuchEntity",
        "404",
        "NoSuchBucket",
        "NoSuchKey",
        "NotFoundException",
        "ResourceNotFoundFault",
        "InvalidInstanceID.NotFound",
    }
)

ACCESS_DENIED_CODES = frozenset(
    {
        "AccessDenied",
        "UnauthorizedAccess",
        "Forbidden",
        "403",
        "AccessDeniedException",
        "AuthorizationError",
        "UnauthorizedException",
    }
)

THROTTLING_CODES = frozenset(
    {
        "Throttling",
        "TooManyRequestsException",
        "RequestLimitExceeded",
        "429",
        "ThrottlingException",
        "ProvisionedThroughputExceededException",
        "SlowDown",
    }
)

IN_USE_CODES = frozenset(
    {
        "ResourceInUseException",
        "DependencyViolation",
        "ResourceInUse",
        "DeleteConflict",
        "HasAttachedResources",
        "ConflictException",
    }
)

VALIDATION_CODES = frozenset(
    {
        "ValidationError",
        "InvalidParameterException",
        "InvalidParameterValue",
        "MalformedInput",
        "InvalidInput",
        "BadRequestException",
    }
)


def get_error_code(error: BaseException | None) -> str:
    """예외에서 AWS 에러 코드 추출

    Args:
        error: 확인할 예외

    Returns:
        에러 코드 (없으면 빈 문자열)
    """
    if error is None:
        return ""

    if isinstance(error, UpstreamError):
        return error.error_code or ""

    # botocore ClientError 형식
    response = getattr(error, "response", None)
    if isinstance(response, dict):
        return response.get("Error", {}).get("Code", "") or ""

    # 래핑된 예외는 원인을 확인
    cause = getattr(error, "cause", None) or error.__cause__
    if cause is not None and cause is not error:
        return get_error_code(cause)

    return ""


def get_error_message(error: BaseException | None) -> str:
    """예외에서 AWS 에러 메시지 추출 (없으면 str(error))"""
    if error is None:
        return ""

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        message = response.get("Error", {}).get("Message")
        if message:
            return message

    return str(error)


def _has_error_code(error: BaseException | None, codes: frozenset[str]) -> bool:
    if error is None:
        return False

    code = get_error_code(error)
    if code:
        return code in codes

    # Fallback: 코드가 없을 때만 메시지 검사 (숫자 코드는 ID와 혼동되므로 제외)
    text = str(error)
    return any(c in text for c in codes if not c.isdigit())


def is_not_found(error: BaseException | None) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인"""
    if isinstance(error, NotFoundError):
        return True
    return _has_error_code(error, NOT_FOUND_CODES)


def is_access_denied(error: BaseException | None) -> bool:
    """액세스 거부 오류인지 확인"""
    return _has_error_code(error, ACCESS_DENIED_CODES)


def is_throttling(error: BaseException | None) -> bool:
    """스로틀링 오류인지 확인"""
    return _has_error_code(error, THROTTLING_CODES)


def is_resource_in_use(error: BaseException | None) -> bool:
    """리소스 사용 중(의존성) 오류인지 확인"""
    if isinstance(error, ResourceInUseError):
        return True
    return _has_error_code(error, IN_USE_CODES)


def is_validation_error(error: BaseException | None) -> bool:
    """입력 검증 오류인지 확인"""
    if isinstance(error, UnsupportedOperationError):
        return True
    return _has_error_code(error, VALIDATION_CODES)


def is_cancelled(error: BaseException | None) -> bool:
    """컨텍스트 취소 오류인지 확인"""
    return isinstance(error, OperationCancelledError)


def classify(error: BaseException | None) -> ErrorKind:
    """예외를 ErrorKind로 분류

    Args:
        error: 분류할 예외

    Returns:
        ErrorKind (None이면 UNKNOWN)
    """
    if error is None:
        return ErrorKind.UNKNOWN
    if is_cancelled(error):
        return ErrorKind.CANCELLED
    if is_not_found(error):
        return ErrorKind.NOT_FOUND
    if is_access_denied(error):
        return ErrorKind.AUTH
    if is_throttling(error):
        return ErrorKind.THROTTLING
    if is_resource_in_use(error):
        return ErrorKind.IN_USE
    if is_validation_error(error):
        return ErrorKind.VALIDATION
    return ErrorKind.UNKNOWN


# =============================================================================
# 업스트림 에러 변환
# =============================================================================


def translate_client_error(
    error: Exception,
    service: str,
    operation: str,
    target: str = "",
) -> DAOError:
    """업스트림 예외를 DAO 예외로 변환

    메시지는 "<operation> <target>: <cause>" 형식으로 구성됩니다.

    Args:
        error: boto3/botocore 예외
        service: AWS 서비스 이름
        operation: 사람이 읽을 수 있는 작업 이름 (예: "delete load balancer")
        target: 대상 리소스 ID

    Returns:
        NotFoundError, ResourceInUseError 또는 UpstreamError
    """
    context = f"{operation} {target}".strip()
    logger.warning(f"{context} 실패 [{service}]: {error}")

    if is_not_found(error):
        return NotFoundError(context, service=service, operation=operation, target=target, cause=error)
    if is_resource_in_use(error):
        return ResourceInUseError(context, service=service, operation=operation, target=target, cause=error)
    return UpstreamError(
        context,
        service=service,
        operation=operation,
        target=target,
        error_code=get_error_code(error) or None,
        cause=error,
    )


@contextmanager
def upstream_call(service: str, operation: str, target: str = "") -> Iterator[None]:
    """업스트림 호출 하나를 감싸 DAO 예외로 변환하는 컨텍스트 매니저

    BrowserError는 그대로 통과시키고, 그 외 botocore 예외만 변환합니다.

    Example:
        with upstream_call("elbv2", "delete load balancer", arn):
            client.delete_load_balancer(LoadBalancerArn=arn)
    """
    from botocore.exceptions import BotoCoreError, ClientError

    try:
        yield
    except BrowserError:
        raise
    except (ClientError, BotoCoreError) as e:
        raise translate_client_error(e, service, operation, target) from e


def format_error_for_user(error: Exception) -> str:
    """사용자에게 표시할 에러 메시지 포맷팅

    Args:
        error: 예외

    Returns:
        사용자 친화적인 에러 메시지
    """
    if isinstance(error, ResourceInUseError):
        return f"{error}\n다른 리소스가 사용 중이라 삭제할 수 없습니다. 의존 리소스를 먼저 정리하세요."

    if isinstance(error, BrowserError):
        return str(error)

    if hasattr(error, "response"):
        code = get_error_code(error) or "UnknownError"
        message = get_error_message(error)

        friendly_messages = {
            "AccessDenied": "권한이 없습니다. IAM 정책을 확인하세요.",
            "ExpiredToken": "인증 토큰이 만료되었습니다. 다시 로그인하세요.",
            "InvalidClientTokenId": "잘못된 자격 증명입니다.",
            "Throttling": "요청이 너무 많습니다. 잠시 후 다시 시도하세요.",
        }

        return friendly_messages.get(code, f"{code}: {message}")

    return str(error)
