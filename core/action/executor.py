"""
core/action/executor.py - 액션 실행

선택된 액션을 리소스에 대해 실행하고 ActionResult를 반환합니다.

실행 순서:
    1. 리전 래핑 해제 (실행기는 항상 구체 타입을 받음)
    2. API 액션 구성 검증 (operation 누락)
    3. 읽기 전용 모드 검사
    4. 취소 여부 확인
    5. 종류별 디스패치
       - API: 액션 handler → 없으면 등록된 실행기
       - EXEC: 변수 치환 후 셸 명령 실행
       - VIEW: 호스트에 이동 대상 전달

실행기는 업스트림 호출을 정확히 한 번 수행하며 재시도하지 않습니다.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import TYPE_CHECKING

from core.config import CredentialMode, Settings, get_settings
from core.context import RequestContext
from core.dao import Resource, get_resource_region, unwrap_resource
from core.exceptions import (
    EmptyCommandError,
    EmptyOperationError,
    ExecutorNotFoundError,
    OperationCancelledError,
    ReadOnlyDeniedError,
    UnsafeValueError,
)

from .types import (
    ACTION_NAME_LOGIN,
    ACTION_NAME_SSO_LOGIN,
    ACTION_NAME_TAIL_LOGS,
    ACTION_NAME_VIEW_RECENT_1H,
    ACTION_NAME_VIEW_RECENT_24H,
    Action,
    ActionResult,
    ActionType,
)

if TYPE_CHECKING:
    from .registry import ActionRegistry

logger = logging.getLogger(__name__)

# 읽기 전용 모드에서 허용되는 API operation
READ_ONLY_ALLOWLIST: frozenset[str] = frozenset(
    {
        "DetectStackDrift",  # 분석만 수행, 스택 변경 없음
        "InvokeFunctionDryRun",  # 검증 모드, 실제 호출 없음
        "SwitchProfile",  # 로컬 설정 변경
    }
)

# 읽기 전용 모드에서 허용되는 EXEC 액션 (인증 및 조회 전용)
READ_ONLY_EXEC_ALLOWLIST: frozenset[str] = frozenset(
    {
        ACTION_NAME_SSO_LOGIN,
        ACTION_NAME_LOGIN,
        ACTION_NAME_TAIL_LOGS,
        ACTION_NAME_VIEW_RECENT_1H,
        ACTION_NAME_VIEW_RECENT_24H,
    }
)

_SHELL_METACHARS = frozenset(";|&$`(){}<>\n\r")

# 선택 변수: 리소스가 해당 메서드를 제공하면 치환
_OPTIONAL_VARIABLES = {
    "${PRIVATE_IP}": "get_private_ip",
    "${CLUSTER}": "get_cluster_arn",
    "${CONTAINER}": "get_first_container_name",
    "${LOG_GROUP}": "get_log_group_name",
}


def contains_shell_metachar(value: str) -> bool:
    """명령 주입에 쓰일 수 있는 셸 메타문자 포함 여부"""
    return any(c in _SHELL_METACHARS for c in value)


def expand_variables(command: str, resource: Resource, region: str = "") -> str:
    """명령 문자열의 변수를 리소스 값으로 치환

    기본 변수: ${ID}, ${NAME}, ${ARN}, ${INSTANCE_ID}, ${BUCKET}, ${REGION}
    선택 변수: ${PRIVATE_IP}, ${CLUSTER}, ${CONTAINER}, ${LOG_GROUP}

    Raises:
        UnsafeValueError: 사용되는 변수 값에 셸 메타문자가 포함된 경우
    """
    replacements = {
        "${ID}": resource.get_id(),
        "${NAME}": resource.get_name(),
        "${ARN}": resource.get_arn(),
        "${INSTANCE_ID}": resource.get_id(),
        "${BUCKET}": resource.get_id(),
        "${REGION}": region,
    }
    for variable, method_name in _OPTIONAL_VARIABLES.items():
        getter = getattr(resource, method_name, None)
        if callable(getter):
            replacements[variable] = getter()

    for variable, value in replacements.items():
        if variable in command and contains_shell_metachar(value):
            raise UnsafeValueError(variable)

    result = command
    for variable, value in replacements.items():
        result = result.replace(variable, value)
    return result


def build_subprocess_env(settings: Settings, region: str = "") -> dict[str, str]:
    """EXEC 액션용 환경 변수 (현재 프로파일/리전 주입)"""
    env = dict(os.environ)
    selection = settings.selection

    if selection.mode == CredentialMode.NAMED_PROFILE:
        env["AWS_PROFILE"] = selection.profile_name
    elif selection.mode == CredentialMode.ENV_ONLY:
        env.pop("AWS_PROFILE", None)

    effective_region = region or settings.region
    if effective_region:
        env["AWS_REGION"] = effective_region
        env["AWS_DEFAULT_REGION"] = effective_region
    return env


def check_read_only(action: Action, settings: Settings) -> ReadOnlyDeniedError | None:
    """읽기 전용 모드에서 거부되면 예외 객체, 허용되면 None"""
    if not settings.read_only:
        return None

    if action.type == ActionType.VIEW:
        return None
    if action.type == ActionType.EXEC:
        if action.name in READ_ONLY_EXEC_ALLOWLIST:
            return None
        logger.info(f"read-only denied exec action: {action.name}")
        return ReadOnlyDeniedError(action.name)
    if action.operation in READ_ONLY_ALLOWLIST:
        return None
    logger.info(f"read-only denied API action: {action.operation}")
    return ReadOnlyDeniedError(action.name)


def execute_action(
    ctx: RequestContext,
    action: Action,
    resource: Resource,
    service: str,
    resource_type: str,
    registry: ActionRegistry,
    settings: Settings | None = None,
) -> ActionResult:
    """액션 실행

    업스트림 실패는 예외로 던지지 않고 실패 ActionResult로 반환합니다.

    Args:
        ctx: 요청 컨텍스트
        action: 실행할 액션
        resource: 대상 리소스 (리전 래핑되어 있어도 됨)
        service: 서비스 이름 (실행기 조회용)
        resource_type: 리소스 종류 (실행기 조회용)
        registry: 액션 레지스트리
        settings: 설정 (None이면 프로세스 설정)

    Returns:
        ActionResult
    """
    settings = settings or get_settings()
    region = get_resource_region(resource) or ctx.region
    target = unwrap_resource(resource)

    logger.info(
        f"executing action: action={action.name} type={action.type.value} "
        f"service={service} resourceType={resource_type} resourceID={target.get_id()}"
    )

    if action.type == ActionType.API and not action.operation and action.handler is None:
        logger.error(f"API action missing operation: {action.name} ({service}/{resource_type})")
        return ActionResult.fail(EmptyOperationError(action.name))

    denied = check_read_only(action, settings)
    if denied is not None:
        return ActionResult.fail(denied)

    try:
        ctx.raise_if_cancelled()
        result = _dispatch(ctx, action, target, service, resource_type, registry, settings, region)
    except OperationCancelledError as e:
        result = ActionResult.fail(e)
    except Exception as e:
        logger.exception(f"action raised: {action.name}")
        result = ActionResult.fail(e)

    if result.success:
        logger.info(f"action completed: {action.name}")
    else:
        logger.error(f"action failed: {action.name} error={result.error}")
    return result


def _dispatch(
    ctx: RequestContext,
    action: Action,
    target: Resource,
    service: str,
    resource_type: str,
    registry: ActionRegistry,
    settings: Settings,
    region: str,
) -> ActionResult:
    if action.type == ActionType.EXEC:
        return _execute_exec(ctx, action, target, settings, region)

    if action.type == ActionType.VIEW:
        return ActionResult(success=True, message=f"navigate to {action.target}", follow_up=action.target)

    if action.handler is not None:
        return action.handler(ctx, target)

    executor = registry.get_executor(service, resource_type)
    if executor is None:
        return ActionResult.fail(ExecutorNotFoundError(service, resource_type))
    return executor(ctx, action, target)


def _execute_exec(
    ctx: RequestContext,
    action: Action,
    target: Resource,
    settings: Settings,
    region: str,
) -> ActionResult:
    command = expand_variables(action.command, target, region)
    if not command.strip():
        return ActionResult.fail(EmptyCommandError(action.name))

    env = None if action.skip_aws_env else build_subprocess_env(settings, region)

    # 따옴표, 파이프, 리다이렉션을 위해 셸을 거쳐 실행
    try:
        completed = subprocess.run(
            ["/bin/sh", "-c", command],
            env=env,
            timeout=ctx.remaining(),
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise OperationCancelledError("context deadline exceeded") from e
    except OSError as e:
        return ActionResult.failf(e, "exec %s", action.name)

    if completed.returncode != 0:
        error = subprocess.CalledProcessError(completed.returncode, command)
        return ActionResult.failf(error, "exec %s", action.name)

    return ActionResult.ok("Command executed successfully")
