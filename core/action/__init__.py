"""
core/action - 액션 프레임워크

선언형 변경 작업 목록을 확인 → 디스패치 → 결과 보고로 이어지는 실행으로 바꿉니다.

주요 구성 요소:
- Action / ActionResult: 액션 선언과 실행 결과
- ActionRegistry: (service, resource-kind)별 액션 목록과 실행기
- ActionInvocation: 호출 한 건의 상태 머신 (확인/취소/실행)
- execute_action: 읽기 전용 검사와 디스패치

Example:
    actions.register("ec2", "instances", [
        Action(name="Stop", shortcut="S", operation="StopInstances", confirm=ConfirmLevel.SIMPLE),
    ])
    actions.register_executor("ec2", "instances", execute_instance_action)
"""

from .executor import (
    READ_ONLY_ALLOWLIST,
    READ_ONLY_EXEC_ALLOWLIST,
    build_subprocess_env,
    check_read_only,
    contains_shell_metachar,
    execute_action,
    expand_variables,
)
from .flow import ActionInvocation, InvocationState
from .registry import ActionRegistry
from .types import (
    ACTION_NAME_LOGIN,
    ACTION_NAME_SSO_LOGIN,
    ACTION_NAME_TAIL_LOGS,
    ACTION_NAME_VIEW_RECENT_1H,
    ACTION_NAME_VIEW_RECENT_24H,
    Action,
    ActionHandler,
    ActionResult,
    ActionType,
    ConfirmLevel,
    ExecutorFunc,
)

__all__: list[str] = [
    # Types
    "Action",
    "ActionResult",
    "ActionType",
    "ConfirmLevel",
    "ActionHandler",
    "ExecutorFunc",
    # Registry
    "ActionRegistry",
    # Flow
    "ActionInvocation",
    "InvocationState",
    # Executor
    "execute_action",
    "expand_variables",
    "contains_shell_metachar",
    "build_subprocess_env",
    "check_read_only",
    "READ_ONLY_ALLOWLIST",
    "READ_ONLY_EXEC_ALLOWLIST",
    # Names
    "ACTION_NAME_SSO_LOGIN",
    "ACTION_NAME_LOGIN",
    "ACTION_NAME_TAIL_LOGS",
    "ACTION_NAME_VIEW_RECENT_1H",
    "ACTION_NAME_VIEW_RECENT_24H",
]
