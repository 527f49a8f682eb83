"""
core/action/flow.py - 액션 호출 상태 머신

한 번의 액션 호출은 한 왕복 안에서 종료됩니다.

    SELECTED ─┬─ (confirm == NONE) ──────────────→ CONFIRMED ─→ DISPATCHED ─→ COMPLETED
              └─ AWAITING_CONFIRMATION ─┬─ 확인 ─→ CONFIRMED
                                        └─ 취소 ─→ CANCELLED (실행기 호출 없음, 결과 없음)

확인 정책은 프롬프트 방식의 힌트일 뿐이며, 실제 프롬프트는 호스트가 구현합니다.
DANGEROUS는 confirmation_phrase()와 동일한 입력이 있어야 확인됩니다.

Example:
    invocation = ActionInvocation(action, resource, "ec2", "instances")
    if invocation.state is InvocationState.AWAITING_CONFIRMATION:
        if not invocation.confirm(user_input):
            ...
    result = invocation.dispatch(ctx, actions)
"""

from __future__ import annotations

from enum import Enum

from core.config import Settings
from core.context import RequestContext
from core.dao import Resource, unwrap_resource
from core.exceptions import InvalidStateError

from .executor import execute_action
from .registry import ActionRegistry
from .types import Action, ActionResult, ConfirmLevel


class InvocationState(Enum):
    """액션 호출 상태"""

    SELECTED = "selected"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ActionInvocation:
    """액션 호출 한 건

    Attributes:
        action: 선택된 액션
        resource: 대상 리소스
        service: 서비스 이름
        resource_type: 리소스 종류
        state: 현재 상태
        result: COMPLETED일 때의 결과 (취소 시 None)
    """

    def __init__(self, action: Action, resource: Resource, service: str, resource_type: str):
        self.action = action
        self.resource = resource
        self.service = service
        self.resource_type = resource_type
        self.result: ActionResult | None = None

        if action.confirm == ConfirmLevel.NONE:
            self.state = InvocationState.CONFIRMED
        else:
            self.state = InvocationState.AWAITING_CONFIRMATION

    @property
    def confirm_level(self) -> ConfirmLevel:
        return self.action.confirm

    def confirmation_phrase(self) -> str:
        """DANGEROUS 확인 시 다시 입력해야 하는 문자열 (이름, 없으면 ID)"""
        target = unwrap_resource(self.resource)
        return target.get_name() or target.get_id()

    def confirm(self, text: str = "") -> bool:
        """확인 처리

        SIMPLE은 입력 없이 확인됩니다. DANGEROUS는 confirmation_phrase()와
        정확히 같은 입력이 필요하며, 다르면 상태가 바뀌지 않고 False를 반환합니다.

        Raises:
            InvalidStateError: 확인 대기 상태가 아닌 경우
        """
        self._require(InvocationState.AWAITING_CONFIRMATION, "confirm")

        if self.action.confirm == ConfirmLevel.DANGEROUS and text.strip() != self.confirmation_phrase():
            return False

        self.state = InvocationState.CONFIRMED
        return True

    def cancel(self) -> None:
        """사용자 취소 (실패가 아님, 결과 없음)

        Raises:
            InvalidStateError: 이미 실행했거나 종료된 경우
        """
        if self.state not in (InvocationState.SELECTED, InvocationState.AWAITING_CONFIRMATION, InvocationState.CONFIRMED):
            raise InvalidStateError(self.state.value, "cancel")
        self.state = InvocationState.CANCELLED

    def dispatch(
        self,
        ctx: RequestContext,
        registry: ActionRegistry,
        settings: Settings | None = None,
    ) -> ActionResult:
        """확인된 액션 실행

        Raises:
            InvalidStateError: 확인되지 않았거나 이미 실행/취소된 경우
        """
        self._require(InvocationState.CONFIRMED, "dispatch")

        self.state = InvocationState.DISPATCHED
        self.result = execute_action(
            ctx,
            self.action,
            self.resource,
            self.service,
            self.resource_type,
            registry,
            settings,
        )
        self.state = InvocationState.COMPLETED
        return self.result

    @property
    def done(self) -> bool:
        return self.state in (InvocationState.COMPLETED, InvocationState.CANCELLED)

    def _require(self, expected: InvocationState, attempted: str) -> None:
        if self.state is not expected:
            raise InvalidStateError(self.state.value, attempted)
