"""
core/context.py - 요청 단위 컨텍스트

List/Get/Delete/액션 호출 한 번에 동반되는 불변 컨텍스트입니다.
취소 신호, 데드라인, 리전/프로파일 오버라이드, 필터 값을 담습니다.

모든 with_* 함수는 원본을 수정하지 않고 새 컨텍스트를 반환합니다 (copy-on-extend).

Example:
    from core.context import background, with_filter, get_filter_from_context

    ctx = with_filter(background(), "VpcId", "vpc-123")
    resources = dao.list(ctx)

    # DAO 내부
    vpc_id = get_filter_from_context(ctx, "VpcId")
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from .exceptions import OperationCancelledError

_EMPTY: Mapping[str, str] = MappingProxyType({})


class _CancelSignal:
    """취소 신호

    부모 신호가 설정되면 자식도 취소된 것으로 간주합니다.
    """

    def __init__(self, parent: _CancelSignal | None = None):
        self._event = threading.Event()
        self._parent = parent
        self.reason = ""

    def cancel(self, reason: str = "context cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def is_set(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.is_set()

    def get_reason(self) -> str:
        if self._event.is_set():
            return self.reason
        if self._parent is not None:
            return self._parent.get_reason()
        return ""


@dataclass(frozen=True, eq=False)
class RequestContext:
    """요청 컨텍스트

    Attributes:
        region: 리전 오버라이드 (빈 문자열이면 기본 리전)
        profile: 프로파일 오버라이드 (빈 문자열이면 설정값)
        filters: 필터 키/값 (읽기 전용)
        deadline: time.monotonic() 기준 데드라인 (None이면 없음)
    """

    region: str = ""
    profile: str = ""
    filters: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    deadline: float | None = None
    _signal: _CancelSignal | None = field(default=None, repr=False)

    @property
    def cancelled(self) -> bool:
        """취소되었거나 데드라인을 넘겼으면 True"""
        if self._signal is not None and self._signal.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def raise_if_cancelled(self) -> None:
        """취소된 컨텍스트면 OperationCancelledError 발생"""
        if self._signal is not None and self._signal.is_set():
            raise OperationCancelledError(self._signal.get_reason())
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise OperationCancelledError("context deadline exceeded")

    def remaining(self) -> float | None:
        """데드라인까지 남은 시간 (초). 데드라인이 없으면 None"""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())


_BACKGROUND = RequestContext()


def background() -> RequestContext:
    """빈 루트 컨텍스트 (취소되지 않음)"""
    return _BACKGROUND


# =============================================================================
# 필터
# =============================================================================


def with_filter(ctx: RequestContext, key: str, value: str) -> RequestContext:
    """필터 값을 추가한 새 컨텍스트 반환

    같은 키를 다시 설정하면 마지막 값이 우선합니다.

    Args:
        ctx: 원본 컨텍스트 (수정되지 않음)
        key: 필터 키 (보통 대상 리소스의 필드명, 예: "VpcId")
        value: 필터 값

    Returns:
        새 RequestContext
    """
    filters = dict(ctx.filters)
    filters[key] = value
    return replace(ctx, filters=MappingProxyType(filters))


def get_filter_from_context(ctx: RequestContext, key: str) -> str:
    """컨텍스트에서 필터 값 조회 (없으면 빈 문자열)"""
    value = ctx.filters.get(key)
    if isinstance(value, str):
        return value
    return ""


# =============================================================================
# 리전/프로파일 오버라이드
# =============================================================================


def with_region_override(ctx: RequestContext, region: str) -> RequestContext:
    """리전 오버라이드를 설정한 새 컨텍스트 반환 (멀티 리전 조회용)"""
    return replace(ctx, region=region)


def get_region_from_context(ctx: RequestContext) -> str:
    """리전 오버라이드 조회 (없으면 빈 문자열)"""
    return ctx.region


def with_profile_override(ctx: RequestContext, profile: str) -> RequestContext:
    """프로파일 오버라이드를 설정한 새 컨텍스트 반환"""
    return replace(ctx, profile=profile)


def get_profile_from_context(ctx: RequestContext) -> str:
    """프로파일 오버라이드 조회 (없으면 빈 문자열)"""
    return ctx.profile


# =============================================================================
# 취소/타임아웃
# =============================================================================


def with_cancel(ctx: RequestContext) -> tuple[RequestContext, Callable[[], None]]:
    """취소 가능한 자식 컨텍스트 생성

    부모가 취소되면 자식도 취소됩니다. 자식 취소는 부모에 영향이 없습니다.

    Returns:
        (자식 컨텍스트, cancel 함수)
    """
    signal = _CancelSignal(parent=ctx._signal)
    child = replace(ctx, _signal=signal)
    return child, signal.cancel


def with_timeout(ctx: RequestContext, seconds: float) -> RequestContext:
    """데드라인이 설정된 자식 컨텍스트 생성

    부모 데드라인이 더 이르면 부모 데드라인을 유지합니다.
    """
    deadline = time.monotonic() + seconds
    if ctx.deadline is not None:
        deadline = min(deadline, ctx.deadline)
    return replace(ctx, deadline=deadline)
