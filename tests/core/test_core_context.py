"""
tests/core/test_core_context.py - core/context.py 테스트
"""

import time

import pytest

from core.context import (
    RequestContext,
    background,
    get_filter_from_context,
    get_profile_from_context,
    get_region_from_context,
    with_cancel,
    with_filter,
    with_profile_override,
    with_region_override,
    with_timeout,
)
from core.exceptions import OperationCancelledError


class TestRequestContext:
    """RequestContext 직접 생성"""

    def test_default_construction(self):
        request = RequestContext()

        assert request.filters == {}
        assert request.region == ""
        assert not request.cancelled
        assert request.remaining() is None

    def test_default_filters_are_read_only(self):
        with pytest.raises(TypeError):
            RequestContext().filters["VpcId"] = "vpc-1"  # type: ignore[index]

    def test_filters_not_shared_between_children(self):
        first = with_filter(RequestContext(), "VpcId", "vpc-1")
        second = RequestContext(region="us-east-1")

        assert second.filters == {}
        assert first.filters == {"VpcId": "vpc-1"}


class TestFilter:
    """필터 전달 테스트"""

    def test_absent_key_is_empty(self, ctx):
        assert get_filter_from_context(ctx, "VpcId") == ""

    def test_set_and_get(self, ctx):
        scoped = with_filter(ctx, "VpcId", "vpc-1")
        assert get_filter_from_context(scoped, "VpcId") == "vpc-1"

    def test_parent_not_modified(self, ctx):
        with_filter(ctx, "VpcId", "vpc-1")
        assert get_filter_from_context(ctx, "VpcId") == ""

    def test_two_keys_do_not_clobber(self, ctx):
        scoped = with_filter(with_filter(ctx, "VpcId", "vpc-1"), "SubnetId", "subnet-1")
        assert get_filter_from_context(scoped, "VpcId") == "vpc-1"
        assert get_filter_from_context(scoped, "SubnetId") == "subnet-1"

    def test_last_write_wins(self, ctx):
        scoped = with_filter(with_filter(ctx, "VpcId", "vpc-1"), "VpcId", "vpc-2")
        assert get_filter_from_context(scoped, "VpcId") == "vpc-2"

    def test_sibling_contexts_isolated(self, ctx):
        parent = with_filter(ctx, "VpcId", "vpc-1")
        left = with_filter(parent, "SubnetId", "subnet-a")
        right = with_filter(parent, "SubnetId", "subnet-b")

        assert get_filter_from_context(left, "SubnetId") == "subnet-a"
        assert get_filter_from_context(right, "SubnetId") == "subnet-b"

    def test_filters_read_only(self, ctx):
        scoped = with_filter(ctx, "VpcId", "vpc-1")
        with pytest.raises(TypeError):
            scoped.filters["VpcId"] = "changed"  # type: ignore[index]

    def test_empty_value(self, ctx):
        """빈 값 설정은 미설정과 구분되지 않음"""
        assert get_filter_from_context(with_filter(ctx, "VpcId", ""), "VpcId") == ""


class TestOverrides:
    """리전/프로파일 오버라이드 테스트"""

    def test_region(self, ctx):
        assert get_region_from_context(ctx) == ""
        assert get_region_from_context(with_region_override(ctx, "us-west-2")) == "us-west-2"

    def test_profile(self, ctx):
        assert get_profile_from_context(ctx) == ""
        assert get_profile_from_context(with_profile_override(ctx, "prod")) == "prod"

    def test_override_keeps_filters(self, ctx):
        scoped = with_region_override(with_filter(ctx, "VpcId", "vpc-1"), "eu-west-1")
        assert get_filter_from_context(scoped, "VpcId") == "vpc-1"


class TestCancellation:
    """취소/타임아웃 테스트"""

    def test_background_never_cancelled(self):
        ctx = background()
        assert not ctx.cancelled
        ctx.raise_if_cancelled()
        assert ctx.remaining() is None

    def test_cancel(self, ctx):
        child, cancel = with_cancel(ctx)
        assert not child.cancelled

        cancel()

        assert child.cancelled
        with pytest.raises(OperationCancelledError):
            child.raise_if_cancelled()
        assert not ctx.cancelled

    def test_parent_cancel_propagates(self, ctx):
        parent, cancel_parent = with_cancel(ctx)
        child, _ = with_cancel(parent)

        cancel_parent()

        assert child.cancelled

    def test_child_cancel_does_not_propagate_up(self, ctx):
        parent, _ = with_cancel(ctx)
        child, cancel_child = with_cancel(parent)

        cancel_child()

        assert child.cancelled
        assert not parent.cancelled

    def test_derived_context_shares_signal(self, ctx):
        child, cancel = with_cancel(ctx)
        derived = with_filter(child, "VpcId", "vpc-1")
        cancel()
        assert derived.cancelled

    def test_timeout_expired(self, ctx):
        expired = with_timeout(ctx, 0)
        assert expired.cancelled
        with pytest.raises(OperationCancelledError, match="deadline"):
            expired.raise_if_cancelled()

    def test_timeout_remaining(self, ctx):
        limited = with_timeout(ctx, 60)
        remaining = limited.remaining()
        assert remaining is not None
        assert 0 < remaining <= 60
        assert not limited.cancelled

    def test_timeout_keeps_earlier_parent_deadline(self, ctx):
        parent = with_timeout(ctx, 1)
        child = with_timeout(parent, 100)
        assert child.deadline == parent.deadline

    def test_cancel_reason(self, ctx):
        child, cancel = with_cancel(ctx)
        cancel()
        with pytest.raises(OperationCancelledError) as exc_info:
            child.raise_if_cancelled()
        assert "cancel" in str(exc_info.value)

    def test_timeout_elapses(self, ctx):
        limited = with_timeout(ctx, 0.01)
        time.sleep(0.02)
        assert limited.cancelled
