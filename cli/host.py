"""
cli/host.py - 리소스 브라우저 호스트

레지스트리와 액션 레지스트리를 받아 CLI가 사용하는 조회/삭제/액션 흐름을 묶습니다.
코어의 계약만 사용하며, 화면 구성은 cli/app.py가 담당합니다.

멀티 리전 조회:
    리전마다 리전 오버라이드 컨텍스트로 DAO를 만들어 병렬 조회합니다.
    결과는 RegionResource로 감싸져 있으므로 ID가 리전 간에 충돌하지 않습니다.

Example:
    registry, actions = bootstrap()
    browser = Browser(registry, actions)

    result = browser.list_resources(ctx, "ec2", "instances", regions=["us-east-1", "us-west-2"])
    for resource in result.resources:
        print(resource.get_id())   # "us-west-2:i-0abc..."
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from core.action import Action, ActionInvocation, ActionRegistry, ActionResult
from core.aws import get_client
from core.config import Settings, get_settings
from core.context import RequestContext, with_region_override
from core.dao import DAO, Operation, Resource, get_resource_region, is_paginated, iter_pages
from core.exceptions import BrowserError, OperationCancelledError, format_error_for_user, upstream_call
from core.registry import Registry, Renderer

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8
DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True)
class RegionError:
    """리전 하나의 조회 실패"""

    region: str
    error: Exception


@dataclass(frozen=True)
class CallerIdentity:
    """STS 호출자 정보"""

    account: str
    arn: str
    user_id: str = ""


@dataclass
class ListResult:
    """멀티 리전 조회 결과 (리전 순서대로 병합)"""

    resources: list[Resource] = field(default_factory=list)
    errors: list[RegionError] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def __len__(self) -> int:
        return len(self.resources)


class Browser:
    """리소스 브라우저 호스트

    Attributes:
        registry: 고정된 플러그인 레지스트리
        actions: 고정된 액션 레지스트리
        settings: 설정 (None이면 프로세스 설정)
        max_workers: 멀티 리전 조회 워커 수
    """

    def __init__(
        self,
        registry: Registry,
        actions: ActionRegistry,
        settings: Settings | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.registry = registry
        self.actions = actions
        self.settings = settings or get_settings()
        self.max_workers = max_workers

    # =========================================================================
    # 조회
    # =========================================================================

    def renderer(self, service: str, resource_type: str) -> Renderer:
        return self.registry.new_renderer(service, resource_type)

    def list_resources(
        self,
        ctx: RequestContext,
        service: str,
        resource_type: str,
        regions: list[str] | None = None,
        page_size: int | None = None,
    ) -> ListResult:
        """리소스 목록 조회

        Args:
            ctx: 요청 컨텍스트 (필터 포함)
            service: 서비스 이름
            resource_type: 리소스 종류
            regions: 조회할 리전 목록 (None이면 컨텍스트/설정 리전 하나)
            page_size: 페이지네이션 DAO의 페이지 크기 (None이면 list() 사용)

        Returns:
            ListResult. 리전별 실패는 errors에 모으고 나머지 결과는 반환합니다.

        Raises:
            ResourceTypeNotRegisteredError: 등록되지 않은 종류
            OperationCancelledError: 컨텍스트 취소
        """
        if not regions:
            return ListResult(resources=self._list_one(ctx, service, resource_type, page_size))

        start_time = time.monotonic()
        by_region: dict[str, list[Resource]] = {}
        errors: dict[str, Exception] = {}

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(regions))) as executor:
            futures = {
                executor.submit(
                    self._list_one,
                    with_region_override(ctx, region),
                    service,
                    resource_type,
                    page_size,
                ): region
                for region in regions
            }

            for future in as_completed(futures):
                region = futures[future]
                try:
                    by_region[region] = future.result()
                except OperationCancelledError:
                    raise
                except Exception as e:
                    logger.warning(f"리전 조회 실패 [{service}/{resource_type} {region}]: {e}")
                    errors[region] = e

        result = ListResult()
        for region in regions:
            if region in by_region:
                result.resources.extend(by_region[region])
            elif region in errors:
                result.errors.append(RegionError(region, errors[region]))

        elapsed = (time.monotonic() - start_time) * 1000
        logger.info(
            f"멀티 리전 조회 완료: {service}/{resource_type} 리전 {len(regions)}개, "
            f"리소스 {len(result)}개, 실패 {len(result.errors)}개, {elapsed:.0f}ms"
        )
        return result

    def _list_one(
        self,
        ctx: RequestContext,
        service: str,
        resource_type: str,
        page_size: int | None,
    ) -> list[Resource]:
        dao = self.registry.new_dao(ctx, service, resource_type)

        if page_size is not None and is_paginated(dao):
            resources: list[Resource] = []
            for page in iter_pages(ctx, dao, page_size):  # type: ignore[arg-type]
                resources.extend(page)
            return resources

        return dao.list(ctx)

    def _dao_for(self, ctx: RequestContext, service: str, resource_type: str, region: str) -> tuple[RequestContext, DAO]:
        if region:
            ctx = with_region_override(ctx, region)
        return ctx, self.registry.new_dao(ctx, service, resource_type)

    def get_resource(
        self,
        ctx: RequestContext,
        service: str,
        resource_type: str,
        resource_id: str,
        region: str = "",
    ) -> Resource:
        """ID로 단일 리소스 조회

        Raises:
            NotFoundError: 리소스가 없는 경우
        """
        ctx, dao = self._dao_for(ctx, service, resource_type, region)
        return dao.get(ctx, resource_id)

    def delete_resource(
        self,
        ctx: RequestContext,
        service: str,
        resource_type: str,
        resource_id: str,
        region: str = "",
    ) -> bool:
        """리소스 삭제

        Returns:
            삭제를 지원하지 않으면 False (호출하지 않음)

        Raises:
            ResourceInUseError: 의존 리소스가 있어 거부된 경우
        """
        ctx, dao = self._dao_for(ctx, service, resource_type, region)
        if not dao.supports(Operation.DELETE):
            logger.info(f"삭제 미지원: {service}/{resource_type}")
            return False

        dao.delete(ctx, resource_id)
        logger.info(f"리소스 삭제: {service}/{resource_type} {resource_id}")
        return True

    # =========================================================================
    # 액션
    # =========================================================================

    def actions_for(self, service: str, resource_type: str, resource: Resource | None = None) -> list[Action]:
        """표시할 액션 목록 (리소스를 주면 filter 적용)"""
        if resource is None:
            return list(self.actions.get(service, resource_type))
        return self.actions.for_resource(service, resource_type, resource)

    def find_action(self, service: str, resource_type: str, key: str) -> Action | None:
        """단축키 또는 이름으로 액션 찾기"""
        return self.actions.find_by_shortcut(service, resource_type, key) or self.actions.find_by_name(
            service, resource_type, key
        )

    def start_action(self, action: Action, resource: Resource, service: str, resource_type: str) -> ActionInvocation:
        """액션 호출 시작 (확인 정책에 따라 대기 상태가 될 수 있음)"""
        return ActionInvocation(action, resource, service, resource_type)

    def dispatch(self, ctx: RequestContext, invocation: ActionInvocation) -> ActionResult:
        """확인된 호출 실행

        리전이 붙은 리소스면 해당 리전 오버라이드로 실행기를 호출합니다.
        """
        region = get_resource_region(invocation.resource)
        if region:
            ctx = with_region_override(ctx, region)
        return invocation.dispatch(ctx, self.actions, self.settings)

    # =========================================================================
    # 자격 증명
    # =========================================================================

    def identify(self, ctx: RequestContext) -> CallerIdentity | None:
        """현재 자격 증명의 호출자 정보 조회

        계정 ID를 설정에 저장합니다. 실패하면 설정에 경고를 남기고 None을 반환합니다.

        Raises:
            OperationCancelledError: 컨텍스트 취소
        """
        try:
            with upstream_call("sts", "get caller identity"):
                response = get_client(ctx, "sts", settings=self.settings).get_caller_identity()
        except OperationCancelledError:
            raise
        except BrowserError as e:
            message = f"호출자 확인 실패: {format_error_for_user(e)}"
            logger.warning(message)
            self.settings.add_warning(message)
            return None

        identity = CallerIdentity(
            account=response.get("Account", ""),
            arn=response.get("Arn", ""),
            user_id=response.get("UserId", ""),
        )
        self.settings.set_account_id(identity.account)
        return identity
