"""
core/registry/regional.py - 리전 DAO 래퍼

컨텍스트에 리전 오버라이드가 있으면 DAO를 감싸서
List/Get 결과를 RegionResource로 포장합니다. 어댑터 코드는 수정할 필요가 없습니다.

- 오버라이드가 없으면 원래 DAO를 그대로 반환 (단일 리전 호환)
- Get/Delete에 넘어온 "<region>:<id>"는 접두사를 제거하고 위임
- 이미 감싼 DAO/리소스는 다시 감싸지 않음 (이중 래핑 방지)
"""

from __future__ import annotations

from core.context import RequestContext, get_region_from_context
from core.dao import DAO, Operation, PaginatedDAO, Resource, is_region_wrapped, wrap_with_region


def strip_region_prefix(resource_id: str, region: str) -> str:
    """ID에서 "<region>:" 접두사 제거 (해당 리전 접두사일 때만)"""
    if not region:
        return resource_id
    prefix = f"{region}:"
    if resource_id.startswith(prefix):
        return resource_id[len(prefix) :]
    return resource_id


def _wrap(resource: Resource, region: str) -> Resource:
    if is_region_wrapped(resource):
        return resource
    return wrap_with_region(resource, region)


class RegionalDAOWrapper(DAO):
    """리전 오버라이드를 적용하는 DAO 래퍼"""

    def __init__(self, delegate: DAO, region: str):
        self.delegate = delegate
        self.region = region

    def service_name(self) -> str:
        return self.delegate.service_name()

    def resource_type(self) -> str:
        return self.delegate.resource_type()

    def list(self, ctx: RequestContext) -> list[Resource]:
        resources = self.delegate.list(ctx)
        return [_wrap(r, self.region) for r in resources]

    def get(self, ctx: RequestContext, resource_id: str) -> Resource:
        resource = self.delegate.get(ctx, strip_region_prefix(resource_id, self.region))
        return _wrap(resource, self.region)

    def delete(self, ctx: RequestContext, resource_id: str) -> None:
        self.delegate.delete(ctx, strip_region_prefix(resource_id, self.region))

    def supports(self, op: Operation | str) -> bool:
        return self.delegate.supports(op)

    def __repr__(self) -> str:
        return f"RegionalDAOWrapper({self.delegate!r}, region={self.region!r})"


class PaginatedDAOWrapper(RegionalDAOWrapper, PaginatedDAO):
    """페이지네이션을 유지하는 리전 DAO 래퍼"""

    delegate: PaginatedDAO

    def list_page(
        self,
        ctx: RequestContext,
        page_size: int,
        page_token: str = "",
    ) -> tuple[list[Resource], str]:
        resources, next_token = self.delegate.list_page(ctx, page_size, page_token)
        return [_wrap(r, self.region) for r in resources], next_token


def new_regional_dao(ctx: RequestContext, delegate: DAO) -> DAO:
    """컨텍스트의 리전 오버라이드에 따라 DAO를 감싸기

    Args:
        ctx: 요청 컨텍스트
        delegate: 원래 DAO

    Returns:
        오버라이드가 없거나 이미 감싼 DAO면 delegate 그대로, 아니면 래퍼
    """
    region = get_region_from_context(ctx)
    if not region or isinstance(delegate, RegionalDAOWrapper):
        return delegate

    if isinstance(delegate, PaginatedDAO):
        return PaginatedDAOWrapper(delegate, region)
    return RegionalDAOWrapper(delegate, region)
