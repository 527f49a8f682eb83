"""
core/dao/region.py - 리전 데코레이터

리소스에 출신 리전을 붙이되 원래의 구체 타입을 잃지 않도록 감쌉니다.
여러 리전의 List 결과를 합칠 때 ID 충돌을 막기 위해 사용합니다.

규칙:
    - get_id()는 "<region>:<원래 ID>"
    - 나머지 접근자는 원래 리소스에 그대로 위임
    - unwrap_resource()는 정확히 한 겹만 벗김
    - 이미 감싼 리소스를 다시 감싸면 이중 래핑이 됨
      (한 번 unwrap해도 여전히 RegionResource - 렌더러/액션의 isinstance 분기가 실패)

Example:
    wrapped = wrap_with_region(instance, "us-west-2")
    wrapped.get_id()                      # "us-west-2:i-123"
    unwrap_resource(wrapped) is instance  # True
"""

from __future__ import annotations

from typing import Any

from .resource import Resource


class RegionResource:
    """리전 정보가 붙은 리소스

    감싼 리소스를 단독으로 소유합니다. 임의 속성 위임(__getattr__)은 하지 않으므로
    어댑터 타입 검사는 반드시 unwrap_resource() 이후에 해야 합니다.

    Attributes:
        resource: 감싼 원래 리소스
        region: 출신 리전
    """

    __slots__ = ("resource", "region")

    def __init__(self, resource: Resource, region: str):
        self.resource = resource
        self.region = region

    def get_id(self) -> str:
        return f"{self.region}:{self.resource.get_id()}"

    def get_name(self) -> str:
        return self.resource.get_name()

    def get_arn(self) -> str:
        return self.resource.get_arn()

    def get_tags(self) -> dict[str, str]:
        return self.resource.get_tags()

    def raw(self) -> Any:
        return self.resource.raw()

    def get_region(self) -> str:
        return self.region

    def __repr__(self) -> str:
        return f"RegionResource(region={self.region!r}, resource={self.resource!r})"


def wrap_with_region(resource: Resource, region: str) -> RegionResource:
    """리소스를 리전 정보로 감싸기 (항상 성공)"""
    return RegionResource(resource, region)


def unwrap_resource(resource: Resource) -> Resource:
    """RegionResource면 한 겹 벗기고, 아니면 그대로 반환"""
    if isinstance(resource, RegionResource):
        return resource.resource
    return resource


def unwrap_all(resource: Resource) -> Resource:
    """모든 RegionResource 층을 벗겨 원래 리소스 반환"""
    while isinstance(resource, RegionResource):
        resource = resource.resource
    return resource


def get_resource_region(resource: Resource) -> str:
    """가장 바깥 층의 리전 (감싸지 않았으면 빈 문자열)"""
    if isinstance(resource, RegionResource):
        return resource.region
    return ""


def is_region_wrapped(resource: Resource) -> bool:
    """RegionResource인지 확인"""
    return isinstance(resource, RegionResource)
