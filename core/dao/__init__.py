"""
core/dao - 리소스 모델과 데이터 접근 계약

주요 구성 요소:
- Resource / BaseResource: 리소스 계약과 기본 구현
- RegionResource: 리전 데코레이터 (wrap_with_region / unwrap_resource)
- DAO / BaseDAO: List/Get/Delete/Supports 계약
- PaginatedDAO: 페이지 단위 조회 확장

Example:
    from core.dao import BaseDAO, BaseResource, wrap_with_region

    resources = dao.list(ctx)
    merged = [wrap_with_region(r, "us-west-2") for r in resources]
"""

from .base import (
    DAO,
    BaseDAO,
    DAOFactory,
    Operation,
    PaginatedDAO,
    is_paginated,
    iter_pages,
)
from .region import (
    RegionResource,
    get_resource_region,
    is_region_wrapped,
    unwrap_all,
    unwrap_resource,
    wrap_with_region,
)
from .resource import BaseResource, Resource, tags_from_aws

__all__: list[str] = [
    # Resource
    "Resource",
    "BaseResource",
    "tags_from_aws",
    # Region
    "RegionResource",
    "wrap_with_region",
    "unwrap_resource",
    "unwrap_all",
    "get_resource_region",
    "is_region_wrapped",
    # DAO
    "DAO",
    "BaseDAO",
    "DAOFactory",
    "Operation",
    "PaginatedDAO",
    "is_paginated",
    "iter_pages",
]
