"""
plugins/apigateway/stages.py - API Gateway REST API 스테이지 어댑터

리소스 ID는 "<restApiId>/<stageName>" 형식입니다.

필터:
- RestApiId: 지정하면 해당 API의 스테이지만 조회 (없으면 전체 API 순회)

삭제:
- 이미 없는 스테이지는 성공(no-op)
- ConflictException(예: 사용량 계획 연결)은 ResourceInUseError

플러그인 규약:
    - register(registry, actions): 필수. 레지스트리 등록 함수.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from core.action import ActionRegistry
from core.aws import get_client
from core.context import RequestContext, get_filter_from_context
from core.dao import BaseDAO, BaseResource, Resource
from core.exceptions import NotFoundError, upstream_call
from core.registry import Column, Entry, Registry, Renderer

logger = logging.getLogger(__name__)

SERVICE = "apigateway"
RESOURCE_TYPE = "stages"
FILTER_REST_API_ID = "RestApiId"

# 필요한 AWS 권한 목록
REQUIRED_PERMISSIONS = {
    "read": [
        "apigateway:GET",
    ],
    "write": [
        "apigateway:DELETE",
    ],
}


def split_stage_id(resource_id: str) -> tuple[str, str]:
    """스테이지 ID를 (restApiId, stageName)으로 분리

    Raises:
        ValueError: 형식이 맞지 않는 경우
    """
    api_id, sep, stage_name = resource_id.partition("/")
    if not sep or not api_id or not stage_name:
        raise ValueError(f"invalid stage id (expected <restApiId>/<stageName>): {resource_id}")
    return api_id, stage_name


@dataclass(eq=False)
class StageResource(BaseResource):
    """REST API 스테이지"""

    rest_api_id: str = ""
    rest_api_name: str = ""
    stage_name: str = ""
    deployment_id: str = ""

    @classmethod
    def from_aws(cls, stage: dict[str, Any], rest_api_id: str, rest_api_name: str = "", region: str = "") -> StageResource:
        stage_name = stage.get("stageName", "")
        arn = f"arn:aws:apigateway:{region}::/restapis/{rest_api_id}/stages/{stage_name}" if region else ""
        return cls(
            id=f"{rest_api_id}/{stage_name}",
            name=stage_name,
            arn=arn,
            tags=dict(stage.get("tags") or {}),
            data=stage,
            rest_api_id=rest_api_id,
            rest_api_name=rest_api_name,
            stage_name=stage_name,
            deployment_id=stage.get("deploymentId", ""),
        )


class StageDAO(BaseDAO):
    """API Gateway 스테이지 DAO"""

    SUPPORTED_FILTERS = frozenset({FILTER_REST_API_ID})

    def __init__(self, ctx: RequestContext, client: Any = None):
        super().__init__(SERVICE, RESOURCE_TYPE)
        self.client = client or get_client(ctx, "apigateway")

    @property
    def _region(self) -> str:
        meta = getattr(self.client, "meta", None)
        region = getattr(meta, "region_name", "")
        return region if isinstance(region, str) else ""

    def list(self, ctx: RequestContext) -> list[Resource]:
        self._check(ctx)

        api_id = get_filter_from_context(ctx, FILTER_REST_API_ID)
        if api_id:
            return self._list_stages(ctx, api_id)

        resources: list[Resource] = []
        with upstream_call(SERVICE, "list rest apis"):
            paginator = self.client.get_paginator("get_rest_apis")
            apis = [item for page in paginator.paginate() for item in page.get("items", [])]

        for api in apis:
            resources.extend(self._list_stages(ctx, api["id"], api.get("name", "")))
        return resources

    def _list_stages(self, ctx: RequestContext, api_id: str, api_name: str = "") -> list[Resource]:
        """API 하나의 스테이지 목록 (API가 없으면 빈 목록)"""
        ctx.raise_if_cancelled()
        try:
            with upstream_call(SERVICE, "list stages", api_id):
                response = self.client.get_stages(restApiId=api_id)
        except NotFoundError:
            logger.debug(f"API 없음, 스테이지 생략: {api_id}")
            return []
        region = self._region
        return [StageResource.from_aws(stage, api_id, api_name, region) for stage in response.get("item", [])]

    def get(self, ctx: RequestContext, resource_id: str) -> Resource:
        self._check(ctx)
        api_id, stage_name = split_stage_id(resource_id)

        with upstream_call(SERVICE, "get stage", resource_id):
            stage = self.client.get_stage(restApiId=api_id, stageName=stage_name)

        if not stage:
            raise NotFoundError(f"get stage {resource_id}", service=SERVICE, operation="get stage", target=resource_id)
        return StageResource.from_aws(stage, api_id, region=self._region)

    def delete(self, ctx: RequestContext, resource_id: str) -> None:
        self._check(ctx)
        api_id, stage_name = split_stage_id(resource_id)

        try:
            with upstream_call(SERVICE, "delete stage", resource_id):
                self.client.delete_stage(restApiId=api_id, stageName=stage_name)
        except NotFoundError:
            logger.debug(f"스테이지 없음, 삭제 생략: {resource_id}")


class StageRenderer(Renderer):
    """스테이지 목록 컬럼"""

    def columns(self) -> list[Column]:
        return [
            Column("STAGE", lambda r: getattr(r, "stage_name", ""), width=20),
            Column("API ID", lambda r: getattr(r, "rest_api_id", ""), width=14),
            Column("API NAME", lambda r: getattr(r, "rest_api_name", ""), width=28),
            Column("DEPLOYMENT", lambda r: getattr(r, "deployment_id", ""), width=12),
        ]


def register(registry: Registry, actions: ActionRegistry) -> None:
    registry.register_custom(
        SERVICE,
        RESOURCE_TYPE,
        Entry(dao_factory=StageDAO, renderer_factory=StageRenderer),
    )
