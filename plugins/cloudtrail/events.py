"""
plugins/cloudtrail/events.py - CloudTrail 이벤트 어댑터

lookup_events를 페이지 단위로 조회하는 PaginatedDAO입니다.
이벤트는 수정/삭제할 수 없으므로 Delete를 지원하지 않습니다.

필터 (LookupAttributes, API 제약으로 하나만 적용):
- EventName
- Username
- ResourceName

플러그인 규약:
    - register(registry, actions): 필수. 레지스트리 등록 함수.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from core.action import ActionRegistry
from core.aws import get_client
from core.context import RequestContext, get_filter_from_context
from core.dao import BaseDAO, BaseResource, Operation, PaginatedDAO, Resource, iter_pages
from core.exceptions import NotFoundError, UnsupportedOperationError, upstream_call
from core.registry import Column, Entry, Registry, Renderer

SERVICE = "cloudtrail"
RESOURCE_TYPE = "events"

# lookup_events MaxResults 상한
MAX_PAGE_SIZE = 50
# list()로 한 번에 가져오는 최대 이벤트 수 (그 이상은 list_page 사용)
LIST_LIMIT = 500

# 필요한 AWS 권한 목록
REQUIRED_PERMISSIONS = {
    "read": [
        "cloudtrail:LookupEvents",
    ],
}

# 우선순위 순서 (앞의 키가 먼저 적용됨)
_LOOKUP_ATTRIBUTES = ("EventName", "Username", "ResourceName")


@dataclass(eq=False)
class EventResource(BaseResource):
    """CloudTrail 관리 이벤트"""

    event_time: datetime | None = None
    event_source: str = ""
    username: str = ""
    read_only: str = ""

    @classmethod
    def from_aws(cls, event: dict[str, Any]) -> EventResource:
        return cls(
            id=event.get("EventId", ""),
            name=event.get("EventName", ""),
            data=event,
            event_time=event.get("EventTime"),
            event_source=event.get("EventSource", ""),
            username=event.get("Username", ""),
            read_only=event.get("ReadOnly", ""),
        )

    def detail(self) -> dict[str, Any]:
        """CloudTrailEvent JSON 원문 파싱 (실패 시 빈 dict)"""
        raw = (self.data or {}).get("CloudTrailEvent", "")
        if not raw:
            return {}
        try:
            return json.loads(raw)
        except ValueError:
            return {}


class EventDAO(BaseDAO, PaginatedDAO):
    """CloudTrail 이벤트 DAO"""

    SUPPORTED_FILTERS = frozenset(_LOOKUP_ATTRIBUTES)

    def __init__(self, ctx: RequestContext, client: Any = None):
        super().__init__(SERVICE, RESOURCE_TYPE)
        self.client = client or get_client(ctx, "cloudtrail")

    def supports(self, op: Operation | str) -> bool:
        if op == Operation.DELETE:
            return False
        return super().supports(op)

    def _lookup_attributes(self, ctx: RequestContext) -> list[dict[str, str]]:
        for key in _LOOKUP_ATTRIBUTES:
            value = get_filter_from_context(ctx, key)
            if value:
                return [{"AttributeKey": key, "AttributeValue": value}]
        return []

    def list_page(
        self,
        ctx: RequestContext,
        page_size: int,
        page_token: str = "",
    ) -> tuple[list[Resource], str]:
        self._check(ctx)

        kwargs: dict[str, Any] = {"MaxResults": max(1, min(page_size, MAX_PAGE_SIZE))}
        if page_token:
            kwargs["NextToken"] = page_token
        attributes = self._lookup_attributes(ctx)
        if attributes:
            kwargs["LookupAttributes"] = attributes

        with upstream_call(SERVICE, "lookup events"):
            response = self.client.lookup_events(**kwargs)

        events: list[Resource] = [EventResource.from_aws(e) for e in response.get("Events", [])]
        return events, response.get("NextToken", "") or ""

    def list(self, ctx: RequestContext) -> list[Resource]:
        resources: list[Resource] = []
        for page in iter_pages(ctx, self, MAX_PAGE_SIZE):
            resources.extend(page)
            if len(resources) >= LIST_LIMIT:
                return resources[:LIST_LIMIT]
        return resources

    def get(self, ctx: RequestContext, resource_id: str) -> Resource:
        self._check(ctx)

        with upstream_call(SERVICE, "get event", resource_id):
            response = self.client.lookup_events(
                LookupAttributes=[{"AttributeKey": "EventId", "AttributeValue": resource_id}],
                MaxResults=1,
            )

        events = response.get("Events", [])
        if not events:
            raise NotFoundError(f"get event {resource_id}", service=SERVICE, operation="get event", target=resource_id)
        return EventResource.from_aws(events[0])

    def delete(self, ctx: RequestContext, resource_id: str) -> None:
        raise UnsupportedOperationError(SERVICE, "delete event", resource_id)


def _format_time(resource: Resource) -> str:
    value = getattr(resource, "event_time", None)
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else ""


class EventRenderer(Renderer):
    """이벤트 목록 컬럼"""

    def columns(self) -> list[Column]:
        return [
            Column("EVENT TIME", _format_time, width=20),
            Column("EVENT NAME", lambda r: r.get_name(), width=35),
            Column("EVENT SOURCE", lambda r: getattr(r, "event_source", ""), width=30),
            Column("USERNAME", lambda r: getattr(r, "username", ""), width=25),
            Column("READ ONLY", lambda r: getattr(r, "read_only", ""), width=10),
        ]


def register(registry: Registry, actions: ActionRegistry) -> None:
    registry.register_custom(
        SERVICE,
        RESOURCE_TYPE,
        Entry(dao_factory=EventDAO, renderer_factory=EventRenderer),
    )
