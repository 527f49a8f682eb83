"""
core/dao/base.py - 데이터 접근 계약 (DAO)

(service, resource-kind) 하나에 대해 List/Get/Delete/Supports를 제공하는
공통 인터페이스와 페이지네이션 확장입니다.

규약:
    - get(): 업스트림에 없으면 NotFoundError
    - delete(): 이미 없는 ID는 성공(no-op), 의존성 충돌은 ResourceInUseError
    - 삭제를 지원하지 않는 DAO는 supports(Operation.DELETE)를 False로 재정의
    - 취소된 컨텍스트는 OperationCancelledError로 즉시 반환

Example:
    class BucketDAO(BaseDAO):
        def __init__(self, ctx):
            super().__init__("s3", "buckets")
            self.client = get_client(ctx, "s3")

        def list(self, ctx):
            self._check(ctx)
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from enum import Enum
from typing import ClassVar

from core.context import RequestContext

from .resource import Resource


class Operation(str, Enum):
    """DAO 기능 조회용 작업 종류 (디스패치 키로는 쓰지 않음)"""

    LIST = "list"
    GET = "get"
    CREATE = "create"
    DELETE = "delete"
    UPDATE = "update"


class DAO(ABC):
    """DAO 계약"""

    @abstractmethod
    def service_name(self) -> str:
        """AWS 서비스 이름 (예: "ec2", "s3")"""

    @abstractmethod
    def resource_type(self) -> str:
        """리소스 종류 (예: "instances", "buckets")"""

    @abstractmethod
    def list(self, ctx: RequestContext) -> list[Resource]:
        """해당 종류의 리소스 전체 조회"""

    @abstractmethod
    def get(self, ctx: RequestContext, resource_id: str) -> Resource:
        """ID로 단일 리소스 조회"""

    @abstractmethod
    def delete(self, ctx: RequestContext, resource_id: str) -> None:
        """ID로 리소스 삭제 (지원하는 경우)"""

    @abstractmethod
    def supports(self, op: Operation | str) -> bool:
        """해당 작업 지원 여부"""


class BaseDAO(DAO):
    """DAO 공통 구현

    이름 관리와 기본 기능 집합을 제공합니다. 상속하여 list/get/delete를 구현합니다.

    Attributes:
        SUPPORTED_FILTERS: 이 DAO가 이해하는 필터 키 목록
    """

    SUPPORTED_FILTERS: ClassVar[frozenset[str]] = frozenset()

    _DEFAULT_OPERATIONS: ClassVar[frozenset[Operation]] = frozenset(
        {Operation.LIST, Operation.GET, Operation.DELETE}
    )

    def __init__(self, service: str, resource: str):
        self._service = service
        self._resource = resource

    def service_name(self) -> str:
        return self._service

    def resource_type(self) -> str:
        return self._resource

    def supports(self, op: Operation | str) -> bool:
        """List, Get, Delete는 True, 그 외(알 수 없는 값 포함)는 False"""
        try:
            op = Operation(op)
        except ValueError:
            return False
        return op in self._DEFAULT_OPERATIONS

    @classmethod
    def supported_filters(cls) -> frozenset[str]:
        """지원 필터 키 목록"""
        return cls.SUPPORTED_FILTERS

    def _check(self, ctx: RequestContext) -> None:
        ctx.raise_if_cancelled()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._service}/{self._resource})"


class PaginatedDAO(DAO):
    """페이지 단위 조회를 지원하는 DAO 확장

    수천 건 이상이 될 수 있는 리소스(CloudTrail 이벤트, 로그 등)에 구현합니다.
    """

    @abstractmethod
    def list_page(
        self,
        ctx: RequestContext,
        page_size: int,
        page_token: str = "",
    ) -> tuple[list[Resource], str]:
        """한 페이지 조회

        Args:
            ctx: 요청 컨텍스트
            page_size: 페이지 크기 (예: 100)
            page_token: 이전 호출이 반환한 토큰 (첫 페이지는 빈 문자열)

        Returns:
            (리소스 목록, 다음 페이지 토큰). 토큰이 빈 문자열이면 마지막 페이지
        """


DAOFactory = Callable[[RequestContext], DAO]


def is_paginated(dao: DAO) -> bool:
    """PaginatedDAO 계약을 만족하는지 확인"""
    return isinstance(dao, PaginatedDAO)


def iter_pages(
    ctx: RequestContext,
    dao: PaginatedDAO,
    page_size: int,
    page_token: str = "",
    max_pages: int | None = None,
) -> Iterator[list[Resource]]:
    """다음 토큰이 없을 때까지 페이지를 차례로 반환

    페이지 사이마다 취소 여부를 확인합니다.

    Args:
        ctx: 요청 컨텍스트
        dao: 페이지네이션 DAO
        page_size: 페이지 크기
        page_token: 시작 토큰
        max_pages: 최대 페이지 수 (None이면 끝까지)
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    pages = 0
    token = page_token
    while True:
        ctx.raise_if_cancelled()
        resources, token = dao.list_page(ctx, page_size, token)
        pages += 1
        yield resources
        if not token or (max_pages is not None and pages >= max_pages):
            return
