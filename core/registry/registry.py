"""
core/registry/registry.py - 플러그인 레지스트리

(service, resource-kind) → (DAO 팩토리, 렌더러 팩토리) 매핑 테이블입니다.

전역 싱글톤 대신 시작 시 한 번 생성해서 호스트에 넘기는 명시적 객체입니다.
시작 단계에서 어댑터가 등록을 마치면 freeze()로 읽기 전용이 됩니다.

Example:
    registry = Registry()
    registry.register_custom("ec2", "instances", Entry(
        dao_factory=InstanceDAO,
        renderer_factory=InstanceRenderer,
    ))
    registry.freeze()

    dao = registry.new_dao(ctx, "ec2", "instances")
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from core.context import RequestContext
from core.dao import DAO, DAOFactory
from core.exceptions import RegistryFrozenError, ResourceTypeNotRegisteredError

from .regional import new_regional_dao
from .render import Renderer, RendererFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entry:
    """레지스트리 엔트리

    Attributes:
        dao_factory: ctx → DAO
        renderer_factory: () → Renderer
    """

    dao_factory: DAOFactory
    renderer_factory: RendererFactory


class Registry:
    """플러그인 레지스트리

    같은 키로 다시 등록하면 마지막 등록이 남습니다.
    등록 순서에 의존하면 안 됩니다.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], Entry] = {}
        self._lock = threading.Lock()
        self._frozen = False

    @property
    def frozen(self) -> bool:
        """시작 단계가 끝났으면 True"""
        return self._frozen

    def freeze(self) -> None:
        """이후 등록을 막음"""
        with self._lock:
            self._frozen = True
        logger.debug(f"레지스트리 고정: {len(self._entries)}개 엔트리")

    def register_custom(self, service: str, resource_type: str, entry: Entry) -> None:
        """엔트리 등록 (같은 키면 덮어씀)

        Raises:
            RegistryFrozenError: freeze() 이후 호출한 경우
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(service, resource_type)

            key = (service, resource_type)
            if key in self._entries:
                logger.warning(f"{service}/{resource_type} 이미 등록됨, 덮어씀")
            self._entries[key] = entry

    def get(self, service: str, resource_type: str) -> Entry | None:
        """엔트리 조회 (없으면 None)"""
        return self._entries.get((service, resource_type))

    def services(self) -> list[str]:
        """등록된 서비스 이름 (정렬)"""
        return sorted({service for service, _ in self._entries})

    def resource_types(self, service: str) -> list[str]:
        """서비스의 리소스 종류 목록 (정렬)"""
        return sorted(kind for svc, kind in self._entries if svc == service)

    def keys(self) -> list[tuple[str, str]]:
        """등록된 (service, resource) 키 목록 (정렬)"""
        return sorted(self._entries)

    def new_dao(self, ctx: RequestContext, service: str, resource_type: str) -> DAO:
        """팩토리로 DAO 생성

        논리 작업마다 새 DAO를 만듭니다. 컨텍스트에 리전 오버라이드가 있으면
        RegionalDAOWrapper로 감쌉니다.

        Raises:
            ResourceTypeNotRegisteredError: 엔트리가 없는 경우
        """
        entry = self.get(service, resource_type)
        if entry is None:
            raise ResourceTypeNotRegisteredError(service, resource_type)

        ctx.raise_if_cancelled()
        dao = entry.dao_factory(ctx)
        return new_regional_dao(ctx, dao)

    def new_renderer(self, service: str, resource_type: str) -> Renderer:
        """팩토리로 렌더러 생성

        Raises:
            ResourceTypeNotRegisteredError: 엔트리가 없는 경우
        """
        entry = self.get(service, resource_type)
        if entry is None:
            raise ResourceTypeNotRegisteredError(service, resource_type)
        return entry.renderer_factory()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
