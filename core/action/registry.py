"""
core/action/registry.py - 액션 레지스트리

(service, resource-kind)별 액션 목록과 실행기를 보관합니다.
플러그인 레지스트리와 마찬가지로 시작 단계 이후에는 freeze()로 고정합니다.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable

from core.dao import Resource, unwrap_resource
from core.exceptions import EmptyOperationError, RegistryFrozenError

from .types import Action, ActionType, ExecutorFunc

logger = logging.getLogger(__name__)


class ActionRegistry:
    """액션 레지스트리"""

    def __init__(self) -> None:
        self._actions: dict[tuple[str, str], tuple[Action, ...]] = {}
        self._executors: dict[tuple[str, str], ExecutorFunc] = {}
        self._lock = threading.Lock()
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    def register(self, service: str, resource_type: str, actions: Iterable[Action]) -> None:
        """액션 목록 등록 (불변 튜플로 저장)

        Raises:
            EmptyOperationError: operation도 handler도 없는 API 액션
            RegistryFrozenError: freeze() 이후 호출
        """
        actions = tuple(actions)
        for action in actions:
            if action.type == ActionType.API and not action.operation and action.handler is None:
                raise EmptyOperationError(action.name)

        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(service, resource_type)
            self._actions[(service, resource_type)] = actions
        logger.debug(f"액션 등록: {service}/{resource_type} ({len(actions)}개)")

    def register_executor(self, service: str, resource_type: str, executor: ExecutorFunc) -> None:
        """실행기 등록

        Raises:
            RegistryFrozenError: freeze() 이후 호출
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(service, resource_type)
            self._executors[(service, resource_type)] = executor

    def get(self, service: str, resource_type: str) -> tuple[Action, ...]:
        """액션 목록 (없으면 빈 튜플)"""
        return self._actions.get((service, resource_type), ())

    def get_executor(self, service: str, resource_type: str) -> ExecutorFunc | None:
        return self._executors.get((service, resource_type))

    def for_resource(self, service: str, resource_type: str, resource: Resource) -> list[Action]:
        """리소스에 적용되는 액션만 반환 (filter 적용)"""
        target = unwrap_resource(resource)
        return [a for a in self.get(service, resource_type) if a.applies_to(target)]

    def find_by_shortcut(self, service: str, resource_type: str, shortcut: str) -> Action | None:
        for action in self.get(service, resource_type):
            if action.shortcut == shortcut:
                return action
        return None

    def find_by_name(self, service: str, resource_type: str, name: str) -> Action | None:
        """이름으로 액션 조회 (대소문자 무시)"""
        lowered = name.lower()
        for action in self.get(service, resource_type):
            if action.name.lower() == lowered:
                return action
        return None

    def keys(self) -> list[tuple[str, str]]:
        return sorted(self._actions)
