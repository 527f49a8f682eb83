"""
core/plugins.py - 플러그인 발견 및 부트스트랩

plugins/ 하위의 카테고리 패키지를 검색하여 어댑터를 등록합니다.

플러그인 규약:
    plugins/<category>/__init__.py
        CATEGORY = {"name": ..., "display_name": ..., "description": ...}
        RESOURCES = [{"name": "instances", "module": "instances", ...}, ...]

    plugins/<category>/<module>.py
        def register(registry: Registry, actions: ActionRegistry) -> None: ...

Example:
    from core.plugins import bootstrap

    registry, actions = bootstrap()
    dao = registry.new_dao(ctx, "ec2", "instances")
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from dataclasses import dataclass, field
from typing import Any

from core.action import ActionRegistry
from core.exceptions import PluginLoadError
from core.registry import Registry

logger = logging.getLogger(__name__)

DEFAULT_PLUGIN_PACKAGE = "plugins"


@dataclass
class CategoryInfo:
    """플러그인 카테고리 메타데이터"""

    name: str
    display_name: str = ""
    description: str = ""
    aliases: list[str] = field(default_factory=list)
    resources: list[dict[str, Any]] = field(default_factory=list)


def discover_categories(package: str = DEFAULT_PLUGIN_PACKAGE) -> list[CategoryInfo]:
    """플러그인 카테고리 검색

    CATEGORY가 없는 하위 패키지는 건너뜁니다.

    Raises:
        PluginLoadError: 카테고리 패키지 임포트 실패
    """
    root = importlib.import_module(package)
    categories: list[CategoryInfo] = []

    for module_info in sorted(pkgutil.iter_modules(root.__path__), key=lambda m: m.name):
        if not module_info.ispkg or module_info.name.startswith("_"):
            continue

        module_name = f"{package}.{module_info.name}"
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            raise PluginLoadError(module_name, "카테고리 임포트 실패", cause=e) from e

        meta = getattr(module, "CATEGORY", None)
        if not isinstance(meta, dict):
            logger.debug(f"CATEGORY 없음, 건너뜀: {module_name}")
            continue

        categories.append(
            CategoryInfo(
                name=meta.get("name", module_info.name),
                display_name=meta.get("display_name", ""),
                description=meta.get("description", ""),
                aliases=list(meta.get("aliases", [])),
                resources=list(getattr(module, "RESOURCES", [])),
            )
        )

    return categories


def load_plugins(
    registry: Registry,
    actions: ActionRegistry,
    package: str = DEFAULT_PLUGIN_PACKAGE,
) -> int:
    """모든 어댑터의 register()를 호출

    Returns:
        로드한 어댑터 모듈 수

    Raises:
        PluginLoadError: 모듈 임포트 실패 또는 register() 누락
    """
    loaded = 0
    for category in discover_categories(package):
        for resource in category.resources:
            module_name = f"{package}.{category.name}.{resource['module']}"
            try:
                module = importlib.import_module(module_name)
            except ImportError as e:
                raise PluginLoadError(module_name, "모듈 임포트 실패", cause=e) from e

            register = getattr(module, "register", None)
            if not callable(register):
                raise PluginLoadError(module_name, "register() 함수가 없습니다")

            register(registry, actions)
            loaded += 1
            logger.debug(f"어댑터 등록: {module_name}")

    return loaded


def bootstrap(package: str = DEFAULT_PLUGIN_PACKAGE) -> tuple[Registry, ActionRegistry]:
    """레지스트리 생성 → 플러그인 로드 → 고정

    시작 단계에서 한 번만 호출합니다. 반환된 레지스트리는 읽기 전용입니다.
    """
    registry = Registry()
    actions = ActionRegistry()

    count = load_plugins(registry, actions, package)
    registry.freeze()
    actions.freeze()

    logger.info(f"플러그인 로드 완료: 어댑터 {count}개, 리소스 {len(registry)}종")
    return registry, actions
