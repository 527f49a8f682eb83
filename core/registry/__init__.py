"""
core/registry - 플러그인 레지스트리

주요 구성 요소:
- Registry / Entry: (service, resource-kind) → 팩토리 매핑
- RegionalDAOWrapper: 리전 오버라이드 적용 DAO 래퍼
- Renderer / Column: 렌더러 팩토리 반환 계약
"""

from .regional import PaginatedDAOWrapper, RegionalDAOWrapper, new_regional_dao, strip_region_prefix
from .registry import Entry, Registry
from .render import Column, Renderer, RendererFactory

__all__: list[str] = [
    "Registry",
    "Entry",
    "RegionalDAOWrapper",
    "PaginatedDAOWrapper",
    "new_regional_dao",
    "strip_region_prefix",
    "Renderer",
    "RendererFactory",
    "Column",
]
