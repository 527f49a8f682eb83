"""
core/registry/render.py - 렌더러 계약

레지스트리 엔트리의 renderer_factory가 반환하는 객체의 최소 계약입니다.
레이아웃/포맷팅은 호스트와 어댑터의 몫입니다.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from core.dao import Resource, unwrap_resource


@dataclass(frozen=True)
class Column:
    """목록 화면 컬럼

    Attributes:
        name: 컬럼 헤더
        getter: 리소스 → 셀 문자열 (항상 unwrap된 구체 타입을 받음)
        width: 권장 폭 (0이면 자동)
    """

    name: str
    getter: Callable[[Resource], str]
    width: int = 0


class Renderer(ABC):
    """리소스 렌더러"""

    @abstractmethod
    def columns(self) -> list[Column]:
        """목록 컬럼 정의"""

    def render_row(self, resource: Resource) -> list[str]:
        """한 행의 셀 값 (리전 래핑은 먼저 벗김)"""
        target = unwrap_resource(resource)
        return [column.getter(target) for column in self.columns()]

    def render_detail(self, resource: Resource) -> str:
        """상세 화면 텍스트 (기본: ID/이름/ARN/태그)"""
        target = unwrap_resource(resource)
        lines = [
            f"ID:   {target.get_id()}",
            f"Name: {target.get_name()}",
        ]
        if target.get_arn():
            lines.append(f"ARN:  {target.get_arn()}")
        tags = target.get_tags()
        if tags:
            lines.append("Tags:")
            lines.extend(f"  {k} = {v}" for k, v in sorted(tags.items()))
        return "\n".join(lines)


RendererFactory = Callable[[], Renderer]
