"""
core/dao/resource.py - 리소스 모델

"클라우드 오브젝트 하나"를 표현하는 공통 계약과 기본 구현입니다.
어댑터는 BaseResource를 상속하여 서비스별 리소스 타입을 정의합니다.

Example:
    @dataclass
    class InstanceResource(BaseResource):
        private_ip: str = ""

        def get_private_ip(self) -> str:
            return self.private_ip
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Resource(Protocol):
    """리소스 계약

    ID는 (service, resource-kind, region) 범위 안에서만 유일합니다.
    리전을 넘나드는 유일성이 필요하면 RegionResource로 감쌉니다.
    """

    def get_id(self) -> str: ...

    def get_name(self) -> str: ...

    def get_arn(self) -> str: ...

    def get_tags(self) -> dict[str, str]: ...

    def raw(self) -> Any: ...


@dataclass(eq=False)
class BaseResource:
    """Resource 기본 구현

    필드를 그대로 반환하며 검증이나 정규화는 하지 않습니다.
    (이름이 없는 리소스에 ID를 넣는 등의 처리는 어댑터 책임)

    Attributes:
        id: 리소스 ID
        name: 표시 이름
        arn: ARN (글로벌 식별자)
        tags: 태그 맵
        data: 원본 API 응답 (untyped payload)
    """

    id: str = ""
    name: str = ""
    arn: str = ""
    tags: dict[str, str] = field(default_factory=dict)
    data: Any = None

    def get_id(self) -> str:
        return self.id

    def get_name(self) -> str:
        return self.name

    def get_arn(self) -> str:
        return self.arn

    def get_tags(self) -> dict[str, str]:
        return self.tags

    def raw(self) -> Any:
        return self.data


def tags_from_aws(tag_list: list[dict[str, str]] | None) -> dict[str, str]:
    """AWS 태그 목록([{"Key": .., "Value": ..}])을 딕셔너리로 변환"""
    if not tag_list:
        return {}
    return {t.get("Key", ""): t.get("Value", "") for t in tag_list if t.get("Key")}
