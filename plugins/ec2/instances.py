"""
plugins/ec2/instances.py - EC2 인스턴스 어댑터

DAO:
- list: describe_instances 페이지네이터 (VpcId/SubnetId 필터는 API Filters로 전달)
- get: 인스턴스 ID로 조회, 없으면 NotFoundError
- delete: 인스턴스 종료 (이미 없는 ID는 no-op)

액션:
- Start / Stop / Reboot: 단순 확인
- Terminate: 위험 작업 (이름 재입력)
- SSM Session: aws ssm start-session 실행

플러그인 규약:
    - register(registry, actions): 필수. 레지스트리 등록 함수.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from core.action import Action, ActionRegistry, ActionResult, ActionType, ConfirmLevel
from core.aws import get_client
from core.context import RequestContext, get_filter_from_context
from core.dao import BaseDAO, BaseResource, Resource, tags_from_aws
from core.exceptions import NotFoundError, upstream_call
from core.registry import Column, Entry, Registry, Renderer

logger = logging.getLogger(__name__)

SERVICE = "ec2"
RESOURCE_TYPE = "instances"

# 필요한 AWS 권한 목록
REQUIRED_PERMISSIONS = {
    "read": [
        "ec2:DescribeInstances",
    ],
    "write": [
        "ec2:StartInstances",
        "ec2:StopInstances",
        "ec2:RebootInstances",
        "ec2:TerminateInstances",
    ],
}

# 컨텍스트 필터 키 → describe_instances Filters 이름
_FILTER_NAMES = {
    "VpcId": "vpc-id",
    "SubnetId": "subnet-id",
}


# =============================================================================
# 리소스
# =============================================================================


@dataclass(eq=False)
class InstanceResource(BaseResource):
    """EC2 인스턴스"""

    state: str = ""
    instance_type: str = ""
    vpc_id: str = ""
    subnet_id: str = ""
    private_ip: str = ""
    public_ip: str = ""

    @classmethod
    def from_aws(cls, instance: dict[str, Any]) -> InstanceResource:
        instance_id = instance.get("InstanceId", "")
        tags = tags_from_aws(instance.get("Tags"))
        return cls(
            id=instance_id,
            name=tags.get("Name", ""),
            arn="",
            tags=tags,
            data=instance,
            state=instance.get("State", {}).get("Name", ""),
            instance_type=instance.get("InstanceType", ""),
            vpc_id=instance.get("VpcId", ""),
            subnet_id=instance.get("SubnetId", ""),
            private_ip=instance.get("PrivateIpAddress", ""),
            public_ip=instance.get("PublicIpAddress", ""),
        )

    def get_private_ip(self) -> str:
        return self.private_ip


# =============================================================================
# DAO
# =============================================================================


class InstanceDAO(BaseDAO):
    """EC2 인스턴스 DAO"""

    SUPPORTED_FILTERS = frozenset(_FILTER_NAMES)

    def __init__(self, ctx: RequestContext, client: Any = None):
        super().__init__(SERVICE, RESOURCE_TYPE)
        self.client = client or get_client(ctx, "ec2")

    def list(self, ctx: RequestContext) -> list[Resource]:
        self._check(ctx)

        filters = []
        for key, name in _FILTER_NAMES.items():
            value = get_filter_from_context(ctx, key)
            if value:
                filters.append({"Name": name, "Values": [value]})

        kwargs: dict[str, Any] = {"Filters": filters} if filters else {}
        resources: list[Resource] = []

        with upstream_call(SERVICE, "list instances"):
            paginator = self.client.get_paginator("describe_instances")
            for page in paginator.paginate(**kwargs):
                ctx.raise_if_cancelled()
                for reservation in page.get("Reservations", []):
                    for instance in reservation.get("Instances", []):
                        resources.append(InstanceResource.from_aws(instance))

        return resources

    def get(self, ctx: RequestContext, resource_id: str) -> Resource:
        self._check(ctx)

        with upstream_call(SERVICE, "get instance", resource_id):
            response = self.client.describe_instances(InstanceIds=[resource_id])

        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                return InstanceResource.from_aws(instance)

        raise NotFoundError(f"get instance {resource_id}", service=SERVICE, operation="get instance", target=resource_id)

    def delete(self, ctx: RequestContext, resource_id: str) -> None:
        """인스턴스 종료 (이미 종료/삭제된 경우 성공)"""
        self._check(ctx)

        try:
            with upstream_call(SERVICE, "terminate instance", resource_id):
                self.client.terminate_instances(InstanceIds=[resource_id])
        except NotFoundError:
            logger.debug(f"인스턴스 없음, 종료 생략: {resource_id}")


# =============================================================================
# 렌더러
# =============================================================================


class InstanceRenderer(Renderer):
    """EC2 인스턴스 목록 컬럼"""

    def columns(self) -> list[Column]:
        return [
            Column("NAME", lambda r: r.get_name(), width=28),
            Column("ID", lambda r: r.get_id(), width=20),
            Column("STATE", lambda r: getattr(r, "state", ""), width=12),
            Column("TYPE", lambda r: getattr(r, "instance_type", ""), width=12),
            Column("PRIVATE IP", lambda r: getattr(r, "private_ip", ""), width=16),
        ]


# =============================================================================
# 액션
# =============================================================================


def _in_state(*states: str):
    def check(resource: Resource) -> bool:
        return getattr(resource, "state", "") in states

    return check


ACTIONS = [
    Action(
        name="Start",
        shortcut="R",
        operation="StartInstances",
        confirm=ConfirmLevel.SIMPLE,
        filter=_in_state("stopped"),
    ),
    Action(
        name="Stop",
        shortcut="S",
        operation="StopInstances",
        confirm=ConfirmLevel.SIMPLE,
        filter=_in_state("running"),
    ),
    Action(
        name="Reboot",
        shortcut="B",
        operation="RebootInstances",
        confirm=ConfirmLevel.SIMPLE,
        filter=_in_state("running"),
    ),
    Action(
        name="Terminate",
        shortcut="D",
        operation="TerminateInstances",
        confirm=ConfirmLevel.DANGEROUS,
    ),
    Action(
        name="SSM Session",
        shortcut="x",
        type=ActionType.EXEC,
        command="aws ssm start-session --target ${ID}",
        filter=_in_state("running"),
    ),
]

# operation → (boto3 메서드, 실패 문맥, 성공 메시지)
_OPERATIONS = {
    "StartInstances": ("start_instances", "start instance %s", "Started instance %s"),
    "StopInstances": ("stop_instances", "stop instance %s", "Stopped instance %s"),
    "RebootInstances": ("reboot_instances", "reboot instance %s", "Rebooted instance %s"),
    "TerminateInstances": ("terminate_instances", "terminate instance %s", "Terminated instance %s"),
}


def execute_instance_action(ctx: RequestContext, action: Action, resource: Resource) -> ActionResult:
    """operation별 EC2 API 호출 (알 수 없는 operation은 실패 결과)"""
    operation = _OPERATIONS.get(action.operation)
    if operation is None:
        return ActionResult.unknown_operation(action.operation)
    if not isinstance(resource, InstanceResource):
        return ActionResult.invalid_resource("InstanceResource", type(resource).__name__)

    method_name, fail_context, success_message = operation
    instance_id = resource.get_id()

    try:
        client = get_client(ctx, "ec2")
        getattr(client, method_name)(InstanceIds=[instance_id])
    except Exception as e:
        return ActionResult.failf(e, fail_context, instance_id)

    return ActionResult.ok(success_message % instance_id)


def register(registry: Registry, actions: ActionRegistry) -> None:
    registry.register_custom(
        SERVICE,
        RESOURCE_TYPE,
        Entry(dao_factory=InstanceDAO, renderer_factory=InstanceRenderer),
    )
    actions.register(SERVICE, RESOURCE_TYPE, ACTIONS)
    actions.register_executor(SERVICE, RESOURCE_TYPE, execute_instance_action)
