"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹, 설정 격리, 테스트용 DAO를 제공합니다.

Usage:
    def test_something(ctx, make_dao, client_error):
        # ctx: 취소되지 않은 빈 요청 컨텍스트
        # make_dao: 고정 리소스를 반환하는 DAO 생성기
        # client_error: botocore ClientError 생성 헬퍼
        pass
"""

import os
import sys
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from core.config import Settings, reset_settings  # noqa: E402
from core.context import background  # noqa: E402
from core.dao import BaseDAO, BaseResource, PaginatedDAO  # noqa: E402
from core.exceptions import NotFoundError  # noqa: E402

# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """테스트 환경 설정 (실제 설정 파일/프로파일 격리)"""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "ap-northeast-2")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_BROWSER_CONFIG", str(tmp_path / "missing-config.yaml"))
    for name in ("AWS_PROFILE", "AWS_BROWSER_READ_ONLY", "AWS_BROWSER_REGION", "AWS_BROWSER_PROFILE"):
        monkeypatch.delenv(name, raising=False)

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def ctx():
    """빈 요청 컨텍스트"""
    return background()


@pytest.fixture
def settings():
    """프로세스 싱글톤과 분리된 설정"""
    return Settings()


# =============================================================================
# 테스트용 DAO
# =============================================================================


class StaticDAO(BaseDAO):
    """고정 리소스 목록을 반환하는 DAO"""

    def __init__(self, resources=None, service: str = "test", resource: str = "items"):
        super().__init__(service, resource)
        self.resources = list(resources or [])
        self.deleted: list[str] = []
        self.calls: list[tuple[str, Any]] = []

    def list(self, ctx):
        self._check(ctx)
        self.calls.append(("list", ctx))
        return list(self.resources)

    def get(self, ctx, resource_id):
        self._check(ctx)
        self.calls.append(("get", resource_id))
        for resource in self.resources:
            if resource.get_id() == resource_id:
                return resource
        raise NotFoundError(f"get item {resource_id}", service=self.service_name(), target=resource_id)

    def delete(self, ctx, resource_id):
        self._check(ctx)
        self.calls.append(("delete", resource_id))
        self.deleted.append(resource_id)


class StaticPaginatedDAO(StaticDAO, PaginatedDAO):
    """토큰을 시작 인덱스 문자열로 사용하는 페이지네이션 DAO"""

    def list_page(self, ctx, page_size, page_token=""):
        self._check(ctx)
        start = int(page_token) if page_token else 0
        end = start + page_size
        self.calls.append(("list_page", page_token))
        next_token = str(end) if end < len(self.resources) else ""
        return list(self.resources[start:end]), next_token


@pytest.fixture
def make_dao():
    """StaticDAO 생성기

    Usage:
        dao = make_dao([BaseResource(id="a")], paginated=True)
    """

    def _make(resources=None, paginated: bool = False, service: str = "test", resource: str = "items"):
        cls = StaticPaginatedDAO if paginated else StaticDAO
        return cls(resources, service=service, resource=resource)

    return _make


@pytest.fixture
def sample_resources():
    """a, b, c 세 개의 기본 리소스"""
    return [
        BaseResource(id="a", name="alpha", arn="arn:aws:test:::a", tags={"env": "dev"}),
        BaseResource(id="b", name="bravo"),
        BaseResource(id="c", name="charlie"),
    ]


# =============================================================================
# AWS 모킹 헬퍼
# =============================================================================


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
    operation_name: str = "TestOperation",
) -> Exception:
    """ClientError 생성 헬퍼"""
    from botocore.exceptions import ClientError

    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        operation_name,
    )


@pytest.fixture
def client_error():
    """ClientError 생성 헬퍼 픽스처"""
    return create_mock_client_error


@pytest.fixture
def mock_ec2_client():
    """EC2 클라이언트 모킹"""
    mock_client = MagicMock()

    mock_client.describe_instances.return_value = {
        "Reservations": [
            {
                "Instances": [
                    {
                        "InstanceId": "i-1234567890abcdef0",
                        "InstanceType": "t3.micro",
                        "State": {"Name": "running"},
                        "Tags": [{"Key": "Name", "Value": "test-instance"}],
                        "VpcId": "vpc-1",
                        "SubnetId": "subnet-1",
                        "PrivateIpAddress": "10.0.0.1",
                    }
                ]
            }
        ]
    }

    # 페이지네이터 모킹
    mock_paginator = MagicMock()
    mock_paginator.paginate.return_value = [mock_client.describe_instances.return_value]
    mock_client.get_paginator.return_value = mock_paginator

    yield mock_client


# =============================================================================
# moto 통합
# =============================================================================


@pytest.fixture
def aws_credentials():
    """moto 사용 시 AWS 자격 증명 설정"""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "ap-northeast-2"


@pytest.fixture
def moto_ec2(aws_credentials):
    """moto를 사용한 EC2 모킹 (VPC, 서브넷 포함)"""
    import boto3
    from moto import mock_aws

    with mock_aws():
        ec2 = boto3.client("ec2", region_name="ap-northeast-2")

        vpc = ec2.create_vpc(CidrBlock="10.0.0.0/16")
        vpc_id = vpc["Vpc"]["VpcId"]

        subnet = ec2.create_subnet(VpcId=vpc_id, CidrBlock="10.0.1.0/24")
        subnet_id = subnet["Subnet"]["SubnetId"]

        yield ec2, vpc_id, subnet_id
