"""
core/aws.py - boto3 세션/클라이언트 생성 헬퍼

어댑터가 사용하는 boto3 client를 요청 컨텍스트와 설정에 맞춰 생성합니다.
(프로파일/리전 오버라이드, 타임아웃, 연결 풀)

재시도는 SDK 레벨(botocore retry mode)에서만 일어나며, 코어와 실행기는 재시도하지 않습니다.

Example:
    from core.aws import get_client

    ec2 = get_client(ctx, "ec2")
    reservations = ec2.describe_instances()["Reservations"]
"""

from __future__ import annotations

import os
from typing import Any, Literal, cast

import boto3
from botocore.config import Config

from core.config import CredentialMode, Settings, get_settings
from core.context import RequestContext

# Retry mode 타입 (botocore TypedDict와 호환)
RetryMode = Literal["legacy", "standard", "adaptive"]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_MODE: RetryMode = "standard"
DEFAULT_CONNECT_TIMEOUT = 10  # 초
DEFAULT_READ_TIMEOUT = 30  # 초
DEFAULT_MAX_POOL_CONNECTIONS = 25

_ENV_CREDENTIAL_KEYS = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_SESSION_TOKEN")


def resolve_region(ctx: RequestContext, settings: Settings | None = None) -> str | None:
    """컨텍스트 오버라이드 → 설정 → None(SDK 기본) 순으로 리전 결정"""
    settings = settings or get_settings()
    return ctx.region or settings.region or None


def get_session(ctx: RequestContext, settings: Settings | None = None) -> boto3.Session:
    """요청 컨텍스트와 설정에 맞는 boto3 Session 생성

    - 컨텍스트 프로파일 오버라이드가 있으면 우선
    - ENV_ONLY 모드면 ~/.aws 설정을 무시하고 환경 변수 자격 증명만 사용
    """
    settings = settings or get_settings()
    region = resolve_region(ctx, settings)

    if ctx.profile:
        return boto3.Session(profile_name=ctx.profile, region_name=region)

    selection = settings.selection
    if selection.mode == CredentialMode.NAMED_PROFILE:
        return boto3.Session(profile_name=selection.profile_name, region_name=region)

    if selection.mode == CredentialMode.ENV_ONLY:
        access_key, secret_key, token = (os.environ.get(k) for k in _ENV_CREDENTIAL_KEYS)
        return boto3.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            aws_session_token=token,
            region_name=region,
        )

    return boto3.Session(region_name=region)


def get_client(
    ctx: RequestContext,
    service_name: str,
    region_name: str | None = None,
    settings: Settings | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_mode: RetryMode = DEFAULT_RETRY_MODE,
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: int = DEFAULT_READ_TIMEOUT,
    **kwargs: Any,
) -> Any:
    """컨텍스트 기반 boto3 client 생성

    Args:
        ctx: 요청 컨텍스트 (리전/프로파일 오버라이드)
        service_name: AWS 서비스 이름 (ec2, s3 등)
        region_name: 리전 강제 지정 (None이면 컨텍스트/설정)
        settings: 설정 (None이면 프로세스 설정)
        max_attempts: SDK 최대 시도 횟수
        retry_mode: SDK 재시도 모드
        connect_timeout: 연결 타임아웃 (초)
        read_timeout: 읽기 타임아웃 (초)
        **kwargs: session.client()에 전달할 추가 인자

    Returns:
        boto3 client
    """
    ctx.raise_if_cancelled()
    session = get_session(ctx, settings)

    # 컨텍스트 데드라인이 더 짧으면 읽기 타임아웃을 줄임
    remaining = ctx.remaining()
    if remaining is not None:
        read_timeout = max(1, min(read_timeout, int(remaining) or 1))

    config = Config(
        retries={"max_attempts": max_attempts, "mode": retry_mode},  # pyright: ignore[reportArgumentType]
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        max_pool_connections=DEFAULT_MAX_POOL_CONNECTIONS,
    )

    if "config" in kwargs:
        existing = kwargs.pop("config")
        config = config.merge(existing)

    # cast to Any to bypass boto3-stubs Literal type requirements
    return session.client(  # pyright: ignore[reportCallIssue]
        cast(Any, service_name),
        region_name=region_name or session.region_name,
        config=config,
        **kwargs,
    )
