"""
core/config.py - 중앙 설정 관리

리전, 자격 증명 선택, 읽기 전용 모드, 데모 모드 등 프로세스 설정입니다.

우선순위 (낮음 → 높음):
    1. 기본값
    2. YAML 설정 파일 (~/.config/aws-browser/config.yaml)
    3. 환경 변수 (AWS_BROWSER_*)
    4. CLI 옵션 (호스트가 적용)

Usage:
    from core.config import get_settings, load_settings

    settings = load_settings()
    if settings.read_only:
        ...
"""

from __future__ import annotations

import logging
import os
import re
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

# 데모 모드에서 표시되는 마스킹 계정 ID
DEMO_ACCOUNT_ID = "123456789012"

# 자격 증명 선택 리소스 ID
PROFILE_ID_SDK_DEFAULT = "__sdk_default__"
PROFILE_ID_ENV_ONLY = "__env_only__"

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "aws-browser" / "config.yaml"

ENV_READ_ONLY = "AWS_BROWSER_READ_ONLY"
ENV_REGION = "AWS_BROWSER_REGION"
ENV_PROFILE = "AWS_BROWSER_PROFILE"
ENV_CONFIG = "AWS_BROWSER_CONFIG"

_REGION_PATTERN = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d+$")
_PROFILE_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")

# 설정 파일에서 인식하는 최상위 키
CONFIG_KEYS = frozenset({"region", "profile", "env_only", "read_only", "demo_mode", "log_file"})


def is_valid_region(region: str) -> bool:
    """리전 형식 검증 (예: us-east-1, ap-northeast-2, us-gov-west-1)"""
    return bool(_REGION_PATTERN.match(region))


def is_valid_profile_name(name: str) -> bool:
    """프로파일 이름 검증 (영숫자, 하이픈, 밑줄, 마침표)"""
    return bool(_PROFILE_PATTERN.match(name))


def _is_truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class CredentialMode(Enum):
    """자격 증명 해석 방식"""

    SDK_DEFAULT = "sdk_default"  # SDK 기본 체인 (AWS_PROFILE 유지)
    NAMED_PROFILE = "named_profile"  # ~/.aws의 명명된 프로파일
    ENV_ONLY = "env_only"  # ~/.aws 무시, 환경 변수/IMDS만 사용


@dataclass(frozen=True)
class ProfileSelection:
    """자격 증명 선택

    Attributes:
        mode: 자격 증명 모드
        profile_name: NAMED_PROFILE일 때만 사용
    """

    mode: CredentialMode = CredentialMode.SDK_DEFAULT
    profile_name: str = ""

    @classmethod
    def sdk_default(cls) -> ProfileSelection:
        return cls(CredentialMode.SDK_DEFAULT)

    @classmethod
    def env_only(cls) -> ProfileSelection:
        return cls(CredentialMode.ENV_ONLY)

    @classmethod
    def named(cls, name: str) -> ProfileSelection:
        return cls(CredentialMode.NAMED_PROFILE, name)

    @classmethod
    def from_id(cls, selection_id: str) -> ProfileSelection:
        """리소스 ID에서 복원 (id()의 역함수)"""
        if selection_id == PROFILE_ID_SDK_DEFAULT:
            return cls.sdk_default()
        if selection_id == PROFILE_ID_ENV_ONLY:
            return cls.env_only()
        return cls.named(selection_id)

    def id(self) -> str:
        if self.mode == CredentialMode.SDK_DEFAULT:
            return PROFILE_ID_SDK_DEFAULT
        if self.mode == CredentialMode.ENV_ONLY:
            return PROFILE_ID_ENV_ONLY
        return self.profile_name

    def display_name(self) -> str:
        """표시용 이름 (SDK 기본이면 AWS_PROFILE 값 포함)"""
        if self.mode == CredentialMode.SDK_DEFAULT:
            profile = os.environ.get("AWS_PROFILE")
            if profile:
                return f"SDK Default (AWS_PROFILE={profile})"
            return "SDK Default"
        if self.mode == CredentialMode.ENV_ONLY:
            return "Env/IMDS Only"
        return self.profile_name


class Settings:
    """프로세스 설정 (스레드 안전)"""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._region = ""
        self._selection = ProfileSelection()
        self._account_id = ""
        self._read_only = False
        self._demo_mode = False
        self._log_file = ""
        self._warnings: list[str] = []

    # --- region ---

    @property
    def region(self) -> str:
        with self._lock:
            return self._region

    def set_region(self, region: str) -> None:
        if region and not is_valid_region(region):
            raise ConfigError("region", f"잘못된 리전 형식: {region} (예: us-east-1)")
        with self._lock:
            self._region = region

    # --- credentials ---

    @property
    def selection(self) -> ProfileSelection:
        with self._lock:
            return self._selection

    def set_selection(self, selection: ProfileSelection) -> None:
        with self._lock:
            self._selection = selection

    def use_profile(self, name: str) -> None:
        if not is_valid_profile_name(name):
            raise ConfigError("profile", f"잘못된 프로파일 이름: {name}")
        self.set_selection(ProfileSelection.named(name))

    def use_env_only(self) -> None:
        self.set_selection(ProfileSelection.env_only())

    def use_sdk_default(self) -> None:
        self.set_selection(ProfileSelection.sdk_default())

    def use_selection_id(self, selection_id: str) -> None:
        """선택 ID 적용 (프로파일 이름 또는 __sdk_default__/__env_only__)"""
        selection = ProfileSelection.from_id(selection_id)
        if selection.mode == CredentialMode.NAMED_PROFILE:
            self.use_profile(selection.profile_name)
        else:
            self.set_selection(selection)

    # --- account ---

    @property
    def account_id(self) -> str:
        """계정 ID (데모 모드에서는 마스킹)"""
        with self._lock:
            if self._demo_mode:
                return DEMO_ACCOUNT_ID
            return self._account_id

    def set_account_id(self, account_id: str) -> None:
        with self._lock:
            self._account_id = account_id

    def mask_account_id(self, account_id: str) -> str:
        with self._lock:
            if self._demo_mode and account_id:
                return DEMO_ACCOUNT_ID
            return account_id

    # --- modes ---

    @property
    def read_only(self) -> bool:
        with self._lock:
            return self._read_only

    def set_read_only(self, value: bool) -> None:
        with self._lock:
            self._read_only = value

    @property
    def demo_mode(self) -> bool:
        with self._lock:
            return self._demo_mode

    def set_demo_mode(self, value: bool) -> None:
        with self._lock:
            self._demo_mode = value

    @property
    def log_file(self) -> str:
        with self._lock:
            return self._log_file

    def set_log_file(self, path: str) -> None:
        with self._lock:
            self._log_file = path

    # --- warnings ---

    @property
    def warnings(self) -> list[str]:
        with self._lock:
            return list(self._warnings)

    def add_warning(self, message: str) -> None:
        with self._lock:
            self._warnings.append(message)

    # --- loading ---

    def apply_dict(self, data: dict[str, Any]) -> None:
        """설정 딕셔너리 적용 (YAML 파일 내용)

        알 수 없는 키는 무시하고 경고로 남깁니다.
        """
        for key in sorted(str(k) for k in data if k not in CONFIG_KEYS):
            message = f"알 수 없는 설정 키: {key}"
            logger.warning(message)
            self.add_warning(message)

        if "region" in data and data["region"]:
            self.set_region(str(data["region"]))
        if data.get("env_only"):
            self.use_env_only()
        elif data.get("profile"):
            self.use_selection_id(str(data["profile"]))
        if "read_only" in data:
            self.set_read_only(bool(data["read_only"]))
        if "demo_mode" in data:
            self.set_demo_mode(bool(data["demo_mode"]))
        if data.get("log_file"):
            self.set_log_file(str(data["log_file"]))

    def apply_env(self, environ: dict[str, str] | None = None) -> None:
        """환경 변수 적용"""
        env = os.environ if environ is None else environ
        if _is_truthy(env.get(ENV_READ_ONLY)):
            self.set_read_only(True)
        if env.get(ENV_REGION):
            self.set_region(env[ENV_REGION])
        if env.get(ENV_PROFILE):
            self.use_profile(env[ENV_PROFILE])

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "region": self._region,
                "selection": self._selection.id(),
                "account_id": self.account_id,
                "read_only": self._read_only,
                "demo_mode": self._demo_mode,
                "log_file": self._log_file,
            }


def load_config_file(path: Path | str) -> dict[str, Any]:
    """YAML 설정 파일 로드 (없으면 빈 딕셔너리)

    Raises:
        ConfigError: 파싱 실패 또는 최상위가 매핑이 아닌 경우
    """
    path = Path(path)
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(str(path), "설정 파일을 읽을 수 없습니다", cause=e) from e

    if not isinstance(data, dict):
        raise ConfigError(str(path), "최상위는 매핑이어야 합니다")
    return data


_settings: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """프로세스 설정 싱글톤"""
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = Settings()
    return _settings


def reset_settings() -> None:
    """설정 초기화 (테스트용)"""
    global _settings
    with _settings_lock:
        _settings = None


def load_settings(
    path: Path | str | None = None,
    environ: dict[str, str] | None = None,
) -> Settings:
    """설정 파일과 환경 변수를 순서대로 적용한 설정 반환

    Args:
        path: 설정 파일 경로 (None이면 AWS_BROWSER_CONFIG 또는 기본 경로)
        environ: 환경 변수 (None이면 os.environ)
    """
    env = os.environ if environ is None else environ
    settings = get_settings()

    config_path = path or env.get(ENV_CONFIG) or DEFAULT_CONFIG_PATH
    data = load_config_file(config_path)
    if data:
        logger.debug(f"설정 파일 로드: {config_path}")
        settings.apply_dict(data)

    settings.apply_env(dict(env))
    return settings


def get_version() -> str:
    """버전 문자열 반환 (version.txt, 없으면 패키지 메타데이터)"""
    version_file = Path(__file__).resolve().parent.parent / "version.txt"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()

    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("aws-browser")
    except PackageNotFoundError:
        return "dev"
