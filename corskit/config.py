"""
corskit 설정 모듈

CORS 정책과 데모 서버/로깅 설정을 단일 불변 객체로 통합합니다.
우선순위: 환경변수 > config.json > 기본값

사용법:
    from corskit.config import get_settings
    settings = get_settings()
    print(settings.cors_allowed_origins)  # "*"
"""

import os
import json
from dataclasses import dataclass
from typing import Optional

from corskit.logging_config import get_logger

logger = get_logger("config")


@dataclass(frozen=True)
class Settings:
    """프로세스 설정 (불변 객체)"""

    # CORS 정책
    cors_allowed_origins: str = "*"     # 단일 origin, "*" 또는 빈 값(= "null")
    cors_allowed_methods: str = "*"
    cors_allowed_headers: str = "*"
    cors_allow_credentials: bool = False
    cors_max_age: Optional[int] = 3600  # preflight 캐시 (초), None이면 생략

    # 데모 서버
    host: str = "127.0.0.1"
    port: int = 8080

    # 로깅
    log_level: str = "INFO"
    log_format: str = "text"            # "text" | "json"
    log_file: str = ""                  # 빈 값이면 콘솔만
    log_max_bytes: int = 10_485_760     # 10MB
    log_backup_count: int = 5


def _str_to_bool(s) -> bool:
    """문자열을 bool로 변환"""
    if isinstance(s, bool):
        return s
    return str(s).lower() in ("true", "1", "yes")


def _optional_int(s) -> Optional[int]:
    """빈 값/"none"은 None, 그 외는 int"""
    if s is None:
        return None
    if isinstance(s, str) and s.strip().lower() in ("", "none", "null"):
        return None
    return int(s)


# 환경변수 매핑 (ENV_NAME -> (field_name, type_converter))
_ENV_MAP = {
    "CORS_ALLOWED_ORIGINS": ("cors_allowed_origins", str),
    "CORS_ALLOWED_METHODS": ("cors_allowed_methods", str),
    "CORS_ALLOWED_HEADERS": ("cors_allowed_headers", str),
    "CORS_ALLOW_CREDENTIALS": ("cors_allow_credentials", _str_to_bool),
    "CORS_MAX_AGE": ("cors_max_age", _optional_int),
    "CORS_HOST": ("host", str),
    "CORS_PORT": ("port", int),
    "LOG_LEVEL": ("log_level", str),
    "LOG_FORMAT": ("log_format", str),
    "LOG_FILE": ("log_file", str),
    "LOG_MAX_BYTES": ("log_max_bytes", int),
    "LOG_BACKUP_COUNT": ("log_backup_count", int),
}


# 설정 필드 범위 제한
_FIELD_BOUNDS = {
    "cors_max_age": (0, 86400),
    "port": (0, 65535),
    "log_backup_count": (0, 100),
}


def _clamp(field_name, value):
    """설정값의 범위를 제한 (None은 그대로)"""
    if value is None:
        return value
    if field_name in _FIELD_BOUNDS:
        lo, hi = _FIELD_BOUNDS[field_name]
        return type(value)(max(lo, min(hi, value)))
    return value


def _load_config_file(path: str = "config.json") -> dict:
    """config.json 로드 (없거나 깨졌으면 빈 dict 반환)"""
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"config file ignored: {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def load_settings(config_path: str = "config.json") -> Settings:
    """설정 로드 (환경변수 > config.json > 기본값)"""
    file_config = _load_config_file(config_path)
    overrides = {}

    for env_name, (field_name, converter) in _ENV_MAP.items():
        # 1. 환경변수
        env_val = os.environ.get(env_name)
        if env_val is not None:
            try:
                overrides[field_name] = _clamp(field_name, converter(env_val))
            except (ValueError, TypeError):
                logger.warning(f"invalid value for {env_name}, using default")
            continue

        # 2. config.json
        if field_name in file_config:
            try:
                overrides[field_name] = _clamp(field_name, converter(file_config[field_name]))
            except (ValueError, TypeError):
                logger.warning(f"invalid value for {field_name} in {config_path}, using default")

    return Settings(**overrides)


# 싱글턴 캐시
_cached_settings: Optional[Settings] = None


def get_settings(config_path: str = "config.json") -> Settings:
    """설정 싱글턴 반환 (최초 호출 시 로드)"""
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = load_settings(config_path)
    return _cached_settings


def reset_settings() -> None:
    """설정 캐시 초기화 (테스트용)"""
    global _cached_settings
    _cached_settings = None
