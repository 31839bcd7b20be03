import os
import sys
from io import BytesIO
from email.message import Message
from unittest.mock import MagicMock, patch

import pytest

# 프로젝트 루트를 path에 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from corskit.config import reset_settings
from corskit.cors import CorsConfig
from corskit.handler import CorsDemoHandler, make_handler_class
from corskit.logging_config import reset_logging

_CORS_ENV = (
    "CORS_ALLOWED_ORIGINS",
    "CORS_ALLOWED_METHODS",
    "CORS_ALLOWED_HEADERS",
    "CORS_ALLOW_CREDENTIALS",
    "CORS_MAX_AGE",
    "CORS_HOST",
    "CORS_PORT",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FILE",
    "LOG_MAX_BYTES",
    "LOG_BACKUP_COUNT",
)


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    """설정 캐시/로깅/환경변수 초기화"""
    for name in _CORS_ENV:
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    reset_logging()
    yield
    reset_settings()
    reset_logging()


@pytest.fixture
def wildcard_config():
    """(*, *, *, credentials=false, max_age=3600) 정책"""
    return CorsConfig("*", "*", "*", False, 3600)


@pytest.fixture
def make_handler():
    """mock CorsDemoHandler 팩토리 (실제 소켓 연결 없음)"""
    def _make(config, method="GET", headers=None):
        handler_cls = make_handler_class(config)
        with patch.object(CorsDemoHandler, "__init__", lambda self, *args, **kwargs: None):
            h = handler_cls()

        h.command = method
        h.headers = Message()
        for key, value in (headers or {}).items():
            h.headers[key] = value
        h.rfile = BytesIO()
        h.wfile = BytesIO()
        h.requestline = f"{method} / HTTP/1.1"
        h.request_version = "HTTP/1.1"
        h.client_address = ("127.0.0.1", 12345)
        h.server = MagicMock()

        h.send_response = MagicMock()
        h.send_header = MagicMock()
        h.end_headers = MagicMock()
        return h

    return _make
