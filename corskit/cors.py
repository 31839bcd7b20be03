"""
CORS (Cross-Origin Resource Sharing) decision module.

Decides, per request, whether CORS applies, whether the request is a
preflight, and which response headers to attach.

Thread-safe: CorsConfig is immutable and evaluate() is a pure function.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from corskit.logging_config import get_logger

logger = get_logger("cors")

# Constant for allowing all HTTP methods
ALL_METHODS = "*"
# Constant for allowing all HTTP headers
ALL_HEADERS = "*"
# Constant for allowing all origins
ALL_ORIGINS = "*"
# Constant for allowing no origins (empty origin configuration)
NO_ORIGINS = "null"

ORIGIN = "Origin"
ACCESS_CONTROL_REQUEST_METHOD = "Access-Control-Request-Method"
ACCESS_CONTROL_ALLOW_ORIGIN = "Access-Control-Allow-Origin"
ACCESS_CONTROL_ALLOW_METHODS = "Access-Control-Allow-Methods"
ACCESS_CONTROL_ALLOW_HEADERS = "Access-Control-Allow-Headers"
ACCESS_CONTROL_ALLOW_CREDENTIALS = "Access-Control-Allow-Credentials"
ACCESS_CONTROL_MAX_AGE = "Access-Control-Max-Age"

PREFLIGHT_METHOD = "OPTIONS"
PREFLIGHT_STATUS = 405


class OriginKind(Enum):
    WILDCARD = "wildcard"
    EXACT = "exact"
    NONE = "none"


@dataclass(frozen=True)
class OriginPolicy:
    """Tagged origin policy: wildcard, one exact origin, or nothing.

    Keeps a configured "*" distinct from a literal origin so matching never
    compares against the sentinel string.
    """
    kind: OriginKind
    origin: Optional[str] = None

    @classmethod
    def parse(cls, allowed_origins: str) -> "OriginPolicy":
        if allowed_origins == ALL_ORIGINS:
            return cls(OriginKind.WILDCARD)
        if not allowed_origins or allowed_origins == NO_ORIGINS:
            return cls(OriginKind.NONE)
        return cls(OriginKind.EXACT, allowed_origins)

    def allows(self, origin: str) -> bool:
        if not origin:
            return False
        if self.kind is OriginKind.WILDCARD:
            return True
        if self.kind is OriginKind.EXACT:
            return self.origin == origin
        return False


def _normalize_methods(allowed_methods: str) -> str:
    return "".join(allowed_methods.upper().split())


@dataclass(frozen=True)
class CorsConfig:
    """Immutable CORS policy, built once and shared across requests.

    Attributes:
        allowed_origins: A single origin, "*" for all origins, or "null".
            An empty value is stored as "null" and matches nothing.
        allowed_methods: Method token(s) or "*". Upper-cased and stripped
            of whitespace on construction.
        allowed_headers: Header-name token(s) or "*".
        allow_credentials: Whether Access-Control-Allow-Credentials is true.
        max_age: Preflight cache duration in seconds, or None to omit.
    """
    allowed_origins: str = ALL_ORIGINS
    allowed_methods: str = ALL_METHODS
    allowed_headers: str = ALL_HEADERS
    allow_credentials: bool = False
    max_age: Optional[int] = None
    origin_policy: OriginPolicy = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.allowed_origins:
            object.__setattr__(self, "allowed_origins", NO_ORIGINS)
        object.__setattr__(self, "allowed_methods", _normalize_methods(self.allowed_methods))
        object.__setattr__(self, "origin_policy", OriginPolicy.parse(self.allowed_origins))

    def clone(self, **changes) -> "CorsConfig":
        """Return a copy, optionally with some fields replaced."""
        return dataclasses.replace(self, **changes)

    def allows_origin(self, origin: Optional[str]) -> bool:
        return self.origin_policy.allows(origin or "")

    def allows_method(self, method: Optional[str]) -> bool:
        return is_method_allowed(self.allowed_methods, method or "")


@dataclass(frozen=True)
class CorsDecision:
    """Outcome of evaluating one request against a CorsConfig.

    Attributes:
        is_cors: An Origin header was present.
        is_preflight: OPTIONS with Access-Control-Request-Method, from an
            allowed origin. The caller must answer 405 with ``headers``.
        headers: Response headers to attach.
    """
    is_cors: bool = False
    is_preflight: bool = False
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def status(self) -> Optional[int]:
        """Status the caller must respond with, or None to let the app decide."""
        return PREFLIGHT_STATUS if self.is_preflight else None


def is_origin_allowed(allowed_origins: str, origin: str) -> bool:
    """Check if the origin matches the configured origin value.

    Args:
        allowed_origins: Configured value ("*", "null" or one origin).
        origin: The Origin header value from the request.

    Returns:
        True for the wildcard or a case-sensitive exact match.
    """
    return OriginPolicy.parse(allowed_origins).allows(origin)


def is_method_allowed(allowed_methods: str, requested_methods: str) -> bool:
    """Check that every requested method is in the allowed list.

    Both arguments may be comma-separated; comparison ignores case and
    whitespace. "*" allows everything, an empty side allows nothing.
    """
    if not requested_methods or not allowed_methods:
        return False
    if allowed_methods == ALL_METHODS:
        return True

    allowed = _normalize_methods(allowed_methods).split(",")
    requested = _normalize_methods(requested_methods).split(",")
    return all(method in allowed for method in requested)


def is_preflight(request_method: str, requested_preflight_method: Optional[str]) -> bool:
    """OPTIONS (exact) carrying a non-empty Access-Control-Request-Method."""
    return request_method == PREFLIGHT_METHOD and bool(requested_preflight_method)


def evaluate(
    request_origin: Optional[str],
    request_method: str,
    requested_preflight_method: Optional[str],
    config: CorsConfig,
) -> CorsDecision:
    """Decide which CORS headers a request gets.

    Args:
        request_origin: Origin header value, None if absent.
        request_method: HTTP method of the request.
        requested_preflight_method: Access-Control-Request-Method value,
            None if absent.
        config: The shared CORS policy.

    Returns:
        CorsDecision. Never raises: missing headers mean "not CORS".
    """
    if not request_origin:
        return CorsDecision()

    if not config.allows_origin(request_origin):
        logger.debug(f"origin not allowed: {request_origin}")
        return CorsDecision(is_cors=True)

    # The request origin is echoed even for the wildcard policy, so
    # credentials never go out with "*".
    headers: dict[str, str] = {
        ACCESS_CONTROL_ALLOW_ORIGIN: request_origin,
        ACCESS_CONTROL_ALLOW_CREDENTIALS: "true" if config.allow_credentials else "false",
    }

    if not is_preflight(request_method, requested_preflight_method):
        return CorsDecision(is_cors=True, headers=headers)

    headers[ACCESS_CONTROL_ALLOW_METHODS] = config.allowed_methods
    headers[ACCESS_CONTROL_ALLOW_HEADERS] = config.allowed_headers
    if config.max_age is not None:
        headers[ACCESS_CONTROL_MAX_AGE] = str(config.max_age)

    return CorsDecision(is_cors=True, is_preflight=True, headers=headers)


def create_cors_config(settings) -> CorsConfig:
    """Create a CorsConfig from process Settings.

    Args:
        settings: corskit.config.Settings instance.

    Returns:
        CorsConfig instance.
    """
    return CorsConfig(
        allowed_origins=settings.cors_allowed_origins.strip(),
        allowed_methods=settings.cors_allowed_methods,
        allowed_headers=settings.cors_allowed_headers.strip(),
        allow_credentials=settings.cors_allow_credentials,
        max_age=settings.cors_max_age,
    )
