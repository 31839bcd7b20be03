"""corskit: CORS decision engine with an http.server adapter."""

from corskit.cors import (
    ALL_HEADERS,
    ALL_METHODS,
    ALL_ORIGINS,
    NO_ORIGINS,
    CorsConfig,
    CorsDecision,
    OriginKind,
    OriginPolicy,
    create_cors_config,
    evaluate,
    is_method_allowed,
    is_origin_allowed,
    is_preflight,
)

__version__ = "0.1.0"

__all__ = [
    "ALL_HEADERS",
    "ALL_METHODS",
    "ALL_ORIGINS",
    "NO_ORIGINS",
    "CorsConfig",
    "CorsDecision",
    "OriginKind",
    "OriginPolicy",
    "create_cors_config",
    "evaluate",
    "is_method_allowed",
    "is_origin_allowed",
    "is_preflight",
]
