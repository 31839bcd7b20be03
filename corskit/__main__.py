"""
corskit CLI

서브커맨드:
    serve   데모 서버 실행 (CORS 정책은 환경변수/config.json에서 로드)
    check   요청 하나를 평가하고 결정을 JSON으로 출력

사용법:
    python -m corskit serve --port 8080
    python -m corskit check --origin http://localhost:4200 --method OPTIONS --request-method POST
"""

from __future__ import annotations

import argparse
import json
import sys

from dotenv import load_dotenv

from corskit.config import get_settings
from corskit.cors import create_cors_config, evaluate
from corskit.handler import run_server
from corskit.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    """argparse 파서 구성"""
    parser = argparse.ArgumentParser(
        prog="corskit",
        description="CORS decision engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="서브커맨드")

    serve_parser = subparsers.add_parser("serve", help="데모 서버 실행")
    serve_parser.add_argument("--host", default=None, help="바인딩 호스트 (기본: 설정값)")
    serve_parser.add_argument("--port", type=int, default=None, help="포트 (기본: 설정값)")

    check_parser = subparsers.add_parser("check", help="요청 하나의 CORS 결정 출력")
    check_parser.add_argument("--origin", default=None, help="Origin 헤더 값")
    check_parser.add_argument("--method", default="GET", help="HTTP 메서드")
    check_parser.add_argument("--request-method", dest="request_method", default=None,
                              help="Access-Control-Request-Method 헤더 값")

    return parser


def cmd_serve(args, settings) -> int:
    host = args.host or settings.host
    port = settings.port if args.port is None else args.port
    run_server(host=host, port=port, config=create_cors_config(settings))
    return 0


def cmd_check(args, settings) -> int:
    decision = evaluate(args.origin, args.method, args.request_method, create_cors_config(settings))
    print(json.dumps({
        "is_cors": decision.is_cors,
        "is_preflight": decision.is_preflight,
        "status": decision.status,
        "headers": decision.headers,
    }, indent=2, ensure_ascii=False))
    return 0


def main(argv=None) -> int:
    """메인 엔트리포인트"""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    load_dotenv()
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file or None,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )

    handlers = {
        "serve": cmd_serve,
        "check": cmd_check,
    }
    return handlers[args.command](args, settings)


if __name__ == "__main__":
    sys.exit(main())
