#!/usr/bin/env python3
"""
Identity service -- account registration, login, and signed session tokens.

Usage:
  python main.py serve
  python main.py serve --port 9000 --reload
  python main.py register alice
  python main.py login alice --password pw1
  python main.py users
  python main.py users --json --url http://10.0.0.5:8080

Environment variables (serve):
  SECRET_KEY   Token signing key, at least 32 characters. Required unless DEBUG=true.
  DEBUG        Set to true to auto-generate a SECRET_KEY for local development.
  PORT, HOST   Listen address (default 0.0.0.0:8080).
"""

import argparse
import getpass
import json
import sys

import requests

from core import client


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from core.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "asgi:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


def _read_password(args: argparse.Namespace) -> str:
    if args.password is not None:
        return args.password
    return getpass.getpass("Password: ")


def _print_account_result(body: dict, verb: str) -> int:
    if not body.get("success"):
        print(f"  [!] {verb} failed: {body.get('error', 'unknown error')}")
        return 1
    user = body.get("user", {})
    print(f"  {verb} OK: {user.get('username')} (id {user.get('id')})")
    print(f"  Token: {client.shorten_token(body.get('token', ''))}")
    if "expires_in" in body:
        print(f"  Expires in: {body['expires_in']} s")
    return 0


def _register(args: argparse.Namespace) -> int:
    username = args.username.strip()
    password = _read_password(args)
    if not username or not password:
        print("  [!] Please enter a username and password.")
        return 2
    body = client.register(username, password, base_url=args.url)
    if args.json:
        print(json.dumps(body, indent=2))
        return 0 if body.get("success") else 1
    return _print_account_result(body, "Registration")


def _login(args: argparse.Namespace) -> int:
    username = args.username.strip()
    password = _read_password(args)
    if not username or not password:
        print("  [!] Please enter a username and password.")
        return 2
    body = client.login(username, password, base_url=args.url)
    if args.json:
        print(json.dumps(body, indent=2))
        return 0 if body.get("success") else 1
    return _print_account_result(body, "Login")


def _users(args: argparse.Namespace) -> int:
    body = client.list_users(base_url=args.url)
    if args.json:
        print(json.dumps(body, indent=2))
        return 0 if body.get("success") else 1
    if not body.get("success"):
        print("  [!] Could not fetch users.")
        return 1
    users = body.get("users", [])
    print(f"  Registered users ({len(users)}):")
    for user in users:
        print(f"    - ID: {user.get('id')} - User: {user.get('username')}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="identity",
        description="Minimal identity service: register, log in, and list accounts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, default=None, help="Listen port (default: PORT or 8080)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=_serve)

    for name, func, help_text in (
        ("register", _register, "Create an account on a running service"),
        ("login", _login, "Log in to a running service"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("username", help="Account username (surrounding whitespace is trimmed)")
        p.add_argument("--password", default=None, help="Password (prompted for when omitted)")
        p.set_defaults(func=func)

    users = sub.add_parser("users", help="List accounts on a running service")
    users.set_defaults(func=_users)

    for p in (sub.choices["register"], sub.choices["login"], users):
        p.add_argument(
            "--url",
            default=client.DEFAULT_BASE_URL,
            help=f"Service base URL (default: {client.DEFAULT_BASE_URL})",
        )
        p.add_argument("--json", action="store_true", help="Print the raw JSON response")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    try:
        return args.func(args)
    except requests.RequestException as exc:
        print(f"  [!] Connection error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
