#!/usr/bin/env python3
"""
userauth -- Account registration and password login service.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 3000
  python main.py register --display-name Ana --email ana@x.com --login-name ana1
  python main.py login ana1
  python main.py accounts
  python main.py accounts --json

Environment variables (see core/config.py):
  DATABASE_URL     SQLAlchemy URL of the account database (default: auth/userauth.db)
  BCRYPT_ROUNDS    bcrypt cost factor (default 12; below 10 requires DEBUG=true)
  HOST / PORT      Bind address for `serve` (default 127.0.0.1:3000)
"""

import argparse
import getpass
import json
from dataclasses import asdict
from typing import Optional

from auth.errors import AuthError
from auth.service import AuthService
from auth.store import CredentialStore
from core.config import get_settings


def _build_service() -> AuthService:
    settings = get_settings()
    store = CredentialStore(settings.database_url, busy_timeout=settings.db_busy_timeout_seconds)
    return AuthService(store, rounds=settings.bcrypt_rounds)


def _read_password(given: Optional[str], confirm: bool) -> Optional[str]:
    """Return the password from --password or prompt for it without echo.

    Returns None when the confirmation prompt does not match.
    """
    if given is not None:
        return given
    password = getpass.getpass("Password: ")
    if confirm and getpass.getpass("Confirm password: ") != password:
        print("  [!] Passwords do not match.")
        return None
    return password


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
    )
    return 0


def _cmd_register(args: argparse.Namespace) -> int:
    password = _read_password(args.password, confirm=True)
    if password is None:
        return 1
    service: Optional[AuthService] = None
    try:
        service = _build_service()
        summary = service.register(args.display_name, args.email, args.login_name, password)
    except AuthError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        if service is not None:
            service.store.close()
    print(f"Account {summary.id} created for {summary.login_name} at {summary.created_at}.")
    return 0


def _cmd_login(args: argparse.Namespace) -> int:
    password = _read_password(args.password, confirm=False)
    service: Optional[AuthService] = None
    try:
        service = _build_service()
        summary = service.authenticate(args.identity, password)
    except AuthError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        if service is not None:
            service.store.close()
    print(f"Welcome, {summary.display_name} ({summary.login_name}, id {summary.id}).")
    return 0


def _cmd_accounts(args: argparse.Namespace) -> int:
    service: Optional[AuthService] = None
    try:
        service = _build_service()
        summaries = service.list_summaries()
    except AuthError as exc:
        print(f"  [!] {exc.message}")
        return 1
    finally:
        if service is not None:
            service.store.close()

    if args.json:
        print(json.dumps([asdict(s) for s in summaries], indent=2))
        return 0

    if not summaries:
        print("No accounts registered.")
        return 0
    print(f"{'ID':>5}  {'LOGIN':<20} {'EMAIL':<30} {'NAME':<20} CREATED")
    print("─" * 100)
    for s in summaries:
        print(f"{s.id:>5}  {s.login_name:<20} {s.email:<30} {s.display_name:<20} {s.created_at}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="userauth",
        description="Account registration and password login service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --port 3000
  python main.py register --display-name Ana --email ana@x.com --login-name ana1
  python main.py login ana@x.com
  python main.py accounts --json
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT setting)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=_cmd_serve)

    register = sub.add_parser("register", help="Register a new account")
    register.add_argument("--display-name", required=True, metavar="NAME")
    register.add_argument("--email", required=True)
    register.add_argument("--login-name", required=True, metavar="LOGIN")
    register.add_argument(
        "--password",
        default=None,
        help="Password (prompted without echo when omitted -- prefer the prompt)",
    )
    register.set_defaults(func=_cmd_register)

    login = sub.add_parser("login", help="Check a password for a login name or email")
    login.add_argument("identity", help="Login name or email")
    login.add_argument("--password", default=None, help="Password (prompted when omitted)")
    login.set_defaults(func=_cmd_login)

    accounts = sub.add_parser("accounts", help="List registered accounts (no password hashes)")
    accounts.add_argument("--json", action="store_true", help="Output structured JSON")
    accounts.set_defaults(func=_cmd_accounts)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
