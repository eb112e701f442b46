#!/usr/bin/env python3
"""
CoverDesk -- operator CLI for the portal's auth core.

Seeds accounts and inspects the audit trail directly against the configured
stores. The API server does not need to be running.

Usage:
  python main.py create-user --name "Ada Admin" --email admin@example.com --role admin
  python main.py create-user --name Bob --email bob@example.com --password s3cret!
  python main.py audit-log
  python main.py audit-log --limit 10 --json

Environment variables:
  SECRET_KEY     Required unless DEBUG=true (see core/config.py).
  AUTH_DB_URL    Credential store URL (default: SQLite file in auth/).
  AUDIT_DB_URL   Audit store URL (default: SQLite file in audit/).
"""

import argparse
import getpass
import json
import logging
from typing import Optional

from audit.store import AuditStore
from auth.errors import DuplicateEmail
from auth.models import DEFAULT_ROLE, ROLES
from auth.service import register_user
from auth.store import UserStore
from core.config import get_settings

logger = logging.getLogger("coverdesk.cli")


def _user_store() -> UserStore:
    url = get_settings().auth_db_url
    return UserStore(url) if url else UserStore()


def _audit_store() -> AuditStore:
    url = get_settings().audit_db_url
    return AuditStore(url) if url else AuditStore()


def _read_password() -> Optional[str]:
    """Prompt twice without echo. Returns None when the entries differ."""
    first = getpass.getpass("  Password: ")
    second = getpass.getpass("  Repeat password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return None
    return first


def create_user(name: str, email: str, role: str, password: Optional[str] = None) -> int:
    """Register one account. Returns a process exit code."""
    if password is None:
        password = _read_password()
        if password is None:
            return 1
    if len(password) < 6:
        print("  [!] Password must be at least 6 characters.")
        return 1

    store = _user_store()
    try:
        user = register_user(store, name.strip(), email.strip(), password, role)
    except DuplicateEmail:
        print(f"  [!] '{email}' is already registered.")
        return 1
    except ValueError as e:
        print(f"  [!] {e}")
        return 1
    finally:
        store.close()

    print(f"  Created {user.role} account {user.email} (id={user.id}).")
    return 0


def audit_log(limit: int = 50, as_json: bool = False) -> int:
    """Print the most recent audit records, newest first."""
    store = _audit_store()
    try:
        records = store.list_recent(limit=limit)
    finally:
        store.close()

    if as_json:
        print(
            json.dumps(
                [
                    {
                        "id": r.id,
                        "action": r.action,
                        "actor_id": r.actor_id,
                        "details": r.details,
                        "ip": r.ip,
                        "timestamp": r.timestamp,
                    }
                    for r in records
                ],
                indent=2,
                default=str,
            )
        )
        return 0

    if not records:
        print("  No audit records.")
        return 0

    for r in records:
        details = json.dumps(r.details, default=str, sort_keys=True)
        print(f"  {r.timestamp}  #{r.id:<5} {r.action:<20} actor={r.actor_id:<5} ip={r.ip:<15} {details}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="coverdesk",
        description="Account seeding and audit trail inspection for the CoverDesk portal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py create-user --name "Ada Admin" --email admin@example.com --role admin
  python main.py create-user --name Cara --email cara@example.com --role agent
  python main.py audit-log --limit 20
  python main.py audit-log --json > audit.json
        """,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    create = subparsers.add_parser("create-user", help="Create a customer, agent or admin account")
    create.add_argument("--name", required=True, help="Display name")
    create.add_argument("--email", required=True, help="Login email (unique, case-sensitive)")
    create.add_argument(
        "--role",
        choices=sorted(ROLES),
        default=DEFAULT_ROLE,
        help=f"Account role (default: {DEFAULT_ROLE})",
    )
    create.add_argument(
        "--password",
        default=None,
        help="Password. Omit to be prompted without echo (recommended).",
    )

    audit = subparsers.add_parser("audit-log", help="Show the most recent audit records")
    audit.add_argument(
        "--limit",
        type=int,
        default=50,
        metavar="N",
        help="Number of records to show (default: 50)",
    )
    audit.add_argument("--json", action="store_true", help="Output structured JSON")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.command == "create-user":
        return create_user(args.name, args.email, args.role, args.password)
    if args.command == "audit-log":
        if args.limit < 1:
            print("  [!] --limit must be at least 1.")
            return 1
        return audit_log(args.limit, args.json)

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
