#!/usr/bin/env python3
"""
Overwrite a user's permissions from the command line (bootstrap the first admin).

Usage:
  python scripts/grant_permissions.py --email admin@example.com ADMIN USER
"""
from __future__ import annotations

import argparse
import sys

from storefront.core.errors import ServiceError
from storefront.core.utils import normalize_email
from storefront.domain.permissions import parse_permissions, serialize_permissions
from storefront.repositories.sql_repository import SQLRepository


def main() -> None:
    ap = argparse.ArgumentParser(description="Set the permissions of a user")
    ap.add_argument("--email", required=True, help="Email of the user to update")
    ap.add_argument("permissions", nargs="+", help="Permission names, e.g. ADMIN USER")
    args = ap.parse_args()

    repo = SQLRepository()
    email = normalize_email(args.email)
    user = repo.get_user_by_email(email)
    if not user:
        raise SystemExit(f"No user with email '{email}'")
    permissions = serialize_permissions(parse_permissions(args.permissions))
    repo.replace_user_permissions(user.id, permissions)
    print(f"OK: {email} -> {', '.join(permissions)}")


if __name__ == "__main__":
    try:
        main()
    except ServiceError as exc:  # pragma: no cover
        sys.stderr.write(f"Error: {exc.message}\n")
        raise SystemExit(1)
