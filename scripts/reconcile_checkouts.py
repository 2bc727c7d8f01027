#!/usr/bin/env python3
"""
List and finish checkouts whose payment was captured but whose order was never written.

Usage:
  python scripts/reconcile_checkouts.py                 # list unresolved attempts
  python scripts/reconcile_checkouts.py --fix           # record orders for charged attempts
  python scripts/reconcile_checkouts.py --attempt 12 --charge-id ch_123 [--amount 1300]
  python scripts/reconcile_checkouts.py --attempt 12 --not-charged
"""
from __future__ import annotations

import argparse
import logging
import sys

from storefront.core.errors import ServiceError
from storefront.domain.checkout import NEEDS_RECONCILIATION, CheckoutState
from storefront.services.checkout_service import CheckoutService

logger = logging.getLogger("reconcile_checkouts")


def list_attempts(service: CheckoutService) -> None:
    attempts = service.pending_reconciliation()
    if not attempts:
        print("No checkout attempts need attention.")
        return
    for attempt in attempts:
        print(
            f"  #{attempt.id} user={attempt.user_id} state={attempt.state} "
            f"amount={attempt.amount} {attempt.currency} charge={attempt.charge_id or '-'}"
        )


def fix_charged(service: CheckoutService) -> int:
    failures = 0
    for attempt in service.pending_reconciliation():
        if CheckoutState(attempt.state) not in NEEDS_RECONCILIATION:
            continue
        try:
            order = service.reconcile(attempt.id)
        except ServiceError as exc:
            failures += 1
            logger.error("Attempt %s still unresolved: %s", attempt.id, exc.message)
            continue
        if order is None:
            print(f"  #{attempt.id} no longer needs reconciliation")
            continue
        print(f"  #{attempt.id} -> order {order.id}")
    return failures


def main() -> None:
    ap = argparse.ArgumentParser(description="Reconcile captured checkouts with orders")
    ap.add_argument("--fix", action="store_true", help="Record orders for every charged attempt")
    ap.add_argument("--attempt", type=int, help="Attempt whose charge outcome was unknown")
    ap.add_argument("--charge-id", help="Gateway charge id confirmed for --attempt")
    ap.add_argument("--amount", type=int, help="Captured amount in minor units (default: attempt amount)")
    ap.add_argument("--not-charged", action="store_true", help="Mark --attempt as never charged")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO)
    service = CheckoutService()

    if args.attempt is not None:
        if not args.charge_id and not args.not_charged:
            raise SystemExit("--attempt needs --charge-id or --not-charged")
        order = service.resolve_unknown(args.attempt, charge_id=args.charge_id, captured_amount=args.amount)
        print(f"OK: attempt {args.attempt} " + (f"recorded as order {order.id}" if order else "marked as not charged"))
        return
    if args.fix:
        if fix_charged(service):
            raise SystemExit(1)
        return
    list_attempts(service)


if __name__ == "__main__":
    try:
        main()
    except ServiceError as exc:  # pragma: no cover
        sys.stderr.write(f"Error: {exc.message}\n")
        raise SystemExit(1)
