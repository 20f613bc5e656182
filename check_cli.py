#!/usr/bin/env python3
"""CLI tool for running gate checks"""

import argparse
import json
import logging
import sys
from datetime import date

from gatekeeper.database import SessionLocal, init_db
from gatekeeper.gate import GateController
from gatekeeper.resolver import RequestContext
from gatekeeper.config import get_config
from gatekeeper.utils.network_utils import reverse_hostname

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr),
    ],
)

logger = logging.getLogger(__name__)


def run_check(args):
    """Check an address as if it had just visited"""
    init_db()
    db = SessionLocal()

    try:
        context = RequestContext(
            remote_addr=args.ip,
            method="CLI",
            headers={"user-agent": "check_cli"},
        )
        lookup = (lambda _ip: args.hostname) if args.hostname else reverse_hostname

        controller = GateController(db, context, config=get_config(), hostname_lookup=lookup)
        result = controller.evaluate_only() if args.dry_run else controller.check()

        print(json.dumps(result.as_payload(), indent=2))

        if result.errors:
            logger.warning(f"Check finished with {len(result.errors)} error(s)")
            sys.exit(2)

    except Exception as e:
        logger.error(f"Check failed: {str(e)}", exc_info=True)
        sys.exit(1)
    finally:
        db.close()


def list_statistics(args):
    """List statistic rows for a day"""
    db = SessionLocal()

    try:
        from gatekeeper.models import Statistic
        from sqlalchemy import desc

        day = date.fromisoformat(args.date) if args.date else date.today()
        rows = (
            db.query(Statistic)
            .filter(Statistic.date == day)
            .order_by(desc(Statistic.visits + Statistic.visits_drops))
            .limit(args.limit)
            .all()
        )

        if not rows:
            print(f"No statistics for {day}")
            return

        print(f"\nStatistics for {day}:")
        print("=" * 90)
        print(f"{'IP Address':<40} {'Visits':<8} {'Drops':<8} {'Hostname':<30}")
        print("=" * 90)

        for row in rows:
            hostname = row.hostname or "N/A"
            print(f"{row.ip:<40} {row.visits:<8} {row.visits_drops:<8} {hostname:<30}")

        print("=" * 90 + "\n")

    finally:
        db.close()


def main():
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        description="Gatekeeper - inbound request gatekeeper CLI"
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Check command
    check_parser = subparsers.add_parser("check", help="Check an address against the block rules")
    check_parser.add_argument("--ip", "-i", required=True, help="Client address to check")
    check_parser.add_argument("--hostname", help="Use this hostname instead of a reverse DNS lookup")
    check_parser.add_argument("--dry-run", "-n", action="store_true", help="Evaluate only, do not record the visit")
    check_parser.set_defaults(func=run_check)

    # Statistics command
    stats_parser = subparsers.add_parser("stats", help="List visit statistics for a day")
    stats_parser.add_argument("--date", "-d", help="Day in YYYY-MM-DD format (default: today)")
    stats_parser.add_argument("--limit", "-l", type=int, default=20, help="Number of rows to show")
    stats_parser.set_defaults(func=list_statistics)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
