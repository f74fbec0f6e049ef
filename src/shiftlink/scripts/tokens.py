# src/shiftlink/scripts/tokens.py
"""Maintenance commands for registration tokens and admin access.

Run as ``python -m shiftlink.scripts.tokens <command>``:

- ``purge`` removes registration tokens that expired without being consumed
- ``admin-token RETAIL_ID`` prints a bearer token for the ``/api/mod`` endpoints
"""

from __future__ import annotations

import argparse
import sys

from sqlalchemy import delete
from sqlalchemy.orm import Session

from shiftlink.core.security import create_access_token
from shiftlink.db.session import SessionLocal
from shiftlink.db.time import utcnow
from shiftlink.models import RegistrationToken, Retail


def purge_expired_registrations(db: Session) -> int:
    """Delete expired, unconsumed registration tokens.

    Consumed tokens are kept so a replayed pairing link keeps answering
    ``srv_registration_consumed``.

    Returns:
        Number of deleted tokens
    """
    result = db.execute(
        delete(RegistrationToken)
        .where(
            RegistrationToken.consumed_at.is_(None),
            RegistrationToken.expires_at <= utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount or 0


def issue_admin_token(db: Session, retail_id: str) -> str:
    """Return an admin JWT scoped to ``retail_id``."""
    if db.get(Retail, retail_id) is None:
        raise LookupError(f"Unknown retail {retail_id}")
    return create_access_token(retail_id, {"scope": "mod"})


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="shiftlink-tokens", description=__doc__)
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("purge", help="Delete expired registration tokens")
    admin = commands.add_parser("admin-token", help="Print an admin bearer token")
    admin.add_argument("retail_id")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        if args.command == "purge":
            print(f"Purged {purge_expired_registrations(db)} expired registration tokens")
        else:
            try:
                print(issue_admin_token(db, args.retail_id))
            except LookupError as err:
                print(err, file=sys.stderr)
                return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
