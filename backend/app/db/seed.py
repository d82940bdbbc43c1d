# backend/app/db/seed.py

"""
Database Seeding Script

Admin commands for the single-consultant login.

    python -m app.db.seed seed-user      # SEED_USERNAME / SEED_PASSWORD
    python -m app.db.seed set-password   # UPDATE_USERNAME / NEW_PASSWORD
"""

import argparse
import os
import sys
from typing import Optional

from sqlalchemy.orm import Session

from app.core.logger import logger
from app.core.security import get_password_hash
from app.db.database import SessionLocal, init_db
from app.db.models import User


def _require_env(*names: str) -> list:
    values = [os.environ.get(name, "").strip() for name in names]
    missing = [name for name, value in zip(names, values) if not value]
    if missing:
        raise SystemExit(f"Missing environment variables: {', '.join(missing)}")
    return values


def seed_user(db: Session, username: str, password: str) -> Optional[User]:
    """Create the user unless the username is taken. Returns the new user or None."""
    existing = db.query(User).filter(User.username == username).first()
    if existing:
        logger.info("User already exists: %s", username)
        return None

    user = User(username=username, password_hash=get_password_hash(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user: %s", username)
    return user


def set_password(db: Session, username: str, new_password: str) -> bool:
    user = db.query(User).filter(User.username == username).first()
    if not user:
        logger.error("User not found: %s", username)
        return False

    user.password_hash = get_password_hash(new_password)
    db.commit()
    logger.info("Password updated for: %s", username)
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="python -m app.db.seed")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("seed-user", help="Create SEED_USERNAME with SEED_PASSWORD")
    sub.add_parser("set-password", help="Set NEW_PASSWORD for UPDATE_USERNAME")
    args = parser.parse_args(argv)

    init_db()
    db = SessionLocal()
    try:
        if args.command == "seed-user":
            username, password = _require_env("SEED_USERNAME", "SEED_PASSWORD")
            seed_user(db, username, password)
            return 0

        username, password = _require_env("UPDATE_USERNAME", "NEW_PASSWORD")
        return 0 if set_password(db, username, password) else 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
