#!/usr/bin/env python3
"""
Create a console user and print its API key.
Run this script once to bootstrap the first admin.

Usage: python3 scripts/create_user.py <username> [role] [signup_method]
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from quota_console.constants import ROLE_ADMIN_USER, ROLE_COMMON_USER  # noqa: E402
from quota_console.database import Base, SessionLocal, engine  # noqa: E402
from quota_console.exceptions import ConsoleException  # noqa: E402
from quota_console.services.user_service import UserService  # noqa: E402

ROLES = {"user": ROLE_COMMON_USER, "admin": ROLE_ADMIN_USER}


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python3 create_user.py <username> [user|admin] [signup_method]")
        sys.exit(1)

    username = sys.argv[1]
    role_name = sys.argv[2] if len(sys.argv) > 2 else "user"
    signup_method = sys.argv[3] if len(sys.argv) > 3 else "password"

    if role_name not in ROLES:
        print(f"Error: unknown role '{role_name}', expected one of {', '.join(ROLES)}")
        sys.exit(1)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = UserService(db).create_user(username, signup_method=signup_method, role=ROLES[role_name])
    except ConsoleException as e:
        print(f"\n✗ Could not create user: {e}")
        sys.exit(1)
    finally:
        db.close()

    print(f"✓ Created {role_name} '{user.username}' in group '{user.group}'")
    print(f"API key: {user.access_token}")
