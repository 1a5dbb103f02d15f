"""
Create a user (e.g. first admin). Run from project root:
  python -m tasktrack.scripts.create_user USERNAME EMAIL PASSWORD [--admin] [--editor]
Example:
  python -m tasktrack.scripts.create_user admin admin@example.org your-secure-password --admin
"""
import argparse
import logging
import sys
import uuid

from tasktrack.core.config import get_settings
from tasktrack.core.database import SessionLocal
from tasktrack.core.security import hash_password
from tasktrack.models import User
from tasktrack.models.user import DEFAULT_ROLES, ROLE_ADMIN, ROLE_EDITOR
from tasktrack.services.credential_store import CredentialStore, DuplicateUserError
from tasktrack.services.session_manager import is_valid_email

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def build_roles(admin: bool, editor: bool) -> dict[str, int]:
    roles = dict(DEFAULT_ROLES)
    if editor:
        roles["Editor"] = ROLE_EDITOR
    if admin:
        roles["Admin"] = ROLE_ADMIN
    return roles


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Tasktrack user (bypasses /register).")
    parser.add_argument("username", help="Username")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password")
    parser.add_argument("--admin", action="store_true", help="Grant the Admin role")
    parser.add_argument("--editor", action="store_true", help="Grant the Editor role")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username:
        print("Username is required.", file=sys.stderr)
        return 1
    if not is_valid_email(args.email):
        print("Invalid email format.", file=sys.stderr)
        return 1
    if not args.password:
        print("Password is required.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = User(
            user_id=str(uuid.uuid4()),
            username=username,
            email=args.email,
            password_hash=hash_password(args.password, rounds=get_settings().BCRYPT_ROUNDS),
            roles=build_roles(args.admin, args.editor),
        )
        try:
            CredentialStore(db).create(user)
        except DuplicateUserError as e:
            print(e.message, file=sys.stderr)
            return 1
        logger.info("Created user %s with roles %s", username, ", ".join(user.roles))
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
