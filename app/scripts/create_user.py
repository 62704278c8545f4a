"""
Create a dashboard account. Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD [--admin]
Example:
  python -m app.scripts.create_user alice your-secure-password --admin
"""
import argparse
import sys

from app.core.config import ADMIN_PASSWORD_MAX_LEN, ADMIN_PASSWORD_MIN_LEN, get_settings
from app.core.security import USERNAME_MAX_LEN, hash_password
from app.services.record_store import ConflictError, StorageError, open_record_store


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Poppy Bot Admin dashboard account.")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars)")
    parser.add_argument(
        "password", help=f"Password ({ADMIN_PASSWORD_MIN_LEN}-{ADMIN_PASSWORD_MAX_LEN} chars)"
    )
    parser.add_argument("--admin", action="store_true", help="Grant administrator access")
    parser.add_argument("--data-dir", default=None, help="Override DATA_DIR")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not ADMIN_PASSWORD_MIN_LEN <= len(args.password) <= ADMIN_PASSWORD_MAX_LEN:
        print(
            f"Password must be {ADMIN_PASSWORD_MIN_LEN}-{ADMIN_PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    store = open_record_store(args.data_dir or get_settings().DATA_DIR)
    if store.accounts.get_by_username(username) is not None:
        print(f"User '{username}' already exists.", file=sys.stderr)
        return 1
    try:
        account = store.accounts.create(
            {
                "username": username,
                "password": hash_password(args.password),
                "isAdmin": args.admin,
            }
        )
    except ConflictError:
        print(f"User '{username}' already exists.", file=sys.stderr)
        return 1
    except StorageError as e:
        print(f"Could not save user: {e.message}", file=sys.stderr)
        return 1
    role = "admin" if account.is_admin else "user"
    print(f"Created user '{username}' (id {account.id}) with role '{role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
