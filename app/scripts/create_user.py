"""
Create an account (with its profile) without going through the HTTP API. Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD EMAIL FIRST_NAME LAST_NAME [--role admin|user]
Example:
  python -m app.scripts.create_user operator your-secure-password op@example.com Иван Иванов --role admin
"""
import argparse
import sys

from pydantic import ValidationError

from app.core.database import SessionLocal
from app.core.errors import UserAlreadyExistsError
from app.schemas.auth import SignupRequest
from app.services.auth import register_user
from app.services.bootstrap import seed_roles


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Userdesk account.")
    parser.add_argument("username", help="Username (3-20 chars)")
    parser.add_argument("password", help="Password (6-40 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("first_name", help="First name")
    parser.add_argument("last_name", help="Last name")
    parser.add_argument("--role", default="user", choices=["user", "admin"])
    args = parser.parse_args(argv)

    try:
        body = SignupRequest(
            username=args.username.strip(),
            password=args.password,
            email=args.email,
            first_name=args.first_name,
            last_name=args.last_name,
            role={args.role},
        )
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        seed_roles(db)
        user = register_user(
            db,
            username=body.username,
            email=body.email,
            password=body.password,
            first_name=body.first_name,
            last_name=body.last_name,
            requested_roles=body.role,
        )
        print(f"Created user '{user.username}' with roles {', '.join(sorted(user.role_names))}.")
        return 0
    except UserAlreadyExistsError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
