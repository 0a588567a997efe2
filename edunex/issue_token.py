"""Print a bearer token for an existing EduNex user to stdout.

Usage:
    python -m edunex.issue_token student@example.edu
"""
import sys

from edunex.auth.jwt_handler import create_access_token
from edunex.database import SessionLocal
from edunex.models.user import User


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python -m edunex.issue_token <email>", file=sys.stderr)
        sys.exit(2)

    email = args[0].strip().lower()
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
    finally:
        db.close()

    if user is None:
        print(f"No user with email {email}", file=sys.stderr)
        sys.exit(1)

    print(create_access_token(user.email, role=user.role))


if __name__ == "__main__":
    main()
