"""Create a user and print a bearer token for local development.

    python -m timesheet.scripts.create_user "Jane Doe" jane@company.com Developer
"""

import sys

from timesheet.database.base import Base
from timesheet.database.session import SessionLocal, engine
from timesheet.models.user import User
from timesheet.core.security import create_access_token


def create_user(db, name: str, email: str, role: str) -> User:
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        return existing

    user = User(name=name, email=email, role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 3:
        print("usage: create_user NAME EMAIL ROLE")
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = create_user(db, *argv)
        token = create_access_token({"sub": str(user.id)}, expires_minutes=24 * 60)
    finally:
        db.close()

    print(f"User {user.id} ({user.role})")
    print(f"Bearer {token}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
