from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import User


def get_user_by_clerk_id(db: Session, clerk_id: str) -> User | None:
    return db.execute(select(User).where(User.clerk_id == clerk_id)).scalars().first()


def sync_user(db: Session, *, clerk_id: str, email: str, name: str, image: str | None) -> User:
    """Create the account for a Clerk user; redelivered events return the existing row."""
    user = get_user_by_clerk_id(db, clerk_id)
    if user:
        return user
    user = User(clerk_id=clerk_id, email=email, name=name, image=image)
    db.add(user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user


def update_user(db: Session, *, clerk_id: str, email: str, name: str, image: str | None) -> User | None:
    user = get_user_by_clerk_id(db, clerk_id)
    if not user:
        return None
    user.email = email
    user.name = name
    user.image = image
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user
