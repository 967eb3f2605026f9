from typing import Any, Optional
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from planelog.core.errors import ConflictError
from planelog.models.plane import PlaneRecord
from planelog.models.user import User


class CredentialStore:
    """Users keyed by email, over a request-scoped session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def insert(self, user: User) -> User:
        """Insert a new user; a duplicate email raises ConflictError"""
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Unique constraint on email - the store decides, not a prior check
            self.db.rollback()
            raise ConflictError()
        self.db.refresh(user)
        return user

    def update_fields(self, email: str, **fields: Any) -> bool:
        """Partial update. Returns False when no user has this email."""
        result = self.db.execute(
            update(User).where(User.email == email).values(**fields)
        )
        self.db.commit()
        return result.rowcount > 0

    def increment_plane_count(self, email: str) -> bool:
        # Single UPDATE so concurrent increments never lose a write
        return self.update_fields(email, number_of_planes=User.number_of_planes + 1)

    def delete(self, email: str) -> bool:
        deleted = self.db.query(User).filter(User.email == email).delete()
        self.db.commit()
        return deleted > 0

    def recount_planes(self) -> int:
        """
        Recompute every user's number_of_planes from the planes table.
        Returns the number of users whose counter changed.
        """
        counts = dict(
            self.db.execute(
                select(PlaneRecord.owner_email, func.count(PlaneRecord.id))
                .group_by(PlaneRecord.owner_email)
            ).all()
        )
        changed = 0
        for user in self.db.query(User).all():
            actual = counts.get(user.email, 0)
            if user.number_of_planes != actual:
                user.number_of_planes = actual
                changed += 1
        self.db.commit()
        return changed
