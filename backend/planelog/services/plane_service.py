import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from planelog.core.errors import NotFound, ValidationError
from planelog.models.plane import PlaneRecord
from planelog.models.user import User
from planelog.services.credential_store import CredentialStore
from planelog.storage.local_storage import storage

logger = logging.getLogger(__name__)

UNKNOWN_USERNAME = "Unknown"
REQUIRED_PLANE_FIELDS = ("airport", "plane_model", "airline", "registration")


def _parse_date(value: Optional[str], field: str, default: datetime) -> datetime:
    """Parse an ISO-8601 date; empty values fall back to default"""
    if isinstance(value, datetime):
        return value
    if value is None or not str(value).strip():
        return default
    text = str(value).strip()
    # JS clients send toISOString() values ending in Z, which fromisoformat
    # only understands from Python 3.11 on
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid date for {field}")
    # Dates without an offset are taken as UTC, like the default "now"
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class PlaneService:
    @staticmethod
    def validate_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Check required fields and parse dates.

        Returns cleaned values ready for a PlaneRecord; missing dates default to now.
        """
        missing = [name for name in REQUIRED_PLANE_FIELDS
                   if not str(fields.get(name) or "").strip()]
        if missing:
            raise ValidationError(
                "Airport, plane model, airline and registration are required")

        now = datetime.now(timezone.utc)
        cleaned = {name: str(fields[name]).strip() for name in REQUIRED_PLANE_FIELDS}
        cleaned["arrival_date"] = _parse_date(fields.get("arrival_date"), "arrivalDate", now)
        cleaned["departure_date"] = _parse_date(fields.get("departure_date"), "departureDate", now)
        return cleaned

    @staticmethod
    def add_plane_record(
        db: Session,
        owner_email: str,
        fields: Dict[str, Any],
        image_path: str = ""
    ) -> int:
        """Insert a plane record and bump the owner's counter. Returns the record id."""
        store = CredentialStore(db)
        # Tokens outlive deleted accounts, so the owner must still exist
        if store.find_by_email(owner_email) is None:
            raise NotFound("User not found")

        record = PlaneRecord(
            **PlaneService.validate_fields(fields),
            plane_image=image_path or "",
            owner_email=owner_email,
        )
        db.add(record)
        db.commit()
        db.refresh(record)

        # Second, independent write - the counter is a display hint and the
        # scheduler's recount repairs any drift
        store.increment_plane_count(owner_email)
        logger.info(f"Plane record {record.id} added by {owner_email} at {record.airport}")
        return record.id

    @staticmethod
    def list_plane_records(
        db: Session,
        airport: str,
        airline: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Records for an airport (and optionally airline), newest first.

        Matching is case-insensitive and exact. Each record carries the owner's
        username, or "Unknown" when the owner no longer exists.
        """
        query = db.query(PlaneRecord).filter(
            func.lower(PlaneRecord.airport) == airport.lower())
        if airline:
            query = query.filter(func.lower(PlaneRecord.airline) == airline.lower())
        records = query.order_by(PlaneRecord.created_at.desc(), PlaneRecord.id.desc()).all()
        if not records:
            return []

        owner_emails = {record.owner_email for record in records}
        usernames = dict(
            db.query(User.email, User.username)
            .filter(User.email.in_(owner_emails))
            .all()
        )

        return [
            {
                "id": record.id,
                "airport": record.airport,
                "airline": record.airline,
                "plane_model": record.plane_model,
                "registration": record.registration,
                "arrival_date": record.arrival_date,
                "departure_date": record.departure_date,
                "plane_image": record.plane_image,
                "owner_email": record.owner_email,
                "created_at": record.created_at,
                "username": usernames.get(record.owner_email, UNKNOWN_USERNAME),
            }
            for record in records
        ]

    @staticmethod
    def list_airlines(db: Session, airport: str) -> List[str]:
        """Distinct airline names seen at an airport, sorted"""
        rows = (
            db.query(PlaneRecord.airline)
            .filter(func.lower(PlaneRecord.airport) == airport.lower())
            .distinct()
            .all()
        )
        return sorted(airline for (airline,) in rows)

    @staticmethod
    def delete_account(db: Session, owner_email: str) -> None:
        """
        Delete the owner's plane records, then the user.

        Two separate commits: an interruption leaves either an empty user or
        user-less records, both acceptable.
        """
        store = CredentialStore(db)
        user = store.find_by_email(owner_email)
        image_paths = [
            path for (path,) in db.query(PlaneRecord.plane_image)
            .filter(PlaneRecord.owner_email == owner_email).all()
            if path
        ]
        if user is not None and user.profile_image:
            image_paths.append(user.profile_image)

        deleted = db.query(PlaneRecord).filter(
            PlaneRecord.owner_email == owner_email).delete()
        db.commit()
        store.delete(owner_email)

        for path in image_paths:
            storage.delete_file(path)
        logger.info(f"Deleted account {owner_email} and {deleted} plane record(s)")


plane_service = PlaneService()
