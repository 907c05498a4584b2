"""Photo slot of a profile: fetch, upsert keyed by profile id, idempotent delete."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.core.errors import PhotoNotFoundError, ProfileNotFoundError
from app.models import Photo, Profile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhotoContent:
    """Bytes and metadata needed to serve a stored photo."""

    data: bytes
    file_name: str | None
    file_type: str | None


def _ensure_profile(db: Session, profile_id: int) -> None:
    if db.query(Profile.id).filter(Profile.id == profile_id).first() is None:
        logger.error("Profile with id %s not found", profile_id)
        raise ProfileNotFoundError.for_id(profile_id)


def _find_photo(db: Session, profile_id: int) -> Photo | None:
    return db.query(Photo).filter(Photo.profile_id == profile_id).first()


def get_photo(db: Session, profile_id: int) -> PhotoContent:
    logger.info("Fetching photo of profile %s", profile_id)
    _ensure_profile(db, profile_id)
    photo = _find_photo(db, profile_id)
    if photo is None:
        logger.error("Photo of profile %s not found", profile_id)
        raise PhotoNotFoundError(profile_id)
    return PhotoContent(data=photo.data, file_name=photo.file_name, file_type=photo.file_type)


def _insert_for(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"Photo upsert is not supported on dialect {dialect!r}")


def upload_photo(
    db: Session,
    profile_id: int,
    *,
    data: bytes,
    file_name: str | None,
    file_type: str | None,
    now: datetime | None = None,
) -> Photo:
    """
    Store data as the profile's photo, replacing any existing one in place.

    Runs as a single INSERT .. ON CONFLICT (user_details_id) DO UPDATE so a replaced
    photo keeps its row id and concurrent uploads never produce two rows.
    """
    logger.info("Uploading photo for profile %s", profile_id)
    _ensure_profile(db, profile_id)

    table = Photo.__table__
    values = {
        "user_details_id": profile_id,
        "data": data,
        "file_name": file_name,
        "file_type": file_type,
        "file_size": len(data),
        "upload_date": now or datetime.now(UTC),
    }
    insert = _insert_for(db)
    stmt = insert(table).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.user_details_id],
        set_={
            key: stmt.excluded[key]
            for key in ("data", "file_name", "file_type", "file_size", "upload_date")
        },
    )
    db.execute(stmt)
    db.commit()

    photo = _find_photo(db, profile_id)
    logger.info(
        "Photo for profile %s saved: id=%s file_name=%s file_type=%s file_size=%s",
        profile_id,
        photo.id,
        file_name,
        file_type,
        len(data),
    )
    return photo


def delete_photo(db: Session, profile_id: int) -> bool:
    """Remove the profile's photo. Returns False (and succeeds) when there was none."""
    logger.info("Deleting photo of profile %s", profile_id)
    _ensure_profile(db, profile_id)
    photo = _find_photo(db, profile_id)
    if photo is None:
        logger.warning("Photo of profile %s not found; nothing to delete", profile_id)
        return False
    db.delete(photo)
    db.commit()
    logger.info("Photo of profile %s deleted", profile_id)
    return True
