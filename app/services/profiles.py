"""Profile reads and writes: lookup by profile id or username, upsert for the owner, admin update/delete."""

import logging

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ProfileNotFoundError, UserNotFoundError
from app.models import Photo, Profile, User
from app.schemas.user import ProfileRequest, ProfileResponse, UserResponse

logger = logging.getLogger(__name__)

PHOTO_URL_TEMPLATE = "/api/users/{profile_id}/photo"


def photo_url(profile_id: int) -> str:
    return PHOTO_URL_TEMPLATE.format(profile_id=profile_id)


def _has_photo(db: Session, profile_id: int) -> bool:
    return db.query(Photo.id).filter(Photo.profile_id == profile_id).first() is not None


def to_profile_response(profile: Profile, has_photo: bool) -> ProfileResponse:
    """Build the wire DTO; email comes from the linked user, photoUrl only when a photo exists."""
    return ProfileResponse(
        id=profile.id,
        last_name=profile.last_name,
        first_name=profile.first_name,
        middle_name=profile.middle_name,
        birth_date=profile.birth_date,
        email=profile.user.email if profile.user is not None else None,
        phone_number=profile.phone_number,
        has_photo=has_photo,
        photo_url=photo_url(profile.id) if has_photo else None,
    )


def _apply_request(profile: Profile, req: ProfileRequest) -> None:
    """Copy every request attribute onto the profile; absent optionals clear the column."""
    profile.last_name = req.last_name
    profile.first_name = req.first_name
    profile.middle_name = req.middle_name
    profile.birth_date = req.birth_date
    profile.phone_number = req.phone_number


def _get_profile(db: Session, profile_id: int) -> Profile:
    profile = db.get(Profile, profile_id)
    if profile is None:
        logger.error("Profile with id %s not found", profile_id)
        raise ProfileNotFoundError.for_id(profile_id)
    return profile


def _get_user(db: Session, username: str) -> User:
    user = db.query(User).filter(User.username == username).first()
    if user is None:
        logger.error("User %s not found", username)
        raise UserNotFoundError(username)
    return user


def list_users(db: Session) -> list[UserResponse]:
    """All users ordered by id, each with its profile (or None)."""
    logger.info("Listing all users")
    users = db.query(User).order_by(User.id).all()
    profiles = {
        p.user_id: p
        for p in db.query(Profile).filter(Profile.user_id.in_([u.id for u in users])).all()
    }
    with_photo = {
        pid for (pid,) in db.query(Photo.profile_id).filter(
            Photo.profile_id.in_([p.id for p in profiles.values()])
        )
    }
    result: list[UserResponse] = []
    for user in users:
        profile = profiles.get(user.id)
        details = (
            to_profile_response(profile, profile.id in with_photo)
            if profile is not None
            else None
        )
        result.append(
            UserResponse(
                id=user.id,
                username=user.username,
                email=user.email,
                user_details=details,
            )
        )
    return result


def get_by_profile_id(db: Session, profile_id: int) -> ProfileResponse:
    logger.info("Fetching profile %s", profile_id)
    profile = _get_profile(db, profile_id)
    return to_profile_response(profile, _has_photo(db, profile.id))


def get_by_username(db: Session, username: str) -> ProfileResponse:
    """Resolve the user, then its profile; either miss is a not-found."""
    logger.info("Fetching profile of user %s", username)
    user = _get_user(db, username)
    profile = db.query(Profile).filter(Profile.user_id == user.id).first()
    if profile is None:
        logger.error("No profile for user %s", username)
        raise ProfileNotFoundError.for_username(username)
    return to_profile_response(profile, _has_photo(db, profile.id))


def create_or_update_by_username(
    db: Session, username: str, req: ProfileRequest
) -> ProfileResponse:
    """
    Upsert the profile owned by username and return it.

    The same request applied twice leaves the same row and yields the same response.
    """
    logger.info("Creating or updating profile of user %s", username)
    user = _get_user(db, username)
    profile = db.query(Profile).filter(Profile.user_id == user.id).first()
    if profile is None:
        profile = Profile(user_id=user.id)
        db.add(profile)
    _apply_request(profile, req)
    db.commit()
    db.refresh(profile)
    logger.info("Profile of user %s saved (id=%s)", username, profile.id)
    return to_profile_response(profile, _has_photo(db, profile.id))


def update_by_profile_id(
    db: Session, profile_id: int, req: ProfileRequest
) -> ProfileResponse:
    logger.info("Updating profile %s", profile_id)
    profile = _get_profile(db, profile_id)
    if profile.user_id is None:
        logger.error("Profile %s has no linked user", profile_id)
        raise NotFoundError(
            f"Для пользователя с ID {profile_id} не найдена основная информация"
        )
    _apply_request(profile, req)
    db.commit()
    db.refresh(profile)
    logger.info("Profile %s updated", profile_id)
    return to_profile_response(profile, _has_photo(db, profile.id))


def delete_by_profile_id(db: Session, profile_id: int) -> None:
    """Delete the profile; the schema removes its photo with it."""
    logger.info("Deleting profile %s", profile_id)
    profile = _get_profile(db, profile_id)
    db.delete(profile)
    db.commit()
    logger.info("Profile %s deleted", profile_id)
