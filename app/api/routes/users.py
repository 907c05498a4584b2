"""User and profile endpoints. Path ids are profile ids; /me routes act on the caller's own profile."""

from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Path, Response, UploadFile
from sqlalchemy.orm import Session

from app.api.routes.auth import require_admin, require_user_or_admin
from app.core.config import settings
from app.core.database import get_db
from app.core.errors import FileProcessingError, PayloadTooLargeError, ValidationError
from app.schemas.auth import Principal
from app.schemas.common import MessageResponse
from app.schemas.user import ProfileRequest, ProfileResponse, UserResponse
from app.services import photos, profiles

router = APIRouter()

EMPTY_FILE_MESSAGE = "Файл не выбран или он пустой"
PHOTO_UPLOADED_MESSAGE = "Фотография успешно загружена"
PHOTO_DELETED_MESSAGE = "Фотография успешно удалена"
USER_DELETED_MESSAGE = "Пользователь успешно удален"

# Profile ids are 32-bit serial keys; anything outside is rejected as a bad path.
ProfileId = Annotated[int, Path(ge=1, le=2**31 - 1)]

_ERRORS = {
    400: {"model": MessageResponse},
    401: {"model": MessageResponse},
    403: {"model": MessageResponse},
    404: {"model": MessageResponse},
}


def _read_upload(file: UploadFile | None) -> bytes:
    """Read the multipart `file` part, enforcing presence and MAX_UPLOAD_BYTES."""
    if file is None:
        raise ValidationError(EMPTY_FILE_MESSAGE)
    if file.size is not None and file.size > settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError()
    try:
        content = file.file.read()
    except OSError as e:
        raise FileProcessingError(f"Ошибка при загрузке файла: {e}") from e
    if not content:
        raise ValidationError(EMPTY_FILE_MESSAGE)
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise PayloadTooLargeError()
    return content


def _content_disposition(file_name: str | None) -> str:
    name = file_name or "photo"
    try:
        name.encode("latin-1")
    except UnicodeEncodeError:
        return f"attachment; filename*=UTF-8''{quote(name)}"
    return f'attachment; filename="{name}"'


@router.get("", response_model=list[UserResponse], responses=_ERRORS)
def list_users(
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> list[UserResponse]:
    """List all users with their profiles, ordered by user id (admin only)."""
    return profiles.list_users(db)


@router.get("/me", response_model=ProfileResponse, responses=_ERRORS)
def get_my_profile(
    principal: Annotated[Principal, Depends(require_user_or_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> ProfileResponse:
    return profiles.get_by_username(db, principal.username)


@router.post("/me", response_model=ProfileResponse, responses=_ERRORS)
def save_my_profile(
    body: ProfileRequest,
    principal: Annotated[Principal, Depends(require_user_or_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> ProfileResponse:
    """Create the caller's profile, or overwrite every attribute of the existing one."""
    return profiles.create_or_update_by_username(db, principal.username, body)


@router.post(
    "/me/photo",
    response_model=MessageResponse,
    responses={**_ERRORS, 417: {"model": MessageResponse}},
)
def upload_my_photo(
    principal: Annotated[Principal, Depends(require_user_or_admin)],
    db: Annotated[Session, Depends(get_db)],
    file: Annotated[UploadFile | None, File()] = None,
) -> MessageResponse:
    """Upload (or replace) the caller's photo. Multipart field name: `file`."""
    me = profiles.get_by_username(db, principal.username)
    content = _read_upload(file)
    photos.upload_photo(
        db,
        me.id,
        data=content,
        file_name=file.filename,
        file_type=file.content_type,
    )
    return MessageResponse(message=PHOTO_UPLOADED_MESSAGE)


@router.delete("/me/photo", response_model=MessageResponse, responses=_ERRORS)
def delete_my_photo(
    principal: Annotated[Principal, Depends(require_user_or_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    me = profiles.get_by_username(db, principal.username)
    photos.delete_photo(db, me.id)
    return MessageResponse(message=PHOTO_DELETED_MESSAGE)


@router.get("/{profile_id}", response_model=ProfileResponse, responses=_ERRORS)
def get_profile(
    profile_id: ProfileId,
    _principal: Annotated[Principal, Depends(require_user_or_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> ProfileResponse:
    return profiles.get_by_profile_id(db, profile_id)


@router.put("/{profile_id}", response_model=ProfileResponse, responses=_ERRORS)
def update_profile(
    profile_id: ProfileId,
    body: ProfileRequest,
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> ProfileResponse:
    return profiles.update_by_profile_id(db, profile_id, body)


@router.delete("/{profile_id}", response_model=MessageResponse, responses=_ERRORS)
def delete_profile(
    profile_id: ProfileId,
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete a profile together with its photo (admin only)."""
    profiles.delete_by_profile_id(db, profile_id)
    return MessageResponse(message=USER_DELETED_MESSAGE)


@router.get(
    "/{profile_id}/photo",
    response_class=Response,
    responses={200: {"content": {"image/*": {}}}, **_ERRORS},
)
def get_profile_photo(
    profile_id: ProfileId,
    _principal: Annotated[Principal, Depends(require_user_or_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Return the stored photo bytes with their original content type and file name."""
    photo = photos.get_photo(db, profile_id)
    return Response(
        content=photo.data,
        media_type=photo.file_type or "application/octet-stream",
        headers={"Content-Disposition": _content_disposition(photo.file_name)},
    )


@router.post(
    "/{profile_id}/photo",
    response_model=MessageResponse,
    responses={**_ERRORS, 417: {"model": MessageResponse}},
)
def upload_profile_photo(
    profile_id: ProfileId,
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    file: Annotated[UploadFile | None, File()] = None,
) -> MessageResponse:
    content = _read_upload(file)
    photos.upload_photo(
        db,
        profile_id,
        data=content,
        file_name=file.filename,
        file_type=file.content_type,
    )
    return MessageResponse(message=PHOTO_UPLOADED_MESSAGE)


@router.delete("/{profile_id}/photo", response_model=MessageResponse, responses=_ERRORS)
def delete_profile_photo(
    profile_id: ProfileId,
    _admin: Annotated[Principal, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    photos.delete_photo(db, profile_id)
    return MessageResponse(message=PHOTO_DELETED_MESSAGE)
