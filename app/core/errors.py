"""Domain errors raised by services and translated to HTTP responses by app.api.errors."""

from fastapi import status


class AppError(Exception):
    """Base error carrying a client-safe message and the HTTP status it maps to."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    # Extra response headers, e.g. WWW-Authenticate on 401.
    headers: dict[str, str] | None = None

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class UserNotFoundError(NotFoundError):
    """No user with the given username."""

    def __init__(self, username: str) -> None:
        self.username = username
        super().__init__(f"Пользователь не найден: {username}")


class ProfileNotFoundError(NotFoundError):
    """No profile row with the given id, or none bound to the given user."""

    @classmethod
    def for_id(cls, profile_id: int) -> "ProfileNotFoundError":
        return cls(f"Пользователь с ID {profile_id} не найден")

    @classmethod
    def for_username(cls, username: str) -> "ProfileNotFoundError":
        return cls(f"Детальная информация не найдена для пользователя: {username}")


class PhotoNotFoundError(NotFoundError):
    def __init__(self, profile_id: int) -> None:
        self.profile_id = profile_id
        super().__init__(f"Фотография для пользователя с ID {profile_id} не найдена")


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT


class UserAlreadyExistsError(ConflictError):
    """Username or email is already taken. `field` is 'username' or 'email'."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class BadCredentialsError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Ошибка: Не авторизован") -> None:
        super().__init__(message)


class NotAuthenticatedError(BadCredentialsError):
    """No usable bearer token on a protected route."""

    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Доступ запрещен") -> None:
        super().__init__(message)


class ValidationError(AppError):
    """Service-level validation failure; `errors` holds an optional field -> message map."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str = "Ошибка валидации данных",
        errors: dict[str, str] | None = None,
    ) -> None:
        self.errors = errors
        super().__init__(message)


class FileProcessingError(AppError):
    """The uploaded payload could not be read."""

    status_code = status.HTTP_400_BAD_REQUEST


class PayloadTooLargeError(AppError):
    status_code = status.HTTP_417_EXPECTATION_FAILED

    def __init__(self, message: str = "Превышен максимальный размер файла!") -> None:
        super().__init__(message)
