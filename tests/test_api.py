"""End-to-end tests through the FastAPI app: auth flow, role matrix, profile and photo routes."""

import asyncio
import inspect
import json
import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from sqlalchemy import delete

from app.api.errors import app_error_handler
from app.core.config import settings
from app.core.database import SessionLocal
from app.core.errors import NotAuthenticatedError, ValidationError
from app.core.security import TokenCodec
from app.models import User
from tests.support import ApiTestCase


class TestSignupSignin(ApiTestCase):
    def test_signup_then_signin(self) -> None:
        resp = self.signup("testuser", "test@example.com", role=["user"])
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json(), {"message": "Пользователь успешно зарегистрирован!"})

        resp = self.client.post(
            "/api/auth/signin", json={"username": "testuser", "password": "password"}
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertIsNotNone(body["token"])
        self.assertEqual(body["type"], "Bearer")
        self.assertEqual(body["username"], "testuser")
        self.assertEqual(body["email"], "test@example.com")
        self.assertEqual(body["roles"], ["ROLE_USER"])

    def test_duplicate_username(self) -> None:
        self.signup("testuser", "test@example.com")
        resp = self.signup("testuser", "other@example.com")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"message": "Ошибка: Имя пользователя уже занято!"})

    def test_duplicate_email(self) -> None:
        self.signup("testuser", "test@example.com")
        resp = self.signup("another", "test@example.com")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"message": "Ошибка: Email уже используется!"})

    def test_signup_as_admin(self) -> None:
        self.signup("boss", "boss@example.com", role=["admin"])
        resp = self.client.post("/api/auth/signin", json={"username": "boss", "password": "password"})
        self.assertEqual(resp.json()["roles"], ["ROLE_ADMIN"])

    def test_signup_validation_is_field_keyed(self) -> None:
        resp = self.client.post(
            "/api/auth/signup",
            json={"username": "ab", "password": "123", "email": "bad", "firstName": " ", "lastName": "t"},
        )
        self.assertEqual(resp.status_code, 400)
        body = resp.json()
        for field in ("username", "password", "email", "firstName"):
            self.assertIn(field, body)
        self.assertNotIn("lastName", body)

    def test_wrong_password(self) -> None:
        self.signup("testuser", "test@example.com")
        resp = self.client.post("/api/auth/signin", json={"username": "testuser", "password": "nope"})
        self.assertEqual(resp.status_code, 401)
        self.assertIn("message", resp.json())
        self.assertNotIn("token", resp.json())

    def test_unknown_user_signin(self) -> None:
        resp = self.client.post("/api/auth/signin", json={"username": "ghost", "password": "password"})
        self.assertEqual(resp.status_code, 401)

    def test_uniqueness_clash_at_commit_is_conflict(self) -> None:
        self.signup("testuser", "test@example.com")
        # Both pre-flight checks miss, as when two signups race; the unique index decides.
        with patch("app.api.routes.auth.username_taken", return_value=False), patch(
            "app.api.routes.auth.email_taken", return_value=False
        ), patch("app.services.auth.username_taken", return_value=False), patch(
            "app.services.auth.email_taken", return_value=False
        ):
            resp = self.signup("testuser", "other@example.com")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(
            resp.json(), {"message": "Пользователь с таким именем или email уже существует"}
        )
        # The losing signup left nothing behind.
        users = self.client.get("/api/users", headers=self.admin_headers()).json()
        self.assertEqual([u["username"] for u in users].count("testuser"), 1)


class TestAuthorization(ApiTestCase):
    def test_admin_lists_users(self) -> None:
        resp = self.client.get("/api/users", headers=self.admin_headers())
        self.assertEqual(resp.status_code, 200, resp.text)
        entries = resp.json()
        admin = next(e for e in entries if e["username"] == "admin")
        self.assertEqual(admin["email"], "admin@example.com")
        self.assertEqual(admin["userDetails"]["firstName"], "Админ")
        self.assertNotIn("passwordHash", admin)
        self.assertNotIn("password_hash", admin)

    def test_user_cannot_list_users(self) -> None:
        resp = self.client.get("/api/users", headers=self.user_headers())
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json(), {"message": "Доступ запрещен"})

    def test_missing_token(self) -> None:
        resp = self.client.get("/api/users/me")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"message": "Ошибка: Не авторизован"})
        self.assertEqual(resp.headers["WWW-Authenticate"], "Bearer")

    def test_expired_token(self) -> None:
        codec = TokenCodec(settings.JWT_SECRET.get_secret_value(), settings.JWT_EXPIRATION_MS)
        issued = datetime.now(UTC) - timedelta(milliseconds=settings.JWT_EXPIRATION_MS) - timedelta(minutes=1)
        token = codec.issue("admin", now=issued)
        resp = self.client.get("/api/users", headers=self.auth(token))
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.headers["WWW-Authenticate"], "Bearer")

    def test_token_of_deleted_user(self) -> None:
        headers = self.user_headers()
        self.assertEqual(self.client.get("/api/users/me", headers=headers).status_code, 200)
        db = SessionLocal()
        try:
            db.execute(delete(User).where(User.username == "testuser"))
            db.commit()
        finally:
            db.close()
        # The signature still checks out, but nobody answers to the subject any more.
        resp = self.client.get("/api/users/me", headers=headers)
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"message": "Ошибка: Не авторизован"})

    def test_garbage_token(self) -> None:
        resp = self.client.get("/api/users/me", headers=self.auth("not.a.token"))
        self.assertEqual(resp.status_code, 401)

    def test_non_bearer_scheme(self) -> None:
        resp = self.client.get("/api/users/me", headers={"Authorization": "Basic YWRtaW46YWRtaW4="})
        self.assertEqual(resp.status_code, 401)

    def test_token_after_profile_deleted(self) -> None:
        headers = self.user_headers()
        admin = self.admin_headers()
        me = self.client.get("/api/users/me", headers=headers).json()
        self.client.delete(f"/api/users/{me['id']}", headers=admin)
        # The profile is gone but the account still exists, so the token resolves to a 404.
        self.assertEqual(self.client.get("/api/users/me", headers=headers).status_code, 404)

    def test_user_only_routes_matrix(self) -> None:
        user = self.user_headers()
        me_id = self.client.get("/api/users/me", headers=user).json()["id"]
        forbidden = [
            ("put", f"/api/users/{me_id}"),
            ("delete", f"/api/users/{me_id}"),
            ("post", f"/api/users/{me_id}/photo"),
            ("delete", f"/api/users/{me_id}/photo"),
            ("get", "/api/users"),
        ]
        for method, path in forbidden:
            with self.subTest(method=method, path=path):
                kwargs = {"json": {"firstName": "a", "lastName": "b"}} if method == "put" else {}
                resp = getattr(self.client, method)(path, headers=user, **kwargs)
                self.assertEqual(resp.status_code, 403)

        allowed = [
            ("get", f"/api/users/{me_id}"),
            ("get", "/api/users/me"),
            ("delete", "/api/users/me/photo"),
        ]
        for method, path in allowed:
            with self.subTest(method=method, path=path):
                resp = getattr(self.client, method)(path, headers=user)
                self.assertEqual(resp.status_code, 200, resp.text)

    def test_public_routes(self) -> None:
        self.assertEqual(self.client.get("/api/health").status_code, 200)
        self.assertEqual(self.client.get("/v3/api-docs").status_code, 200)
        self.assertEqual(self.client.get("/swagger-ui").status_code, 200)


class TestCurrentUser(ApiTestCase):
    PAYLOAD = {
        "firstName": "Updated",
        "lastName": "User",
        "middleName": "Test",
        "birthDate": "1995-05-15",
        "phoneNumber": "+7 (999) 987-65-43",
    }

    def test_upsert_echoes_fields(self) -> None:
        headers = self.user_headers()
        resp = self.client.post("/api/users/me", headers=headers, json=self.PAYLOAD)
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        for key, value in self.PAYLOAD.items():
            self.assertEqual(body[key], value)
        self.assertEqual(body["email"], "test@example.com")
        self.assertFalse(body["hasPhoto"])
        self.assertIsNone(body["photoUrl"])

    def test_upsert_twice_is_stable(self) -> None:
        headers = self.user_headers()
        first = self.client.post("/api/users/me", headers=headers, json=self.PAYLOAD).json()
        second = self.client.post("/api/users/me", headers=headers, json=self.PAYLOAD).json()
        self.assertEqual(first, second)

    def test_invalid_profile_body(self) -> None:
        headers = self.user_headers()
        resp = self.client.post(
            "/api/users/me",
            headers=headers,
            json={"firstName": "", "lastName": "x" * 51, "birthDate": "15.05.1995"},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(set(resp.json()), {"firstName", "lastName", "birthDate"})

    def test_photo_upload_and_fetch(self) -> None:
        headers = self.user_headers()
        me = self.client.post("/api/users/me", headers=headers, json=self.PAYLOAD).json()

        resp = self.client.post(
            "/api/users/me/photo",
            headers=headers,
            files={"file": ("test.jpg", b"test image content", "image/jpeg")},
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json(), {"message": "Фотография успешно загружена"})

        resp = self.client.get(f"/api/users/{me['id']}/photo", headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.content, b"test image content")
        self.assertEqual(resp.headers["content-type"], "image/jpeg")
        self.assertEqual(resp.headers["content-disposition"], 'attachment; filename="test.jpg"')

        profile = self.client.get("/api/users/me", headers=headers).json()
        self.assertTrue(profile["hasPhoto"])
        self.assertEqual(profile["photoUrl"], f"/api/users/{me['id']}/photo")

    def test_photo_delete(self) -> None:
        headers = self.user_headers()
        me = self.client.get("/api/users/me", headers=headers).json()
        self.client.post(
            "/api/users/me/photo",
            headers=headers,
            files={"file": ("test.jpg", b"bytes", "image/jpeg")},
        )
        resp = self.client.delete("/api/users/me/photo", headers=headers)
        self.assertEqual(resp.json(), {"message": "Фотография успешно удалена"})
        resp = self.client.get(f"/api/users/{me['id']}/photo", headers=headers)
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(
            resp.json(),
            {"message": f"Фотография для пользователя с ID {me['id']} не найдена"},
        )

    def test_empty_upload(self) -> None:
        headers = self.user_headers()
        resp = self.client.post(
            "/api/users/me/photo",
            headers=headers,
            files={"file": ("empty.jpg", b"", "image/jpeg")},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"message": "Файл не выбран или он пустой"})

    def test_oversize_upload(self) -> None:
        headers = self.user_headers()
        resp = self.client.post(
            "/api/users/me/photo",
            headers=headers,
            files={"file": ("big.jpg", b"x" * 2048, "image/jpeg")},
        )
        self.assertEqual(resp.status_code, 417)
        self.assertEqual(resp.json(), {"message": "Превышен максимальный размер файла!"})


class TestAdminById(ApiTestCase):
    def test_update_then_delete(self) -> None:
        self.user_headers()
        admin = self.admin_headers()
        users = self.client.get("/api/users", headers=admin).json()
        profile_id = next(u for u in users if u["username"] == "testuser")["userDetails"]["id"]

        update = {"firstName": "Петр", "lastName": "Сидоров", "phoneNumber": "+7 (900) 000-00-00"}
        resp = self.client.put(f"/api/users/{profile_id}", headers=admin, json=update)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["firstName"], "Петр")
        self.assertEqual(resp.json()["lastName"], "Сидоров")
        self.assertEqual(resp.json()["phoneNumber"], "+7 (900) 000-00-00")

        resp = self.client.delete(f"/api/users/{profile_id}", headers=admin)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "Пользователь успешно удален"})

        resp = self.client.get(f"/api/users/{profile_id}", headers=admin)
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json(), {"message": f"Пользователь с ID {profile_id} не найден"})

    def test_admin_photo_routes(self) -> None:
        self.user_headers()
        admin = self.admin_headers()
        users = self.client.get("/api/users", headers=admin).json()
        profile_id = next(u for u in users if u["username"] == "testuser")["userDetails"]["id"]

        for name in ("first.png", "second.png"):
            resp = self.client.post(
                f"/api/users/{profile_id}/photo",
                headers=admin,
                files={"file": (name, b"\x89PNG" + name.encode(), "image/png")},
            )
            self.assertEqual(resp.status_code, 200, resp.text)
        resp = self.client.get(f"/api/users/{profile_id}/photo", headers=admin)
        self.assertEqual(resp.headers["content-disposition"], 'attachment; filename="second.png"')

        self.assertEqual(self.client.delete(f"/api/users/{profile_id}/photo", headers=admin).status_code, 200)
        # Deleting an empty slot is still a success.
        self.assertEqual(self.client.delete(f"/api/users/{profile_id}/photo", headers=admin).status_code, 200)

    def test_unknown_profile_id(self) -> None:
        admin = self.admin_headers()
        self.assertEqual(self.client.get("/api/users/9999", headers=admin).status_code, 404)
        self.assertEqual(
            self.client.put("/api/users/9999", headers=admin, json={"firstName": "a", "lastName": "b"}).status_code,
            404,
        )
        self.assertEqual(self.client.delete("/api/users/9999", headers=admin).status_code, 404)
        self.assertEqual(self.client.get("/api/users/9999/photo", headers=admin).status_code, 404)
        self.assertEqual(self.client.delete("/api/users/9999/photo", headers=admin).status_code, 404)

    def test_non_integer_id(self) -> None:
        resp = self.client.get("/api/users/abc", headers=self.admin_headers())
        self.assertEqual(resp.status_code, 400)

    def test_out_of_range_id(self) -> None:
        admin = self.admin_headers()
        for raw in ("0", "-1", str(2**31), "99999999999999999999999"):
            with self.subTest(profile_id=raw):
                resp = self.client.get(f"/api/users/{raw}", headers=admin)
                self.assertEqual(resp.status_code, 400, resp.text)
                self.assertIn("profile_id", resp.json())
                resp = self.client.delete(f"/api/users/{raw}/photo", headers=admin)
                self.assertEqual(resp.status_code, 400, resp.text)


class TestErrorEnvelopes(unittest.TestCase):
    def _render(self, exc) -> tuple[int, dict, object]:
        resp = asyncio.run(app_error_handler(None, exc))
        return resp.status_code, json.loads(resp.body), resp.headers

    def test_validation_error_with_field_map(self) -> None:
        status, body, _ = self._render(ValidationError(errors={"email": "bad"}))
        self.assertEqual(status, 400)
        self.assertEqual(body, {"email": "bad"})

    def test_validation_error_with_message(self) -> None:
        status, body, _ = self._render(ValidationError("Файл не выбран или он пустой"))
        self.assertEqual(status, 400)
        self.assertEqual(body, {"message": "Файл не выбран или он пустой"})

    def test_not_authenticated_carries_challenge(self) -> None:
        status, body, headers = self._render(NotAuthenticatedError())
        self.assertEqual(status, 401)
        self.assertEqual(body, {"message": "Ошибка: Не авторизован"})
        self.assertEqual(headers["www-authenticate"], "Bearer")


class TestRouteExecution(unittest.TestCase):
    def test_upload_routes_run_in_threadpool(self) -> None:
        from app.api.routes import users

        # Upload handlers touch the database synchronously, so they must not run on the event loop.
        for handler in (users.upload_my_photo, users.upload_profile_photo):
            with self.subTest(handler=handler.__name__):
                self.assertFalse(inspect.iscoroutinefunction(handler))


if __name__ == "__main__":
    unittest.main()
