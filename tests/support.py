"""Shared test cases: a fresh in-memory schema per test, and an API client on top of it."""

import unittest

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.database import SessionLocal, engine
from app.models import Base
from app.services.bootstrap import seed_roles


class DatabaseTestCase(unittest.TestCase):
    """Recreates every table and seeds the two roles before each test."""

    db: Session

    def setUp(self) -> None:
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        self.db = SessionLocal()
        seed_roles(self.db)

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(bind=engine)


class ApiTestCase(unittest.TestCase):
    """Runs the app lifespan (roles + default admin) against a fresh schema."""

    client: TestClient

    def setUp(self) -> None:
        from app.main import app

        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        self.client = TestClient(app)
        self.client.__enter__()

    def tearDown(self) -> None:
        self.client.__exit__(None, None, None)
        Base.metadata.drop_all(bind=engine)

    def signup(self, username: str, email: str, password: str = "password", **extra: object):
        body = {
            "username": username,
            "password": password,
            "email": email,
            "firstName": "t",
            "lastName": "t",
            **extra,
        }
        return self.client.post("/api/auth/signup", json=body)

    def token_for(self, username: str, password: str) -> str:
        resp = self.client.post(
            "/api/auth/signin", json={"username": username, "password": password}
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["token"]

    def auth(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def admin_headers(self) -> dict[str, str]:
        return self.auth(self.token_for("admin", "admin"))

    def user_headers(self, username: str = "testuser", email: str = "test@example.com") -> dict[str, str]:
        resp = self.signup(username, email, role=["user"])
        self.assertEqual(resp.status_code, 200, resp.text)
        return self.auth(self.token_for(username, "password"))
