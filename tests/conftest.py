"""Pin the environment before any app module reads settings."""

import os

os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "dXNlcmRlc2stdGVzdC1zaWduaW5nLWtleS0wMTIzNDU2Nzg5YWJjZGVm"
os.environ["JWT_EXPIRATION_MS"] = "3600000"
os.environ["MAX_UPLOAD_BYTES"] = "1024"
os.environ["BOOTSTRAP_ON_STARTUP"] = "true"
os.environ["DEFAULT_ADMIN_USERNAME"] = "admin"
os.environ["DEFAULT_ADMIN_PASSWORD"] = "admin"
os.environ["DEFAULT_ADMIN_EMAIL"] = "admin@example.com"
os.environ["LOG_LEVEL"] = "WARNING"
