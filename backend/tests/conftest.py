"""Root conftest — shared test configuration."""

import os

# Ensure tests never talk to a real identity provider or write to the working directory
os.environ.setdefault("IDENTITY_API_KEY", "test-fake-api-key")
os.environ.setdefault("IDENTITY_BASE_URL", "http://identity.invalid/v1")
os.environ.setdefault("NOTES_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TASKS_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SESSION_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
