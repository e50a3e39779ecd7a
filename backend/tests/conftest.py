"""Root conftest — shared test configuration."""

import os

# Tests never talk to a real PostgreSQL
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
os.environ.setdefault("STATIC_DIR", "__no_static_dir__")
