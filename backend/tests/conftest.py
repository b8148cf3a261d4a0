"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend to avoid sandbox restrictions
that can affect the Trio backend (e.g., socketpair permission errors), and
keep the app from wiring real Supabase/Postgres/push collaborators on import.
"""
import os
import sys
from pathlib import Path

import pytest

_EXTERNAL_ENV = (
    "ARTBOARD_ENV",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_ROLE_KEY",
    "ART_DATABASE_URL",
    "DATABASE_URL",
    "SUPABASE_DB_URL",
    "VAPID_PUBLIC_KEY",
    "VAPID_PRIVATE_KEY",
    "VAPID_EMAIL",
    "AUTO_CREATE_STORAGE_BUCKETS",
    "ART_AUTO_CREATE_SCHEMA",
)
for _name in _EXTERNAL_ENV:
    os.environ.pop(_name, None)

# Ensure the repository root is importable so `backend.*` resolves in tests.
REPO_ROOT = Path(__file__).resolve().parents[2]
TESTS_DIR = REPO_ROOT / "backend" / "tests"
for p in (str(REPO_ROOT), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_telemetry_between_tests():
    from backend.gallery import telemetry

    telemetry.reset_for_tests()
    yield
    telemetry.reset_for_tests()


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    path = tmp_path / "staging"
    path.mkdir()
    return path
