import os
import shutil
import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Set test database before importing app
os.environ["DATABASE_URL"] = "sqlite:///./test_data/test.db"

TEST_DB = Path("test_data/test.db")


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    test_dir = TEST_DB.parent
    test_dir.mkdir(exist_ok=True)
    yield
    # Cleanup
    if test_dir.exists():
        shutil.rmtree(test_dir)


@pytest.fixture(autouse=True)
def fresh_db():
    """Every test starts from an empty, freshly seeded database."""
    import typerace.db as db_module

    db_module.DB_PATH = TEST_DB
    TEST_DB.unlink(missing_ok=True)
    db_module.init_db()
    yield


@pytest.fixture
def client():
    from typerace.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def login(client):
    """Register ``username`` (if needed), log in and return the session token."""

    def _login(username: str, password: str = "password123") -> str:
        client.post("/register", json={"username": username, "password": password})
        resp = client.post("/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["token"]

    return _login


@pytest.fixture
def wait_for():
    """Poll ``predicate`` until it is true or ``timeout`` runs out."""

    def _wait(predicate, timeout: float = 3.0) -> bool:
        deadline = time.time() + timeout
        while time.time() < deadline:
            if predicate():
                return True
            time.sleep(0.02)
        return predicate()

    return _wait
