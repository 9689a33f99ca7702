import os
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import text


if os.environ.get("RUN_INTEGRATION_TESTS") != "1":
    pytest.skip(
        "Integration tests are disabled. Set RUN_INTEGRATION_TESTS=1 to enable.",
        allow_module_level=True,
    )

if not os.environ.get("DATABASE_URL"):
    pytest.skip("DATABASE_URL must be set for integration tests.", allow_module_level=True)

os.environ.setdefault("SECRET_KEY", "integration-test-secret")
os.environ["IDENTITY_PROVIDER"] = "local"
os.environ["ULTIMATE_ADMIN_EMAILS"] = "root@eventhall.app"

from eventhall import models  # noqa: E402
from eventhall.api import app  # noqa: E402
from eventhall.categories import seed_categories  # noqa: E402
from eventhall.database import Base, SessionLocal, engine, get_db  # noqa: E402
from eventhall.identity import create_identity_token, reset_identity_verifier  # noqa: E402


def _run_migrations() -> None:
    backend_root = Path(__file__).resolve().parents[1]
    alembic_ini = backend_root / "alembic.ini"
    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(backend_root / "alembic"))
    command.upgrade(config, "head")


@pytest.fixture(scope="session", autouse=True)
def _ensure_schema():
    _run_migrations()
    yield
    Base.metadata.drop_all(bind=engine)
    with engine.begin() as connection:
        connection.execute(text("DROP TABLE IF EXISTS alembic_version"))
        for enum_name in ("applicationstatus", "eventstatus", "userrole"):
            connection.execute(text(f"DROP TYPE IF EXISTS {enum_name}"))


@pytest.fixture()
def db_session():
    db = SessionLocal()
    try:
        tables = [t.name for t in Base.metadata.sorted_tables]
        if tables:
            db.execute(text(f"TRUNCATE TABLE {', '.join(tables)} RESTART IDENTITY CASCADE"))
            db.commit()
        seed_categories(db)
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db_session):
    def _override_get_db():
        yield db_session

    reset_identity_verifier()
    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def helpers(client, db_session):
    def sync_user(email: str) -> str:
        token = create_identity_token(f"uid-{email}", email)
        resp = client.post("/api/auth/sync-user", json={"idToken": token})
        assert resp.status_code == 200, resp.text
        return token

    def make_event_admin(email: str = "organizer@eventhall.app") -> str:
        token = sync_user(email)
        user = db_session.query(models.User).filter(models.User.email == email).one()
        user.role = models.UserRole.event_admin
        db_session.commit()
        return token

    def category_id(slug: str) -> int:
        return db_session.query(models.EventCategory.id).filter(models.EventCategory.slug == slug).scalar()

    def auth_header(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    return {
        "client": client,
        "db": db_session,
        "sync_user": sync_user,
        "make_event_admin": make_event_admin,
        "category_id": category_id,
        "auth_header": auth_header,
    }
