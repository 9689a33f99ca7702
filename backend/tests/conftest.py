import os
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["IDENTITY_PROVIDER"] = "local"
os.environ["ULTIMATE_ADMIN_EMAILS"] = "root@eventhall.app"
os.environ.setdefault("LOG_JSON", "false")

from eventhall import models  # noqa: E402
from eventhall.api import app  # noqa: E402
from eventhall.categories import seed_categories  # noqa: E402
from eventhall.database import Base, engine, get_db, SessionLocal  # noqa: E402
from eventhall.identity import create_identity_token, reset_identity_verifier  # noqa: E402

MOTIVATION = "I organise the robotics club meetups and want to publish our workshops here."


@pytest.fixture(scope="session", autouse=True)
def _ensure_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session():
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
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
    reset_identity_verifier()


@pytest.fixture()
def helpers(client, db_session):
    def token_for(email: str, uid: str | None = None, name: str | None = None, **kwargs) -> str:
        return create_identity_token(uid or f"uid-{email}", email, name=name, **kwargs)

    def auth_header(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    def sync_user(email: str, uid: str | None = None, profile: dict | None = None) -> str:
        token = token_for(email, uid)
        body = {"idToken": token}
        if profile is not None:
            body["profile"] = profile
        resp = client.post("/api/auth/sync-user", json=body)
        assert resp.status_code == 200, resp.text
        return token

    def user_by_email(email: str) -> models.User:
        db_session.expire_all()
        return db_session.query(models.User).filter(models.User.email == email).one()

    def make_event_admin(email: str = "organizer@eventhall.app") -> str:
        token = sync_user(email)
        user = user_by_email(email)
        user.role = models.UserRole.event_admin
        db_session.commit()
        return token

    def make_ultimate_admin(email: str = "root@eventhall.app") -> str:
        return sync_user(email)

    def category_id(slug: str) -> int:
        return db_session.query(models.EventCategory.id).filter(models.EventCategory.slug == slug).scalar()

    def future_date(days: int = 7) -> str:
        return (date.today() + timedelta(days=days)).isoformat()

    def event_payload(**overrides) -> dict:
        payload = {
            "title": "Robotics Hackathon",
            "description": "Build a line-following robot in 12 hours.",
            "date": future_date(),
            "time": "09:00 AM",
            "location": "Main Auditorium",
            "district": "Chennai",
            "primaryCategoryId": category_id("hackathon"),
            "additionalCategoryIds": [],
            "entryFee": 200,
            "isFree": False,
            "contactEmail": "robotics@college.edu",
            "contactPhone": "+91 98765 43210",
        }
        payload.update(overrides)
        return payload

    def create_event(token: str, **overrides) -> dict:
        resp = client.post("/api/events", json=event_payload(**overrides), headers=auth_header(token))
        assert resp.status_code == 201, resp.text
        return resp.json()["event"]

    def set_status(admin_token: str, event_id: int, status: str, reason: str | None = None):
        body = {"status": status}
        if reason is not None:
            body["rejectionReason"] = reason
        return client.patch(f"/api/admin/events/{event_id}/status", json=body, headers=auth_header(admin_token))

    def publish(admin_token: str, event_id: int) -> None:
        resp = set_status(admin_token, event_id, "PUBLISHED")
        assert resp.status_code == 200, resp.text

    return {
        "client": client,
        "db": db_session,
        "token_for": token_for,
        "auth_header": auth_header,
        "sync_user": sync_user,
        "user_by_email": user_by_email,
        "make_event_admin": make_event_admin,
        "make_ultimate_admin": make_ultimate_admin,
        "category_id": category_id,
        "future_date": future_date,
        "event_payload": event_payload,
        "create_event": create_event,
        "set_status": set_status,
        "publish": publish,
        "motivation": MOTIVATION,
    }
