from datetime import date, timedelta

from sqlalchemy import text


def test_postgres_end_to_end_flow(helpers):
    client = helpers["client"]

    organizer_token = helpers["make_event_admin"]()
    admin_token = helpers["sync_user"]("root@eventhall.app")

    event_payload = {
        "title": "Integration Event",
        "description": "Desc",
        "date": (date.today() + timedelta(days=2)).isoformat(),
        "time": "18:00",
        "location": "Loc",
        "district": "Chennai",
        "primaryCategoryId": helpers["category_id"]("seminar"),
        "additionalCategoryIds": [helpers["category_id"]("workshop")],
        "entryFee": 99.5,
        "contactEmail": "org@eventhall.app",
        "contactPhone": "+91 90000 00000",
    }
    created = client.post(
        "/api/events",
        json=event_payload,
        headers=helpers["auth_header"](organizer_token),
    )
    assert created.status_code == 201
    event_id = created.json()["event"]["id"]
    assert created.json()["event"]["entryFee"] == 99.5

    published = client.patch(
        f"/api/admin/events/{event_id}/status",
        json={"status": "PUBLISHED"},
        headers=helpers["auth_header"](admin_token),
    )
    assert published.status_code == 200

    student_token = helpers["sync_user"]("student@eventhall.app")
    registered = client.post(f"/api/events/{event_id}/register", headers=helpers["auth_header"](student_token))
    assert registered.status_code == 200

    listed = client.get("/api/events", params={"category": helpers["category_id"]("workshop")})
    assert [event["registrationsCount"] for event in listed.json()["events"]] == [1]


def test_partial_unique_index_on_pending_applications(helpers):
    db = helpers["db"]
    indexes = db.execute(
        text("SELECT indexdef FROM pg_indexes WHERE indexname = 'uq_admin_application_pending'")
    ).scalars().all()
    assert len(indexes) == 1
    assert "WHERE" in indexes[0]
