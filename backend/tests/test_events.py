from eventhall import models


def test_created_event_awaits_approval_and_is_hidden(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    event = helpers["create_event"](token)

    assert event["status"] == "PENDING_APPROVAL"
    assert event["createdBy"]["email"] == "organizer@eventhall.app"
    assert event["primaryCategory"]["slug"] == "hackathon"
    assert event["likesCount"] == 0
    assert event["registrationsCount"] == 0

    listing = client.get("/api/events")
    assert listing.status_code == 200
    assert listing.json()["events"] == []

    direct = client.get(f"/api/events/{event['id']}")
    assert direct.status_code == 200
    assert direct.json()["event"]["title"] == "Robotics Hackathon"


def test_published_event_appears_in_listing(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    admin_token = helpers["make_ultimate_admin"]()
    event = helpers["create_event"](token)
    helpers["publish"](admin_token, event["id"])

    events = client.get("/api/events").json()["events"]
    assert [item["id"] for item in events] == [event["id"]]
    assert events[0]["status"] == "PUBLISHED"


def test_free_event_drops_entry_fee(helpers):
    token = helpers["make_event_admin"]()
    event = helpers["create_event"](token, isFree=True, entryFee=500)
    assert event["isFree"] is True
    assert event["entryFee"] is None


def test_create_event_rejects_unknown_category(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    resp = client.post(
        "/api/events",
        json=helpers["event_payload"](additionalCategoryIds=[424242]),
        headers=helpers["auth_header"](token),
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Unknown category ids: 424242"


def test_create_event_rejects_negative_fee(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    resp = client.post(
        "/api/events",
        json=helpers["event_payload"](entryFee=-1),
        headers=helpers["auth_header"](token),
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation failed"


def test_get_missing_event_returns_404(helpers):
    client = helpers["client"]
    resp = client.get("/api/events/987654")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Event not found"}


def test_update_missing_event_returns_404(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    resp = client.put("/api/events/987654", json={"title": "Nope"}, headers=helpers["auth_header"](token))
    assert resp.status_code == 404


def test_events_list_filters_combine(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    admin_token = helpers["make_ultimate_admin"]()
    quiz = helpers["category_id"]("quiz")
    workshop = helpers["category_id"]("workshop")

    quiz_chennai = helpers["create_event"](
        token,
        title="Chennai Quiz Bowl",
        primaryCategoryId=quiz,
        district="Chennai",
        date=helpers["future_date"](3),
        isFree=True,
    )
    quiz_madurai = helpers["create_event"](
        token,
        title="Madurai Quiz League",
        primaryCategoryId=quiz,
        district="Madurai",
        date=helpers["future_date"](10),
    )
    workshop_with_quiz = helpers["create_event"](
        token,
        title="Workshop on Python",
        description="Ends with a short QUIZ on generators.",
        primaryCategoryId=workshop,
        additionalCategoryIds=[quiz],
        district="Chennai",
        date=helpers["future_date"](20),
    )
    for event in (quiz_chennai, quiz_madurai, workshop_with_quiz):
        helpers["publish"](admin_token, event["id"])

    def ids(**params):
        resp = client.get("/api/events", params=params)
        assert resp.status_code == 200
        return [event["id"] for event in resp.json()["events"]]

    assert ids(category=quiz) == [quiz_chennai["id"], quiz_madurai["id"], workshop_with_quiz["id"]]
    assert ids(category=workshop) == [workshop_with_quiz["id"]]
    assert ids(district="Chennai") == [quiz_chennai["id"], workshop_with_quiz["id"]]
    assert ids(search="quiz") == [quiz_chennai["id"], quiz_madurai["id"], workshop_with_quiz["id"]]
    assert ids(search="LEAGUE") == [quiz_madurai["id"]]
    assert ids(category=quiz, district="Chennai", isFree="true") == [quiz_chennai["id"]]
    assert ids(category=quiz, search="python") == [workshop_with_quiz["id"]]
    assert ids(dateFrom=helpers["future_date"](5), dateTo=helpers["future_date"](15)) == [quiz_madurai["id"]]
    assert ids(isFree="false") == [quiz_madurai["id"], workshop_with_quiz["id"]]


def test_events_list_by_creator_includes_every_status(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    admin_token = helpers["make_ultimate_admin"]()
    pending = helpers["create_event"](token, title="Pending one")
    published = helpers["create_event"](token, title="Published one")
    helpers["publish"](admin_token, published["id"])
    creator_id = helpers["user_by_email"]("organizer@eventhall.app").id

    everything = client.get("/api/events", params={"userId": creator_id}).json()["events"]
    assert {event["id"] for event in everything} == {pending["id"], published["id"]}

    only_pending = client.get("/api/events", params={"userId": creator_id, "status": "PENDING_APPROVAL"})
    assert [event["id"] for event in only_pending.json()["events"]] == [pending["id"]]


def test_events_list_rejects_bad_status_filter(helpers):
    client = helpers["client"]
    resp = client.get("/api/events", params={"status": "ARCHIVED"})
    assert resp.status_code == 400


def test_event_admin_edit_of_published_event_requires_reapproval(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    admin_token = helpers["make_ultimate_admin"]()
    event = helpers["create_event"](token)
    helpers["publish"](admin_token, event["id"])

    resp = client.put(
        f"/api/events/{event['id']}",
        json={"description": "Updated schedule with a longer final round."},
        headers=helpers["auth_header"](token),
    )
    assert resp.status_code == 200
    assert resp.json()["event"]["status"] == "PENDING_APPROVAL"
    assert client.get("/api/events").json()["events"] == []


def test_ultimate_admin_edit_keeps_event_published(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    admin_token = helpers["make_ultimate_admin"]()
    event = helpers["create_event"](token)
    helpers["publish"](admin_token, event["id"])

    resp = client.put(
        f"/api/events/{event['id']}",
        json={"time": "10:30 AM"},
        headers=helpers["auth_header"](admin_token),
    )
    assert resp.status_code == 200
    assert resp.json()["event"]["status"] == "PUBLISHED"
    assert resp.json()["event"]["time"] == "10:30 AM"


def test_editing_pending_event_keeps_it_pending(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    event = helpers["create_event"](token)
    resp = client.put(
        f"/api/events/{event['id']}",
        json={"location": "Seminar Hall 2"},
        headers=helpers["auth_header"](token),
    )
    assert resp.json()["event"]["status"] == "PENDING_APPROVAL"
    assert resp.json()["event"]["location"] == "Seminar Hall 2"


def test_update_replaces_additional_categories(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    quiz = helpers["category_id"]("quiz")
    seminar = helpers["category_id"]("seminar")
    fest = helpers["category_id"]("fest")
    event = helpers["create_event"](token, additionalCategoryIds=[quiz, seminar])
    assert {category["id"] for category in event["additionalCategories"]} == {quiz, seminar}

    resp = client.put(
        f"/api/events/{event['id']}",
        json={"additionalCategoryIds": [seminar, fest]},
        headers=helpers["auth_header"](token),
    )
    assert resp.status_code == 200
    assert {category["id"] for category in resp.json()["event"]["additionalCategories"]} == {seminar, fest}

    links = helpers["db"].query(models.EventAdditionalCategory).filter_by(event_id=event["id"]).count()
    assert links == 2


def test_update_ignores_null_fields(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    event = helpers["create_event"](token)
    resp = client.put(
        f"/api/events/{event['id']}",
        json={"title": None, "district": "Salem"},
        headers=helpers["auth_header"](token),
    )
    assert resp.status_code == 200
    assert resp.json()["event"]["title"] == "Robotics Hackathon"
    assert resp.json()["event"]["district"] == "Salem"


def test_events_by_categories_groups_published_events(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    admin_token = helpers["make_ultimate_admin"]()
    hackathon = helpers["category_id"]("hackathon")
    quiz = helpers["category_id"]("quiz")
    sports = helpers["category_id"]("sports")

    live = helpers["create_event"](token, title="Live Hack", primaryCategoryId=hackathon, additionalCategoryIds=[quiz])
    helpers["create_event"](token, title="Hidden Hack", primaryCategoryId=hackathon)
    helpers["publish"](admin_token, live["id"])

    resp = client.get("/api/events/by-categories", params={"categoryIds": f"{hackathon},{quiz},{sports}"})
    assert resp.status_code == 200
    grouped = resp.json()["eventsByCategory"]
    assert set(grouped) == {str(hackathon), str(quiz)}
    assert grouped[str(hackathon)]["category"]["slug"] == "hackathon"
    assert [event["title"] for event in grouped[str(hackathon)]["events"]] == ["Live Hack"]
    assert [event["title"] for event in grouped[str(quiz)]["events"]] == ["Live Hack"]


def test_events_by_categories_caps_each_group(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    admin_token = helpers["make_ultimate_admin"]()
    quiz = helpers["category_id"]("quiz")
    for index in range(12):
        event = helpers["create_event"](token, title=f"Quiz {index}", primaryCategoryId=quiz)
        helpers["publish"](admin_token, event["id"])

    grouped = client.get("/api/events/by-categories", params={"categoryIds": str(quiz)}).json()["eventsByCategory"]
    assert len(grouped[str(quiz)]["events"]) == 10


def test_events_by_categories_validates_ids(helpers):
    client = helpers["client"]
    missing = client.get("/api/events/by-categories")
    assert missing.status_code == 400
    assert missing.json()["error"] == "Category IDs are required"

    garbage = client.get("/api/events/by-categories", params={"categoryIds": "1,abc"})
    assert garbage.status_code == 400


def test_search_matches_percent_and_underscore_literally(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    admin_token = helpers["make_ultimate_admin"]()
    for title in ("Entry 500 rupees", "Flat 50% discount", "a_b meetup", "axb meetup"):
        event = helpers["create_event"](token, title=title)
        helpers["publish"](admin_token, event["id"])

    def titles(term):
        return [event["title"] for event in client.get("/api/events", params={"search": term}).json()["events"]]

    assert titles("50%") == ["Flat 50% discount"]
    assert titles("a_b") == ["a_b meetup"]
    assert sorted(titles("MEETUP")) == ["a_b meetup", "axb meetup"]
    assert titles("meetup ") == []


def test_date_range_is_inclusive_and_combines_with_is_free(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    admin_token = helpers["make_ultimate_admin"]()
    schedule = [
        ("New Year Eve Quiz", "2024-12-31", True),
        ("January Opener", "2025-01-01", True),
        ("Mid January Paid Workshop", "2025-01-15", False),
        ("January Closer", "2025-01-31", True),
        ("February Kickoff", "2025-02-01", True),
    ]
    for title, day, is_free in schedule:
        event = helpers["create_event"](token, title=title, date=day, isFree=is_free)
        helpers["publish"](admin_token, event["id"])

    def titles(**params):
        return [event["title"] for event in client.get("/api/events", params=params).json()["events"]]

    january = {"dateFrom": "2025-01-01", "dateTo": "2025-01-31"}
    assert titles(**january) == ["January Opener", "Mid January Paid Workshop", "January Closer"]
    assert titles(**january, isFree="true") == ["January Opener", "January Closer"]


def test_switching_event_to_free_clears_entry_fee(helpers):
    client = helpers["client"]
    token = helpers["make_event_admin"]()
    event = helpers["create_event"](token, entryFee=200)
    assert event["entryFee"] == 200

    made_free = client.put(
        f"/api/events/{event['id']}",
        json={"isFree": True},
        headers=helpers["auth_header"](token),
    )
    assert made_free.status_code == 200
    assert made_free.json()["event"]["isFree"] is True
    assert made_free.json()["event"]["entryFee"] is None

    fee_on_free_event = client.put(
        f"/api/events/{event['id']}",
        json={"entryFee": 300},
        headers=helpers["auth_header"](token),
    )
    assert fee_on_free_event.json()["event"]["entryFee"] is None
