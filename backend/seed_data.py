#!/usr/bin/env python3
"""
Seed script for the EventHall database.
Creates the event category taxonomy and, optionally, an ultimate admin plus a
handful of sample events for local development.

Usage:
    cd backend
    python seed_data.py                 # categories only
    python seed_data.py --sample-data   # categories + demo admin and events
"""

import argparse
import random
from datetime import date, timedelta

from eventhall.categories import seed_categories
from eventhall.database import SessionLocal
from eventhall.logging_utils import configure_logging
from eventhall.models import Event, EventCategory, EventStatus, User, UserRole

DEMO_ADMIN = {
    "firebase_uid": "seed-ultimate-admin",
    "email": "admin@eventhall.app",
    "full_name": "EventHall Admin",
}

DISTRICTS = ["Chennai", "Coimbatore", "Madurai", "Tiruchirappalli", "Salem", "Vellore"]

SAMPLE_EVENTS = [
    ("Code Sprint 24h", "hackathon", "A 24 hour hackathon for student teams."),
    ("Campus Quiz Night", "quiz", "General knowledge quiz with three rounds."),
    ("Founders Pitch Day", "idea-pitching", "Pitch your startup idea to a panel of mentors."),
    ("Intro to Rust Workshop", "workshop", "Hands-on systems programming session."),
    ("Inter-College Football Cup", "sports", "Knockout football tournament."),
    ("Spring Cultural Fest", "fest", "Music, dance and drama across two days."),
]


def _ensure_demo_admin(session) -> User:
    admin = session.query(User).filter(User.firebase_uid == DEMO_ADMIN["firebase_uid"]).first()
    if admin is None:
        admin = User(**DEMO_ADMIN, role=UserRole.ultimate_admin, is_student=False)
        session.add(admin)
        session.commit()
        print(f"   Created ultimate admin {admin.email}")
    return admin


def _seed_sample_events(session, admin: User) -> int:
    categories = {category.slug: category for category in session.query(EventCategory).all()}
    created = 0
    for offset, (title, slug, description) in enumerate(SAMPLE_EVENTS, start=1):
        if session.query(Event.id).filter(Event.title == title).first():
            continue
        category = categories.get(slug)
        if category is None:
            continue
        is_free = random.random() < 0.5
        session.add(
            Event(
                title=title,
                description=description,
                date=date.today() + timedelta(days=offset * 3),
                time="10:00 AM",
                location="Main Auditorium",
                district=random.choice(DISTRICTS),
                primary_category_id=category.id,
                is_free=is_free,
                entry_fee=None if is_free else random.choice([100, 150, 250]),
                contact_email=admin.email,
                contact_phone="+91 90000 00000",
                status=EventStatus.published,
                created_by_user_id=admin.id,
            )
        )
        created += 1
    session.commit()
    return created


def seed_database(sample_data: bool = False):
    """Seed the database with categories and optional demo content."""
    print("🌱 Starting database seeding...")
    session = SessionLocal()
    try:
        print("📌 Seeding categories...")
        created = seed_categories(session)
        print(f"   Created {created} new categories")

        if sample_data:
            print("🎟️  Creating sample events...")
            admin = _ensure_demo_admin(session)
            events_created = _seed_sample_events(session, admin)
            print(f"   Created {events_created} events")

        print("✅ Seeding complete")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    configure_logging()
    parser = argparse.ArgumentParser(description="Seed the EventHall database")
    parser.add_argument("--sample-data", action="store_true", help="also create a demo admin and sample events")
    args = parser.parse_args()
    seed_database(sample_data=args.sample_data)
