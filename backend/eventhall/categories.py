from typing import TypedDict

from sqlalchemy.orm import Session

from . import models
from .logging_utils import log_event


class CategorySeed(TypedDict):
    name: str
    slug: str
    description: str


DEFAULT_CATEGORIES: list[CategorySeed] = [
    {"name": "Hackathon", "slug": "hackathon", "description": "Coding competitions and hackathons"},
    {"name": "Quiz", "slug": "quiz", "description": "Quiz competitions and trivia events"},
    {"name": "Treasure Hunt", "slug": "treasure-hunt", "description": "Adventure and treasure hunt events"},
    {"name": "Idea Pitching", "slug": "idea-pitching", "description": "Startup and business idea competitions"},
    {"name": "Seminar", "slug": "seminar", "description": "Educational seminars and talks"},
    {"name": "Workshop", "slug": "workshop", "description": "Hands-on workshops and training sessions"},
    {"name": "Cultural Event", "slug": "cultural-event", "description": "Cultural programs and performances"},
    {"name": "Sports", "slug": "sports", "description": "Sports tournaments and athletic events"},
    {"name": "Technical Talk", "slug": "technical-talk", "description": "Tech talks and guest lectures"},
    {"name": "Competition", "slug": "competition", "description": "General competitions"},
    {"name": "Fest", "slug": "fest", "description": "College fests and celebrations"},
    {"name": "Conference", "slug": "conference", "description": "Academic and professional conferences"},
]


def seed_categories(db: Session, categories: list[CategorySeed] | None = None) -> int:
    """Insert or refresh the category taxonomy, keyed by slug. Returns how many rows were created."""
    created = 0
    for item in categories or DEFAULT_CATEGORIES:
        category = db.query(models.EventCategory).filter(models.EventCategory.slug == item["slug"]).first()
        if category is None:
            category = models.EventCategory(slug=item["slug"])
            db.add(category)
            created += 1
        category.name = item["name"]
        category.description = item["description"]
    db.commit()
    log_event("categories_seeded", created=created, total=len(categories or DEFAULT_CATEGORIES))
    return created
