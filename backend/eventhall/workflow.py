"""Moderation workflow: admin-role applications and event publication.

Two small state machines live here::

    AdminApplication:  PENDING --approve--> APPROVED   (applicant becomes EVENT_ADMIN)
                       PENDING --reject---> REJECTED

    Event:             created as PENDING_APPROVAL
                       ultimate admin may force any status
                       a non-ultimate-admin edit of a PUBLISHED event sends it back to PENDING_APPROVAL

Every function takes the request's session, commits its own unit of work and
raises ``HTTPException`` with the status the API should answer with.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from . import models, schemas
from .config import settings
from .logging_utils import log_event, log_warning

APPLICATION_TRANSITIONS: dict[models.ApplicationStatus, frozenset[models.ApplicationStatus]] = {
    models.ApplicationStatus.pending: frozenset({models.ApplicationStatus.approved, models.ApplicationStatus.rejected}),
    models.ApplicationStatus.approved: frozenset(),
    models.ApplicationStatus.rejected: frozenset(),
}

# Event columns filled straight from create/update payloads.
_EVENT_FIELDS = (
    "title",
    "description",
    "date",
    "time",
    "location",
    "district",
    "google_maps_link",
    "primary_category_id",
    "entry_fee",
    "is_free",
    "prize_details",
    "contact_email",
    "contact_phone",
    "external_registration_link",
    "how_to_register_link",
    "instagram_url",
    "facebook_url",
    "youtube_url",
    "banner_url",
)


def _commit(db: Session, failure_detail: str, **context) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        log_warning("workflow_commit_failed", error=str(exc), detail=failure_detail, **context)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_detail)


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


# ---------------------------------------------------------------------------
# Admin applications
# ---------------------------------------------------------------------------


def submit_application(db: Session, user: models.User, motivation_text: Optional[str]) -> models.AdminApplication:
    min_length = settings.admin_motivation_min_length
    if not motivation_text or len(motivation_text) < min_length:
        raise _bad_request(f"Motivation text must be at least {min_length} characters")
    if user.role != models.UserRole.standard_user:
        raise _bad_request("You already have admin privileges")

    pending = (
        db.query(models.AdminApplication.id)
        .filter(
            models.AdminApplication.user_id == user.id,
            models.AdminApplication.status == models.ApplicationStatus.pending,
        )
        .first()
    )
    if pending:
        raise _bad_request("You already have a pending application")

    application = models.AdminApplication(
        user_id=user.id,
        motivation_text=motivation_text,
        status=models.ApplicationStatus.pending,
    )
    db.add(application)
    try:
        db.commit()
    except IntegrityError:
        # the partial unique index caught a concurrent submission
        db.rollback()
        raise _bad_request("You already have a pending application")
    db.refresh(application)
    log_event("admin_application_submitted", application_id=application.id, user_id=user.id)
    return application


def _application_query(db: Session):
    return db.query(models.AdminApplication).options(
        joinedload(models.AdminApplication.user),
        joinedload(models.AdminApplication.reviewed_by),
    )


def list_applications(
    db: Session,
    application_status: Optional[models.ApplicationStatus] = None,
    user_id: Optional[int] = None,
) -> list[models.AdminApplication]:
    query = _application_query(db)
    if application_status is not None:
        query = query.filter(models.AdminApplication.status == application_status)
    if user_id is not None:
        query = query.filter(models.AdminApplication.user_id == user_id)
    return query.order_by(models.AdminApplication.created_at.desc(), models.AdminApplication.id.desc()).all()


def review_application(
    db: Session,
    application_id: int,
    reviewer: models.User,
    decision: Optional[models.ApplicationStatus],
) -> tuple[models.AdminApplication, str]:
    if decision not in (models.ApplicationStatus.approved, models.ApplicationStatus.rejected):
        raise _bad_request("Invalid status")

    application = _application_query(db).filter(models.AdminApplication.id == application_id).first()
    if not application:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    if decision not in APPLICATION_TRANSITIONS[application.status]:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Application has already been reviewed")

    application.status = decision
    application.reviewed_by_user_id = reviewer.id
    application.reviewed_at = datetime.now(timezone.utc)
    if decision == models.ApplicationStatus.approved:
        applicant = db.query(models.User).filter(models.User.id == application.user_id).first()
        if applicant is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Applicant not found")
        applicant.role = models.UserRole.event_admin

    _commit(db, "Failed to review application", application_id=application_id)
    db.refresh(application)
    log_event(
        "admin_application_reviewed",
        application_id=application.id,
        applicant_id=application.user_id,
        reviewer_id=reviewer.id,
        status=decision.value,
    )
    if decision == models.ApplicationStatus.approved:
        return application, "Application approved and user upgraded to Event Admin"
    return application, "Application rejected"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def ensure_categories_exist(db: Session, category_ids: Iterable[int]) -> None:
    wanted = {int(category_id) for category_id in category_ids}
    if not wanted:
        return
    found = {
        row[0]
        for row in db.query(models.EventCategory.id).filter(models.EventCategory.id.in_(sorted(wanted))).all()
    }
    missing = sorted(wanted - found)
    if missing:
        raise _bad_request(f"Unknown category ids: {', '.join(str(category_id) for category_id in missing)}")


def _replace_additional_categories(db: Session, event: models.Event, category_ids: Iterable[int]) -> None:
    unique_ids = list(dict.fromkeys(int(category_id) for category_id in category_ids))
    if event.id is not None:
        # flush the orphan deletes first; the caller commits both halves together
        event.additional_categories.clear()
        db.flush()
    event.additional_categories = [
        models.EventAdditionalCategory(category_id=category_id) for category_id in unique_ids
    ]


def status_after_edit(current: models.EventStatus, editor_role: models.UserRole) -> models.EventStatus:
    if current == models.EventStatus.published and editor_role != models.UserRole.ultimate_admin:
        return models.EventStatus.pending_approval
    return current


def create_event(db: Session, creator: models.User, payload: schemas.EventCreate) -> models.Event:
    ensure_categories_exist(db, [payload.primary_category_id, *payload.additional_category_ids])

    values = {field: getattr(payload, field) for field in _EVENT_FIELDS}
    values["contact_email"] = str(payload.contact_email)
    if payload.is_free:
        values["entry_fee"] = None

    event = models.Event(
        **values,
        created_by_user_id=creator.id,
        status=models.EventStatus.pending_approval,
    )
    _replace_additional_categories(db, event, payload.additional_category_ids)
    db.add(event)
    _commit(db, "Failed to create event", creator_id=creator.id)
    db.refresh(event)
    log_event("event_created", event_id=event.id, creator_id=creator.id)
    return event


def update_event(db: Session, event_id: int, editor: models.User, payload: schemas.EventUpdate) -> models.Event:
    event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    if editor.role != models.UserRole.ultimate_admin and event.created_by_user_id != editor.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only edit your own events")

    changes = {field: value for field, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    additional_category_ids = changes.pop("additional_category_ids", None)
    category_ids = list(additional_category_ids or [])
    if "primary_category_id" in changes:
        category_ids.append(changes["primary_category_id"])
    ensure_categories_exist(db, category_ids)

    for field, value in changes.items():
        setattr(event, field, str(value) if field == "contact_email" else value)
    if event.is_free:
        event.entry_fee = None
    if additional_category_ids is not None:
        _replace_additional_categories(db, event, additional_category_ids)

    previous_status = event.status
    event.status = status_after_edit(previous_status, editor.role)

    _commit(db, "Failed to update event", event_id=event_id)
    db.refresh(event)
    log_event(
        "event_updated",
        event_id=event.id,
        creator_id=event.created_by_user_id,
        actor_user_id=editor.id,
        fields=sorted(changes) + (["additional_category_ids"] if additional_category_ids is not None else []),
        status_reset=previous_status != event.status,
    )
    return event


def set_event_status(
    db: Session,
    event_id: int,
    admin: models.User,
    new_status: Optional[models.EventStatus],
    rejection_reason: Optional[str] = None,
) -> models.Event:
    if new_status is None:
        raise _bad_request("Invalid status")
    event = db.query(models.Event).filter(models.Event.id == event_id).first()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    previous_status = event.status
    event.status = new_status
    if new_status == models.EventStatus.rejected:
        if rejection_reason:
            event.rejection_reason = rejection_reason
    else:
        event.rejection_reason = None

    _commit(db, "Failed to update event status", event_id=event_id)
    db.refresh(event)
    log_event(
        "event_status_changed",
        event_id=event.id,
        actor_user_id=admin.id,
        previous_status=previous_status.value,
        status=new_status.value,
    )
    return event
