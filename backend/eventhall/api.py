from datetime import date, datetime, timezone
from typing import Optional
from contextlib import asynccontextmanager
import logging
import traceback
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, status, Request, Query
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import auth, models, schemas, workflow
from .categories import seed_categories
from .config import settings
from .database import engine, get_db, SessionLocal
from .identity import IdentityVerifier, get_identity_verifier
from .logging_utils import configure_logging, RequestIdMiddleware, log_event, log_warning

configure_logging()


def _run_migrations():
    """Run Alembic migrations to latest head. Controlled via settings.auto_run_migrations."""
    try:
        from alembic import command
        from alembic.config import Config
        base_dir = Path(__file__).resolve().parent.parent
        alembic_ini = base_dir / 'alembic.ini'
        if not alembic_ini.exists():
            logging.warning('alembic.ini not found; skipping migrations')
            return
        cfg = Config(str(alembic_ini))
        cfg.set_main_option('script_location', str(base_dir / 'alembic'))
        command.upgrade(cfg, 'head')
        logging.info('Migrations applied to head')
    except Exception:
        logging.exception('Failed to run migrations on startup')


def _check_configuration():
    if not settings.database_url:
        raise RuntimeError('DATABASE_URL is required')
    if settings.identity_provider == "local" and not settings.secret_key:
        raise RuntimeError('SECRET_KEY is required when IDENTITY_PROVIDER=local')
    if settings.identity_provider == "firebase" and not settings.firebase_project_id:
        raise RuntimeError('FIREBASE_PROJECT_ID is required when IDENTITY_PROVIDER=firebase')
    if settings.dev_bypass_token and settings.is_production:
        log_warning("dev_bypass_token_ignored", environment=settings.environment)
    elif settings.dev_bypass_token:
        log_warning("dev_bypass_token_enabled", environment=settings.environment, email=settings.dev_bypass_email)


def _seed_categories_on_startup():
    db = SessionLocal()
    try:
        seed_categories(db)
    except SQLAlchemyError as exc:
        db.rollback()
        log_warning("category_seed_failed", error=str(exc))
    finally:
        db.close()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    _check_configuration()
    if settings.auto_run_migrations:
        _run_migrations()
    elif settings.auto_create_tables:
        models.Base.metadata.create_all(bind=engine)
    if settings.seed_categories_on_startup:
        _seed_categories_on_startup()
    log_event("api_started", environment=settings.environment, identity_provider=settings.identity_provider)
    yield


app = FastAPI(title="EventHall API", version="1.0.0", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins or [],
    allow_origin_regex=r"^http://(localhost|127\.0\.0\.1):\d+$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, message: str, details=None, exc: Exception | None = None) -> JSONResponse:
    content: dict = {"error": message}
    if details is not None:
        content["details"] = details
    if exc is not None and not settings.is_production:
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    details = None if isinstance(exc.detail, str) else exc.detail
    response = _error_response(exc.status_code, message, details)
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return _error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", details)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logging.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", exc=exc)


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------


def _serialize_category(category: models.EventCategory) -> schemas.CategoryResponse:
    return schemas.CategoryResponse.model_validate(category)


def _serialize_user(user: models.User) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=user.id,
        firebase_uid=user.firebase_uid,
        email=user.email,
        full_name=user.full_name,
        photo_url=user.photo_url,
        role=user.role,
        is_student=bool(user.is_student),
        college_name=user.college_name,
        interests=[
            schemas.InterestResponse(id=interest.id, category=_serialize_category(interest.category))
            for interest in user.interests
        ],
    )


def _event_load_options():
    return (
        joinedload(models.Event.primary_category),
        joinedload(models.Event.created_by),
        selectinload(models.Event.additional_categories).joinedload(models.EventAdditionalCategory.category),
    )


def _events_with_counts_query(db: Session, base_query=None):
    if base_query is None:
        base_query = db.query(models.Event)
    likes_subquery = (
        db.query(
            models.EventLike.event_id,
            func.count(models.EventLike.id).label("likes_count"),
        )
        .group_by(models.EventLike.event_id)
        .subquery()
    )
    registrations_subquery = (
        db.query(
            models.EventRegistration.event_id,
            func.count(models.EventRegistration.id).label("registrations_count"),
        )
        .group_by(models.EventRegistration.event_id)
        .subquery()
    )
    return (
        base_query.options(*_event_load_options())
        .outerjoin(likes_subquery, models.Event.id == likes_subquery.c.event_id)
        .outerjoin(registrations_subquery, models.Event.id == registrations_subquery.c.event_id)
        .add_columns(
            func.coalesce(likes_subquery.c.likes_count, 0).label("likes_count"),
            func.coalesce(registrations_subquery.c.registrations_count, 0).label("registrations_count"),
        )
    )


def _serialize_event(event: models.Event, likes_count: int = 0, registrations_count: int = 0) -> schemas.EventResponse:
    created_by = None
    if event.created_by:
        created_by = schemas.UserSummary(
            id=event.created_by.id,
            email=event.created_by.email,
            full_name=event.created_by.full_name,
            photo_url=event.created_by.photo_url,
        )
    return schemas.EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        date=event.date,
        time=event.time,
        location=event.location,
        district=event.district,
        google_maps_link=event.google_maps_link,
        primary_category_id=event.primary_category_id,
        primary_category=_serialize_category(event.primary_category) if event.primary_category else None,
        additional_categories=[
            _serialize_category(link.category) for link in event.additional_categories if link.category
        ],
        entry_fee=float(event.entry_fee) if event.entry_fee is not None else None,
        is_free=bool(event.is_free),
        prize_details=event.prize_details,
        contact_email=event.contact_email,
        contact_phone=event.contact_phone,
        external_registration_link=event.external_registration_link,
        how_to_register_link=event.how_to_register_link,
        instagram_url=event.instagram_url,
        facebook_url=event.facebook_url,
        youtube_url=event.youtube_url,
        banner_url=event.banner_url,
        status=event.status,
        rejection_reason=event.rejection_reason,
        created_by_user_id=event.created_by_user_id,
        created_by=created_by,
        likes_count=int(likes_count or 0),
        registrations_count=int(registrations_count or 0),
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


def _serialize_rows(rows) -> list[schemas.EventResponse]:
    return [_serialize_event(event, likes, registrations) for event, likes, registrations in rows]


def _load_event(db: Session, event_id: int) -> schemas.EventResponse:
    row = _events_with_counts_query(db, db.query(models.Event).filter(models.Event.id == event_id)).first()
    if not row:
        raise HTTPException(status_code=404, detail="Event not found")
    event, likes, registrations = row
    return _serialize_event(event, likes, registrations)


def _serialize_application(application: models.AdminApplication) -> schemas.AdminApplicationResponse:
    applicant = application.user
    reviewer = application.reviewed_by
    return schemas.AdminApplicationResponse(
        id=application.id,
        user_id=application.user_id,
        motivation_text=application.motivation_text,
        status=application.status,
        reviewed_by_user_id=application.reviewed_by_user_id,
        reviewed_at=application.reviewed_at,
        created_at=application.created_at,
        user=schemas.ApplicantSummary(
            id=applicant.id,
            email=applicant.email,
            full_name=applicant.full_name,
            photo_url=applicant.photo_url,
            is_student=bool(applicant.is_student),
            college_name=applicant.college_name,
        )
        if applicant
        else None,
        reviewed_by=schemas.UserSummary(
            id=reviewer.id,
            email=reviewer.email,
            full_name=reviewer.full_name,
            photo_url=reviewer.photo_url,
        )
        if reviewer
        else None,
    )


def _ensure_event_exists(db: Session, event_id: int) -> None:
    exists = db.query(models.Event.id).filter(models.Event.id == event_id).first()
    if not exists:
        raise HTTPException(status_code=404, detail="Event not found")


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@app.get("/health")
def liveness():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "ok"}
    except SQLAlchemyError:
        raise HTTPException(status_code=503, detail="Database unavailable")


@app.get("/api/health/identity")
def identity_health(verifier: IdentityVerifier = Depends(get_identity_verifier)):
    return {"identity": {"configured": True, **verifier.describe()}}


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@app.post("/api/auth/sync-user", response_model=schemas.SyncUserResponse)
def sync_user(
    payload: schemas.SyncUserRequest,
    db: Session = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
):
    if not payload.id_token:
        raise HTTPException(status_code=400, detail="ID token is required")
    identity = auth.verify_identity_token(payload.id_token, verifier)
    user = auth.sync_user(db, identity, payload.profile)
    return {"user": _serialize_user(user), "needs_profile_completion": len(user.interests) == 0}


def _replace_interests(db: Session, user: models.User, category_ids: list[int]) -> None:
    unique_ids = list(dict.fromkeys(category_ids))
    workflow.ensure_categories_exist(db, unique_ids)
    db.query(models.UserInterest).filter(models.UserInterest.user_id == user.id).delete(synchronize_session=False)
    for category_id in unique_ids:
        db.add(models.UserInterest(user_id=user.id, category_id=category_id))


@app.post("/api/auth/update-profile", response_model=schemas.UserEnvelope)
def update_profile(
    payload: schemas.UpdateProfileRequest,
    db: Session = Depends(get_db),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
):
    if not payload.id_token:
        raise HTTPException(status_code=400, detail="ID token is required")
    identity = auth.verify_identity_token(payload.id_token, verifier)
    user = db.query(models.User).filter(models.User.firebase_uid == identity.uid).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    profile = payload.profile
    if profile.full_name:
        user.full_name = profile.full_name
    if profile.is_student is not None:
        user.is_student = profile.is_student
    if profile.college_name:
        user.college_name = profile.college_name
    if profile.interests is not None:
        _replace_interests(db, user, profile.interests)

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        log_warning("profile_update_failed", user_id=user.id, error=str(exc))
        raise HTTPException(status_code=500, detail="Failed to update profile")
    db.refresh(user)
    log_event(
        "profile_updated",
        user_id=user.id,
        interests=len(user.interests),
        interests_replaced=profile.interests is not None,
    )
    return {"user": _serialize_user(user)}


@app.get("/api/auth/categories", response_model=schemas.CategoryListResponse)
def list_categories(db: Session = Depends(get_db)):
    categories = db.query(models.EventCategory).order_by(models.EventCategory.name.asc()).all()
    return {"categories": [_serialize_category(category) for category in categories]}


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def _category_predicate(category_id: int):
    return (models.Event.primary_category_id == category_id) | models.Event.additional_categories.any(
        models.EventAdditionalCategory.category_id == category_id
    )


@app.get("/api/events", response_model=schemas.EventListResponse)
def get_events(
    category: Optional[int] = None,
    district: Optional[str] = None,
    search: Optional[str] = None,
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    is_free: Optional[bool] = Query(None, alias="isFree"),
    event_status: Optional[models.EventStatus] = Query(None, alias="status"),
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    query = db.query(models.Event)
    if event_status is not None:
        query = query.filter(models.Event.status == event_status)
    elif user_id is None:
        # public listings only show live events; creator-scoped listings show every status
        query = query.filter(models.Event.status == models.EventStatus.published)
    if category is not None:
        query = query.filter(_category_predicate(category))
    if district:
        query = query.filter(models.Event.district == district)
    if search:
        # literal substring; % and _ in the term are not wildcards
        query = query.filter(
            models.Event.title.icontains(search, autoescape=True)
            | models.Event.description.icontains(search, autoescape=True)
            | models.Event.location.icontains(search, autoescape=True)
        )
    if date_from:
        query = query.filter(models.Event.date >= date_from)
    if date_to:
        query = query.filter(models.Event.date <= date_to)
    if is_free is not None:
        query = query.filter(models.Event.is_free == is_free)
    if user_id is not None:
        query = query.filter(models.Event.created_by_user_id == user_id)

    query = query.order_by(models.Event.date.asc(), models.Event.created_at.desc(), models.Event.id.desc())
    rows = _events_with_counts_query(db, query).all()
    return {"events": _serialize_rows(rows)}


@app.get("/api/events/by-categories", response_model=schemas.EventsByCategoryResponse)
def get_events_by_categories(
    category_ids: Optional[str] = Query(None, alias="categoryIds"),
    db: Session = Depends(get_db),
):
    if not category_ids:
        raise HTTPException(status_code=400, detail="Category IDs are required")
    try:
        ids = list(dict.fromkeys(int(raw) for raw in category_ids.split(",") if raw.strip()))
    except ValueError:
        raise HTTPException(status_code=400, detail="Category IDs must be integers")
    if not ids:
        raise HTTPException(status_code=400, detail="Category IDs are required")

    categories = {
        category.id: category
        for category in db.query(models.EventCategory).filter(models.EventCategory.id.in_(ids)).all()
    }
    events_by_category: dict[str, dict] = {}
    for category_id in ids:
        category = categories.get(category_id)
        if category is None:
            continue
        query = (
            db.query(models.Event)
            .filter(models.Event.status == models.EventStatus.published, _category_predicate(category_id))
            .order_by(models.Event.date.asc(), models.Event.id.asc())
        )
        rows = _events_with_counts_query(db, query).limit(settings.events_per_category_limit).all()
        if rows:
            events_by_category[str(category_id)] = {
                "category": _serialize_category(category),
                "events": _serialize_rows(rows),
            }
    return {"events_by_category": events_by_category}


@app.post("/api/events/check-interactions", response_model=schemas.InteractionCheckResponse)
def check_interactions(
    payload: schemas.InteractionCheckRequest,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user),
):
    event_ids = sorted(set(payload.event_ids))
    if not event_ids:
        return {"liked_event_ids": [], "registered_event_ids": []}
    liked = (
        db.query(models.EventLike.event_id)
        .filter(models.EventLike.user_id == current_user.id, models.EventLike.event_id.in_(event_ids))
        .all()
    )
    registered = (
        db.query(models.EventRegistration.event_id)
        .filter(models.EventRegistration.user_id == current_user.id, models.EventRegistration.event_id.in_(event_ids))
        .all()
    )
    return {
        "liked_event_ids": [row[0] for row in liked],
        "registered_event_ids": [row[0] for row in registered],
    }


@app.get("/api/events/{event_id}", response_model=schemas.EventEnvelope)
def get_event(event_id: int, db: Session = Depends(get_db)):
    return {"event": _load_event(db, event_id)}


@app.post("/api/events", response_model=schemas.EventEnvelope, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: schemas.EventCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.require_event_admin),
):
    event = workflow.create_event(db, current_user, payload)
    return {"event": _load_event(db, event.id)}


@app.put("/api/events/{event_id}", response_model=schemas.EventEnvelope)
def update_event(
    event_id: int,
    payload: schemas.EventUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.require_event_admin),
):
    event = workflow.update_event(db, event_id, current_user, payload)
    return {"event": _load_event(db, event.id)}


@app.post("/api/events/{event_id}/like", response_model=schemas.LikeResponse)
def toggle_like(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user),
):
    _ensure_event_exists(db, event_id)
    existing = (
        db.query(models.EventLike)
        .filter(models.EventLike.event_id == event_id, models.EventLike.user_id == current_user.id)
        .first()
    )
    if existing:
        db.delete(existing)
        db.commit()
        log_event("event_unliked", event_id=event_id, user_id=current_user.id)
        return {"liked": False, "message": "Event unliked"}

    db.add(models.EventLike(user_id=current_user.id, event_id=event_id))
    try:
        db.commit()
    except IntegrityError:
        # a concurrent request wrote the like first; report what is stored now
        db.rollback()
        liked = (
            db.query(models.EventLike.id)
            .filter(models.EventLike.event_id == event_id, models.EventLike.user_id == current_user.id)
            .first()
            is not None
        )
        log_warning("event_like_conflict", event_id=event_id, user_id=current_user.id, liked=liked)
        return {"liked": liked, "message": "Event liked" if liked else "Event unliked"}
    log_event("event_liked", event_id=event_id, user_id=current_user.id)
    return {"liked": True, "message": "Event liked"}


@app.post("/api/events/{event_id}/register", response_model=schemas.MessageResponse)
def register_for_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user),
):
    _ensure_event_exists(db, event_id)
    existing = (
        db.query(models.EventRegistration.id)
        .filter(models.EventRegistration.event_id == event_id, models.EventRegistration.user_id == current_user.id)
        .first()
    )
    if existing:
        raise HTTPException(status_code=400, detail="Already registered for this event")

    db.add(models.EventRegistration(user_id=current_user.id, event_id=event_id))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="Already registered for this event")
    log_event("event_registered", event_id=event_id, user_id=current_user.id)
    return {"message": "Successfully registered for event"}


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------


@app.get("/api/me", response_model=schemas.UserEnvelope)
def get_me(current_user: models.User = Depends(auth.get_current_user)):
    return {"user": _serialize_user(current_user)}


@app.get("/api/me/likes", response_model=schemas.EventListResponse)
def my_likes(db: Session = Depends(get_db), current_user: models.User = Depends(auth.get_current_user)):
    base_query = (
        db.query(models.Event)
        .join(models.EventLike, models.Event.id == models.EventLike.event_id)
        .filter(models.EventLike.user_id == current_user.id)
        .order_by(models.EventLike.created_at.desc(), models.EventLike.id.desc())
    )
    return {"events": _serialize_rows(_events_with_counts_query(db, base_query).all())}


@app.get("/api/me/registrations", response_model=schemas.EventListResponse)
def my_registrations(db: Session = Depends(get_db), current_user: models.User = Depends(auth.get_current_user)):
    base_query = (
        db.query(models.Event)
        .join(models.EventRegistration, models.Event.id == models.EventRegistration.event_id)
        .filter(models.EventRegistration.user_id == current_user.id)
        .order_by(models.EventRegistration.created_at.desc(), models.EventRegistration.id.desc())
    )
    return {"events": _serialize_rows(_events_with_counts_query(db, base_query).all())}


@app.get("/api/me/events", response_model=schemas.EventListResponse)
def my_events(db: Session = Depends(get_db), current_user: models.User = Depends(auth.get_current_user)):
    base_query = (
        db.query(models.Event)
        .filter(models.Event.created_by_user_id == current_user.id)
        .order_by(models.Event.created_at.desc(), models.Event.id.desc())
    )
    return {"events": _serialize_rows(_events_with_counts_query(db, base_query).all())}


# ---------------------------------------------------------------------------
# Admin workflow
# ---------------------------------------------------------------------------


@app.post(
    "/api/admin/apply",
    response_model=schemas.AdminApplicationEnvelope,
    status_code=status.HTTP_201_CREATED,
)
def apply_for_admin(
    payload: schemas.AdminApplicationCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.get_current_user),
):
    application = workflow.submit_application(db, current_user, payload.motivation_text)
    return {"application": _serialize_application(application), "message": "Application submitted successfully"}


@app.get("/api/admin/applications/me", response_model=schemas.AdminApplicationListResponse)
def my_admin_applications(db: Session = Depends(get_db), current_user: models.User = Depends(auth.get_current_user)):
    applications = workflow.list_applications(db, user_id=current_user.id)
    return {"applications": [_serialize_application(application) for application in applications]}


@app.get("/api/admin/applications", response_model=schemas.AdminApplicationListResponse)
def admin_list_applications(
    application_status: Optional[models.ApplicationStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.require_ultimate_admin),
):
    applications = workflow.list_applications(db, application_status=application_status)
    return {"applications": [_serialize_application(application) for application in applications]}


@app.patch("/api/admin/applications/{application_id}", response_model=schemas.AdminApplicationEnvelope)
def admin_review_application(
    application_id: int,
    payload: schemas.AdminApplicationReview,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.require_ultimate_admin),
):
    application, message = workflow.review_application(db, application_id, current_user, payload.status)
    return {"application": _serialize_application(application), "message": message}


@app.get("/api/admin/events/pending", response_model=schemas.EventListResponse)
def admin_pending_events(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.require_ultimate_admin),
):
    base_query = (
        db.query(models.Event)
        .filter(models.Event.status == models.EventStatus.pending_approval)
        .order_by(models.Event.created_at.desc(), models.Event.id.desc())
    )
    return {"events": _serialize_rows(_events_with_counts_query(db, base_query).all())}


@app.get("/api/admin/events/all", response_model=schemas.EventListResponse)
def admin_all_events(
    event_status: Optional[models.EventStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.require_ultimate_admin),
):
    base_query = db.query(models.Event)
    if event_status is not None:
        base_query = base_query.filter(models.Event.status == event_status)
    base_query = base_query.order_by(models.Event.created_at.desc(), models.Event.id.desc())
    return {"events": _serialize_rows(_events_with_counts_query(db, base_query).all())}


@app.patch("/api/admin/events/{event_id}/status", response_model=schemas.EventStatusEnvelope)
def admin_set_event_status(
    event_id: int,
    payload: schemas.EventStatusUpdate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.require_ultimate_admin),
):
    event = workflow.set_event_status(db, event_id, current_user, payload.status, payload.rejection_reason)
    return {"event": _load_event(db, event.id), "message": f"Event status updated to {event.status.value}"}


@app.get("/api/admin/users", response_model=schemas.AdminUserListResponse)
def admin_list_users(
    role: Optional[models.UserRole] = None,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(auth.require_ultimate_admin),
):
    events_counts = (
        db.query(
            models.Event.created_by_user_id.label("user_id"),
            func.count(models.Event.id).label("created_events_count"),
        )
        .group_by(models.Event.created_by_user_id)
        .subquery()
    )
    likes_counts = (
        db.query(
            models.EventLike.user_id.label("user_id"),
            func.count(models.EventLike.id).label("likes_count"),
        )
        .group_by(models.EventLike.user_id)
        .subquery()
    )
    registrations_counts = (
        db.query(
            models.EventRegistration.user_id.label("user_id"),
            func.count(models.EventRegistration.id).label("registrations_count"),
        )
        .group_by(models.EventRegistration.user_id)
        .subquery()
    )

    query = (
        db.query(
            models.User,
            func.coalesce(events_counts.c.created_events_count, 0).label("created_events_count"),
            func.coalesce(likes_counts.c.likes_count, 0).label("likes_count"),
            func.coalesce(registrations_counts.c.registrations_count, 0).label("registrations_count"),
        )
        .options(selectinload(models.User.interests).joinedload(models.UserInterest.category))
        .outerjoin(events_counts, events_counts.c.user_id == models.User.id)
        .outerjoin(likes_counts, likes_counts.c.user_id == models.User.id)
        .outerjoin(registrations_counts, registrations_counts.c.user_id == models.User.id)
    )
    if role is not None:
        query = query.filter(models.User.role == role)
    rows = query.order_by(models.User.created_at.desc(), models.User.id.desc()).all()

    users: list[schemas.AdminUserResponse] = []
    for user, created_events_count, likes_count, registrations_count in rows:
        users.append(
            schemas.AdminUserResponse(
                **_serialize_user(user).model_dump(),
                created_at=user.created_at,
                created_events_count=int(created_events_count or 0),
                likes_count=int(likes_count or 0),
                registrations_count=int(registrations_count or 0),
            )
        )
    return {"users": users}
