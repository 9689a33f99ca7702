import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    TIMESTAMP,
    ForeignKey,
    Enum,
    Index,
    Numeric,
    UniqueConstraint,
    func,
    text,
    Boolean,
)
from sqlalchemy.orm import relationship
from .database import Base


class UserRole(str, enum.Enum):
    standard_user = "STANDARD_USER"
    event_admin = "EVENT_ADMIN"
    ultimate_admin = "ULTIMATE_ADMIN"


class EventStatus(str, enum.Enum):
    pending_approval = "PENDING_APPROVAL"
    published = "PUBLISHED"
    rejected = "REJECTED"


class ApplicationStatus(str, enum.Enum):
    pending = "PENDING"
    approved = "APPROVED"
    rejected = "REJECTED"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firebase_uid = Column(String(128), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(255))
    photo_url = Column(String(1000))
    is_student = Column(Boolean, nullable=False, server_default="true", default=True)
    college_name = Column(String(255))
    role = Column(
        Enum(UserRole, name="userrole", values_callable=_enum_values),
        nullable=False,
        default=UserRole.standard_user,
    )
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    interests = relationship("UserInterest", back_populates="user", cascade="all, delete-orphan")
    created_events = relationship("Event", back_populates="created_by", foreign_keys="Event.created_by_user_id")
    likes = relationship("EventLike", back_populates="user", cascade="all, delete-orphan")
    registrations = relationship("EventRegistration", back_populates="user", cascade="all, delete-orphan")
    admin_applications = relationship(
        "AdminApplication",
        back_populates="user",
        foreign_keys="AdminApplication.user_id",
        cascade="all, delete-orphan",
    )


class EventCategory(Base):
    __tablename__ = "event_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    slug = Column(String(100), unique=True, nullable=False)
    description = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)


class UserInterest(Base):
    __tablename__ = "user_interests"
    __table_args__ = (UniqueConstraint("user_id", "category_id", name="uq_user_interest"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("event_categories.id"), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="interests")
    category = relationship("EventCategory")


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(50), nullable=False)
    location = Column(String(255), nullable=False)
    district = Column(String(100), nullable=False, index=True)
    google_maps_link = Column(String(1000))
    primary_category_id = Column(Integer, ForeignKey("event_categories.id"), nullable=False, index=True)
    entry_fee = Column(Numeric(10, 2), nullable=True)
    is_free = Column(Boolean, nullable=False, server_default="false", default=False)
    prize_details = Column(Text)
    contact_email = Column(String(255), nullable=False)
    contact_phone = Column(String(50), nullable=False)
    external_registration_link = Column(String(1000))
    how_to_register_link = Column(String(1000))
    instagram_url = Column(String(1000))
    facebook_url = Column(String(1000))
    youtube_url = Column(String(1000))
    banner_url = Column(String(1000))
    status = Column(
        Enum(EventStatus, name="eventstatus", values_callable=_enum_values),
        nullable=False,
        default=EventStatus.pending_approval,
        index=True,
    )
    rejection_reason = Column(Text)
    created_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    created_by = relationship("User", back_populates="created_events", foreign_keys=[created_by_user_id])
    primary_category = relationship("EventCategory")
    additional_categories = relationship(
        "EventAdditionalCategory",
        back_populates="event",
        cascade="all, delete-orphan",
    )
    likes = relationship("EventLike", back_populates="event", cascade="all, delete-orphan")
    registrations = relationship("EventRegistration", back_populates="event", cascade="all, delete-orphan")


class EventAdditionalCategory(Base):
    __tablename__ = "event_additional_categories"
    __table_args__ = (UniqueConstraint("event_id", "category_id", name="uq_event_additional_category"),)

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("event_categories.id"), nullable=False, index=True)

    event = relationship("Event", back_populates="additional_categories")
    category = relationship("EventCategory")


class EventLike(Base):
    __tablename__ = "event_likes"
    __table_args__ = (UniqueConstraint("user_id", "event_id", name="uq_event_like"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="likes")
    event = relationship("Event", back_populates="likes")


class EventRegistration(Base):
    __tablename__ = "event_registrations"
    __table_args__ = (UniqueConstraint("user_id", "event_id", name="uq_event_registration"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="registrations")
    event = relationship("Event", back_populates="registrations")


class AdminApplication(Base):
    __tablename__ = "admin_applications"
    __table_args__ = (
        # at most one PENDING application per user
        Index(
            "uq_admin_application_pending",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'PENDING'"),
            postgresql_where=text("status = 'PENDING'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    motivation_text = Column(Text, nullable=False)
    status = Column(
        Enum(ApplicationStatus, name="applicationstatus", values_callable=_enum_values),
        nullable=False,
        default=ApplicationStatus.pending,
        index=True,
    )
    reviewed_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="admin_applications", foreign_keys=[user_id])
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_user_id])
