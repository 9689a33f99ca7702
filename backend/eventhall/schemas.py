from datetime import date as date_type, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from .models import ApplicationStatus, EventStatus, UserRole


class CamelModel(BaseModel):
    """Base for every request/response body: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CategoryResponse(CamelModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None


class CategoryListResponse(CamelModel):
    categories: List[CategoryResponse]


class InterestResponse(CamelModel):
    id: int
    category: CategoryResponse


class UserResponse(CamelModel):
    id: int
    firebase_uid: str
    email: str
    full_name: Optional[str] = None
    photo_url: Optional[str] = None
    role: UserRole
    is_student: bool = True
    college_name: Optional[str] = None
    interests: List[InterestResponse] = []


class UserEnvelope(CamelModel):
    user: UserResponse


class SyncProfile(CamelModel):
    full_name: Optional[str] = Field(None, max_length=255)
    photo_url: Optional[str] = Field(None, max_length=1000)
    is_student: Optional[bool] = None
    college_name: Optional[str] = Field(None, max_length=255)


class SyncUserRequest(CamelModel):
    id_token: Optional[str] = None
    profile: Optional[SyncProfile] = None


class SyncUserResponse(CamelModel):
    user: UserResponse
    needs_profile_completion: bool


class ProfileUpdate(CamelModel):
    full_name: Optional[str] = Field(None, max_length=255)
    is_student: Optional[bool] = None
    college_name: Optional[str] = Field(None, max_length=255)
    interests: Optional[List[int]] = None


class UpdateProfileRequest(CamelModel):
    id_token: Optional[str] = None
    profile: ProfileUpdate = Field(default_factory=ProfileUpdate)


class UserSummary(CamelModel):
    id: int
    email: str
    full_name: Optional[str] = None
    photo_url: Optional[str] = None


class ApplicantSummary(UserSummary):
    is_student: bool = True
    college_name: Optional[str] = None


class EventBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    date: date_type
    time: str = Field(..., min_length=1, max_length=50)
    location: str = Field(..., min_length=1, max_length=255)
    district: str = Field(..., min_length=1, max_length=100)
    google_maps_link: Optional[str] = Field(None, max_length=1000)
    primary_category_id: int
    additional_category_ids: List[int] = Field(default_factory=list)
    entry_fee: Optional[float] = Field(None, ge=0)
    is_free: bool = False
    prize_details: Optional[str] = None
    contact_email: EmailStr
    contact_phone: str = Field(..., min_length=1, max_length=50)
    external_registration_link: Optional[str] = Field(None, max_length=1000)
    how_to_register_link: Optional[str] = Field(None, max_length=1000)
    instagram_url: Optional[str] = Field(None, max_length=1000)
    facebook_url: Optional[str] = Field(None, max_length=1000)
    youtube_url: Optional[str] = Field(None, max_length=1000)
    banner_url: Optional[str] = Field(None, max_length=1000)


class EventCreate(EventBase):
    pass


class EventUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    date: Optional[date_type] = None
    time: Optional[str] = Field(None, min_length=1, max_length=50)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    district: Optional[str] = Field(None, min_length=1, max_length=100)
    google_maps_link: Optional[str] = Field(None, max_length=1000)
    primary_category_id: Optional[int] = None
    additional_category_ids: Optional[List[int]] = None
    entry_fee: Optional[float] = Field(None, ge=0)
    is_free: Optional[bool] = None
    prize_details: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = Field(None, min_length=1, max_length=50)
    external_registration_link: Optional[str] = Field(None, max_length=1000)
    how_to_register_link: Optional[str] = Field(None, max_length=1000)
    instagram_url: Optional[str] = Field(None, max_length=1000)
    facebook_url: Optional[str] = Field(None, max_length=1000)
    youtube_url: Optional[str] = Field(None, max_length=1000)
    banner_url: Optional[str] = Field(None, max_length=1000)


class EventResponse(CamelModel):
    id: int
    title: str
    description: str
    date: date_type
    time: str
    location: str
    district: str
    google_maps_link: Optional[str] = None
    primary_category_id: int
    primary_category: Optional[CategoryResponse] = None
    additional_categories: List[CategoryResponse] = []
    entry_fee: Optional[float] = None
    is_free: bool
    prize_details: Optional[str] = None
    contact_email: str
    contact_phone: str
    external_registration_link: Optional[str] = None
    how_to_register_link: Optional[str] = None
    instagram_url: Optional[str] = None
    facebook_url: Optional[str] = None
    youtube_url: Optional[str] = None
    banner_url: Optional[str] = None
    status: EventStatus
    rejection_reason: Optional[str] = None
    created_by_user_id: int
    created_by: Optional[UserSummary] = None
    likes_count: int = 0
    registrations_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EventEnvelope(CamelModel):
    event: EventResponse


class EventListResponse(CamelModel):
    events: List[EventResponse]


class CategoryEvents(CamelModel):
    category: CategoryResponse
    events: List[EventResponse]


class EventsByCategoryResponse(CamelModel):
    events_by_category: Dict[str, CategoryEvents]


class EventStatusUpdate(CamelModel):
    status: Optional[EventStatus] = None
    rejection_reason: Optional[str] = None


class EventStatusEnvelope(CamelModel):
    event: EventResponse
    message: str


class LikeResponse(CamelModel):
    liked: bool
    message: str


class MessageResponse(CamelModel):
    message: str


class InteractionCheckRequest(CamelModel):
    event_ids: List[int]


class InteractionCheckResponse(CamelModel):
    liked_event_ids: List[int]
    registered_event_ids: List[int]


class AdminApplicationCreate(CamelModel):
    motivation_text: Optional[str] = None


class AdminApplicationReview(CamelModel):
    status: Optional[ApplicationStatus] = None


class AdminApplicationResponse(CamelModel):
    id: int
    user_id: int
    motivation_text: str
    status: ApplicationStatus
    reviewed_by_user_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    user: Optional[ApplicantSummary] = None
    reviewed_by: Optional[UserSummary] = None


class AdminApplicationEnvelope(CamelModel):
    application: AdminApplicationResponse
    message: str


class AdminApplicationListResponse(CamelModel):
    applications: List[AdminApplicationResponse]


class AdminUserResponse(UserResponse):
    created_at: Optional[datetime] = None
    created_events_count: int = 0
    likes_count: int = 0
    registrations_count: int = 0


class AdminUserListResponse(CamelModel):
    users: List[AdminUserResponse]


class ErrorResponse(CamelModel):
    error: str
    details: Optional[object] = None
