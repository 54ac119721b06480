from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


# Auth

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50, examples=["maria"])
    email: EmailStr = Field(..., examples=["maria@example.com"])


class LoginRequest(BaseModel):
    email: EmailStr


class OTPVerify(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6, examples=["123456"])
    # Optional display name chosen during sign-up
    username: Optional[str] = Field(None, max_length=50)


class OTPResponse(BaseModel):
    success: bool
    message: str
    expires_in_minutes: Optional[int] = None
    otp: Optional[str] = None  # Only populated in debug mode


class AuthResponse(BaseModel):
    success: bool
    token: str
    user: "UserResponse"


# Users

class CreatorSummary(BaseModel):
    id: int
    username: str
    profile_picture: Optional[str] = None
    followers_count: int = 0
    model_config = ConfigDict(from_attributes=True)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    about: Optional[str] = None
    profile_picture: Optional[str] = None
    is_verified: bool
    followers_count: int
    following_count: int
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class PublicUserResponse(BaseModel):
    id: int
    username: str
    about: Optional[str] = None
    profile_picture: Optional[str] = None
    followers_count: int
    following_count: int
    is_following: Optional[bool] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str


# Follow

class FollowRequest(BaseModel):
    user_id: int = Field(..., examples=[42])


class FollowStatusResponse(BaseModel):
    is_following: bool


class FollowUserResponse(BaseModel):
    id: int
    username: str
    profile_picture: Optional[str] = None
    followers_count: int
    following_count: int
    followed_at: Optional[datetime] = None


class PaginatedFollowUsers(BaseModel):
    items: list[FollowUserResponse]
    total: int
    limit: int
    offset: int


# Reference data

class LanguageResponse(BaseModel):
    id: int
    name: str
    code: str
    model_config = ConfigDict(from_attributes=True)


class CategoryResponse(BaseModel):
    id: int
    name: str
    model_config = ConfigDict(from_attributes=True)


# Content

class ContentResponse(BaseModel):
    id: int
    type: str
    content_type: str
    title: str
    description: Optional[str] = None
    duration: Optional[str] = None
    url: str
    thumbnail_url: Optional[str] = None
    trailer_url: Optional[str] = None
    tags: List[str] = []
    view_count: int = 0
    like_count: int = 0
    dislike_count: int = 0
    is_subscription: bool = False
    language_id: int
    category: str
    series_id: Optional[int] = None
    season_number: Optional[int] = None
    episode_number: Optional[int] = None
    release_year: Optional[int] = None
    created_at: Optional[datetime] = None
    creator_id: int
    creator: Optional[CreatorSummary] = None
    model_config = ConfigDict(from_attributes=True)


class ContentDetailResponse(ContentResponse):
    total_likes: int
    total_dislikes: int
    liked_by_me: bool
    disliked_by_me: bool


class SeriesResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    tags: List[str] = []
    language_id: int
    category: Optional[str] = None
    thumbnail_url: Optional[str] = None
    trailer_url: Optional[str] = None
    release_year: Optional[int] = None
    total_seasons: int = 0
    total_episodes: int = 0
    is_subscription: bool = False
    created_at: Optional[datetime] = None
    creator_id: int
    creator: Optional[CreatorSummary] = None
    model_config = ConfigDict(from_attributes=True)


class ContentPage(BaseModel):
    videos: list[ContentResponse]
    total_count: int
    has_more: bool


class GroupedVideosResponse(BaseModel):
    normal: ContentPage
    short: ContentPage
    movie: ContentPage
    series: ContentPage


class UserContentResponse(BaseModel):
    contents: list[ContentResponse]
    series: list[SeriesResponse]


class CarouselItem(BaseModel):
    id: int
    title: str
    thumbnail_url: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class ReactionResponse(BaseModel):
    reaction: Optional[str] = None
    like_count: int
    dislike_count: int


class UploadResponse(BaseModel):
    message: str
    id: int


AuthResponse.model_rebuild()
