from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Text, UniqueConstraint, CheckConstraint, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

Base = declarative_base()


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("followers_count >= 0",
                        name="ck_users_followers_count_non_negative"),
        CheckConstraint("following_count >= 0",
                        name="ck_users_following_count_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    is_verified = Column(Boolean, default=False)
    # Profile
    about = Column(Text, nullable=True)
    profile_picture = Column(String, nullable=True)
    # Denormalized counters, maintained by FollowService only
    followers_count = Column(Integer, nullable=False,
                             default=0, server_default="0")
    following_count = Column(Integer, nullable=False,
                             default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    otp_codes = relationship("OTPCode", back_populates="user")
    contents = relationship("Content", back_populates="creator")
    series = relationship("Series", back_populates="creator")


class OTPCode(Base):
    __tablename__ = "otp_codes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"),
                     nullable=False, index=True)
    code = Column(String(6), nullable=False)  # 6-digit OTP code
    is_used = Column(Boolean, default=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="otp_codes")


class Follow(Base):
    """Directed edge: follower_id follows following_id."""
    __tablename__ = "follows"
    __table_args__ = (
        UniqueConstraint("follower_id", "following_id",
                         name="uq_follows_pair"),
        CheckConstraint("follower_id <> following_id",
                        name="ck_follows_no_self"),
    )

    id = Column(Integer, primary_key=True, index=True)
    follower_id = Column(Integer, ForeignKey(
        "users.id"), nullable=False, index=True)
    following_id = Column(Integer, ForeignKey(
        "users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Language(Base):
    __tablename__ = "languages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    code = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Series(Base):
    __tablename__ = "series"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id"),
                        nullable=False, index=True)
    tags = Column(JSON, nullable=False, default=list)
    language_id = Column(Integer, ForeignKey("languages.id"), nullable=False)
    category = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    trailer_url = Column(String, nullable=True)
    release_year = Column(Integer, nullable=True)
    total_seasons = Column(Integer, nullable=False, default=0)
    total_episodes = Column(Integer, nullable=False, default=0)
    is_subscription = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    creator = relationship("User", back_populates="series")
    episodes = relationship("Content", back_populates="series")


class Content(Base):
    __tablename__ = "contents"
    __table_args__ = (
        CheckConstraint("like_count >= 0",
                        name="ck_contents_like_count_non_negative"),
        CheckConstraint("dislike_count >= 0",
                        name="ck_contents_dislike_count_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # short, normal, movie, series
    type = Column(String, nullable=False, index=True)
    # video, episode, movie, trailer
    content_type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    creator_id = Column(Integer, ForeignKey("users.id"),
                        nullable=False, index=True)
    duration = Column(String, nullable=True)
    url = Column(String, nullable=False)
    thumbnail_url = Column(String, nullable=True)
    trailer_url = Column(String, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    view_count = Column(Integer, nullable=False, default=0)
    like_count = Column(Integer, nullable=False, default=0)
    dislike_count = Column(Integer, nullable=False, default=0)
    is_subscription = Column(Boolean, default=False)
    language_id = Column(Integer, ForeignKey("languages.id"), nullable=False)
    category = Column(String, nullable=False, index=True)
    series_id = Column(Integer, ForeignKey("series.id"),
                       nullable=True, index=True)
    season_number = Column(Integer, nullable=True)
    episode_number = Column(Integer, nullable=True)
    release_year = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), index=True)

    creator = relationship("User", back_populates="contents")
    series = relationship("Series", back_populates="episodes")


class Interaction(Base):
    __tablename__ = "interactions"
    __table_args__ = (
        UniqueConstraint("content_id", "user_id",
                         name="uq_interactions_content_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    content_id = Column(Integer, ForeignKey("contents.id"),
                        nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"),
                     nullable=False, index=True)
    type = Column(String, nullable=False)  # like, dislike
    created_at = Column(DateTime(timezone=True), server_default=func.now())
