from typing import Any, Optional
import datetime
import uuid

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Double, Enum, ForeignKeyConstraint, Index, Integer, PrimaryKeyConstraint, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from proofbench.core.enum import CourseCategory, UserRole, VideoResourceType
from proofbench.libs.formats.datetime import now


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    pass


class Profiles(Base):
    __tablename__ = 'profiles'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='profiles_pkey'),
        UniqueConstraint('email', name='profiles_email_key'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(Text)
    avatar_url: Mapped[Optional[str]] = mapped_column(Text)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole, name='user_role', values_callable=_enum_values), nullable=False, default=UserRole.STUDENT)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    courses: Mapped[list['Courses']] = relationship('Courses', back_populates='creator', passive_deletes=True)
    video_progress: Mapped[list['VideoProgress']] = relationship('VideoProgress', back_populates='user', passive_deletes=True)
    video_comments: Mapped[list['VideoComments']] = relationship('VideoComments', back_populates='user', passive_deletes=True)
    preference: Mapped[Optional['UserPreferences']] = relationship('UserPreferences', back_populates='user', passive_deletes=True)


class Courses(Base):
    __tablename__ = 'courses'
    __table_args__ = (
        ForeignKeyConstraint(['created_by'], ['profiles.id'], ondelete='CASCADE', name='courses_created_by_fkey'),
        PrimaryKeyConstraint('id', name='courses_pkey'),
        Index('idx_courses_created_at', 'created_at'),
        Index('idx_courses_category', 'category'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[CourseCategory] = mapped_column(Enum(CourseCategory, name='course_category', values_callable=_enum_values), nullable=False, default=CourseCategory.OTHER)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text)
    tags: Mapped[Optional[list[Any]]] = mapped_column(JSON)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    creator: Mapped['Profiles'] = relationship('Profiles', back_populates='courses')
    sections: Mapped[list['Sections']] = relationship('Sections', back_populates='course', passive_deletes=True, order_by='Sections.order_index')


class Sections(Base):
    __tablename__ = 'sections'
    __table_args__ = (
        ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE', name='sections_course_id_fkey'),
        PrimaryKeyConstraint('id', name='sections_pkey'),
        CheckConstraint('order_index >= 0', name='sections_order_index_check'),
        Index('idx_sections_course_order', 'course_id', 'order_index'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    course: Mapped['Courses'] = relationship('Courses', back_populates='sections')
    videos: Mapped[list['Videos']] = relationship('Videos', back_populates='section', passive_deletes=True, order_by='Videos.order_index')


class Videos(Base):
    __tablename__ = 'videos'
    __table_args__ = (
        ForeignKeyConstraint(['section_id'], ['sections.id'], ondelete='CASCADE', name='videos_section_id_fkey'),
        PrimaryKeyConstraint('id', name='videos_pkey'),
        CheckConstraint('order_index >= 0', name='videos_order_index_check'),
        Index('idx_videos_section_order', 'section_id', 'order_index'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    section_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    video_url: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    duration: Mapped[Optional[int]] = mapped_column(Integer, comment='Duration in seconds')
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    section: Mapped['Sections'] = relationship('Sections', back_populates='videos')
    resources: Mapped[list['VideoResources']] = relationship('VideoResources', back_populates='video', passive_deletes=True)
    progress: Mapped[list['VideoProgress']] = relationship('VideoProgress', back_populates='video', passive_deletes=True)
    comments: Mapped[list['VideoComments']] = relationship('VideoComments', back_populates='video', passive_deletes=True)


class VideoResources(Base):
    __tablename__ = 'video_resources'
    __table_args__ = (
        ForeignKeyConstraint(['video_id'], ['videos.id'], ondelete='CASCADE', name='video_resources_video_id_fkey'),
        PrimaryKeyConstraint('id', name='video_resources_pkey'),
        Index('idx_video_resources_video_id', 'video_id'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    video_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[VideoResourceType] = mapped_column(Enum(VideoResourceType, name='video_resource_type', values_callable=_enum_values), nullable=False, default=VideoResourceType.OTHER)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    video: Mapped['Videos'] = relationship('Videos', back_populates='resources')


class VideoProgress(Base):
    __tablename__ = 'video_progress'
    __table_args__ = (
        ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE', name='video_progress_user_id_fkey'),
        ForeignKeyConstraint(['video_id'], ['videos.id'], ondelete='CASCADE', name='video_progress_video_id_fkey'),
        PrimaryKeyConstraint('id', name='video_progress_pkey'),
        UniqueConstraint('user_id', 'video_id', name='video_progress_user_video_key'),
        CheckConstraint('watch_percentage >= 0 AND watch_percentage <= 100', name='video_progress_watch_percentage_check'),
        Index('idx_video_progress_user_last_watched', 'user_id', 'last_watched_at'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    video_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    last_position: Mapped[float] = mapped_column(Double, nullable=False, default=0)
    watch_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_watched_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    user: Mapped['Profiles'] = relationship('Profiles', back_populates='video_progress')
    video: Mapped['Videos'] = relationship('Videos', back_populates='progress')


class VideoComments(Base):
    __tablename__ = 'video_comments'
    __table_args__ = (
        ForeignKeyConstraint(['video_id'], ['videos.id'], ondelete='CASCADE', name='video_comments_video_id_fkey'),
        ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE', name='video_comments_user_id_fkey'),
        ForeignKeyConstraint(['parent_id'], ['video_comments.id'], ondelete='CASCADE', name='video_comments_parent_id_fkey'),
        PrimaryKeyConstraint('id', name='video_comments_pkey'),
        Index('idx_video_comments_video_created', 'video_id', 'created_at'),
        Index('idx_video_comments_parent_id', 'parent_id'),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    video_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    parent_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    video: Mapped['Videos'] = relationship('Videos', back_populates='comments')
    user: Mapped['Profiles'] = relationship('Profiles', back_populates='video_comments')
    parent: Mapped[Optional['VideoComments']] = relationship('VideoComments', remote_side=[id], back_populates='parent_reverse')
    parent_reverse: Mapped[list['VideoComments']] = relationship('VideoComments', remote_side=[parent_id], back_populates='parent', passive_deletes=True)


class UserPreferences(Base):
    __tablename__ = 'user_preferences'
    __table_args__ = (
        ForeignKeyConstraint(['user_id'], ['profiles.id'], ondelete='CASCADE', name='user_preferences_user_id_fkey'),
        PrimaryKeyConstraint('user_id', name='user_preferences_pkey'),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    admin_mode_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=now)

    user: Mapped['Profiles'] = relationship('Profiles', back_populates='preference')
