from enum import Enum


class UserRole(str, Enum):
    """Role is the only authorization axis of a profile."""
    STUDENT = "student"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class CourseCategory(str, Enum):
    PROGRAMMING = "programming"
    DESIGN = "design"
    BUSINESS = "business"
    MARKETING = "marketing"
    PERSONAL_DEVELOPMENT = "personal_development"
    OTHER = "other"


class VideoResourceType(str, Enum):
    PDF = "pdf"
    NOTES = "notes"
    LINK = "link"
    CODE = "code"
    OTHER = "other"


class VideoProvider(str, Enum):
    YOUTUBE = "youtube"
    VIMEO = "vimeo"
    UNKNOWN = "unknown"


class ProgressState(str, Enum):
    """Watch state of one (user, video) pair."""
    UNTOUCHED = "untouched"      # no progress row yet
    IN_PROGRESS = "in_progress"  # row exists, completed = false
    COMPLETED = "completed"      # terminal


class Capability(str, Enum):
    MANAGE_COURSES = "manage_courses"
    MANAGE_USERS = "manage_users"
    CHANGE_ROLES = "change_roles"
    USE_ADMIN_MODE = "use_admin_mode"
