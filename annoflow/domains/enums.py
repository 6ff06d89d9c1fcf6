"""
Status and role enumerations shared by the workflow domain models.
"""
from enum import Enum


class UserRole(str, Enum):
    """System-wide role supplied by the authentication layer."""
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class MemberRole(str, Enum):
    """Role of a user inside a single project."""
    ANNOTATOR = "ANNOTATOR"
    REVIEWER = "REVIEWER"


class ProjectStatus(str, Enum):
    """Authoritative lifecycle status of a project."""
    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class ProgressStatus(str, Enum):
    """Derived progress of a project, recomputed from image state."""
    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class ImageStatus(str, Enum):
    """Workflow position of a project image."""
    UPLOADED = "UPLOADED"
    ASSIGNED = "ASSIGNED"
    ANNOTATED = "ANNOTATED"
    UNDER_REVIEW = "UNDER_REVIEW"
    REVIEWED = "REVIEWED"
    APPROVED = "APPROVED"


class AnnotationStatus(str, Enum):
    """Annotation progress of a project image."""
    UNANNOTATED = "UNANNOTATED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class ReviewStatus(str, Enum):
    """Review outcome of a project image."""
    NOT_REVIEWED = "NOT_REVIEWED"
    UNDER_REVIEW = "UNDER_REVIEW"
    FLAGGED = "FLAGGED"
    APPROVED = "APPROVED"


class AssignmentStatus(str, Enum):
    """Status of an image assignment."""
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    NEEDS_REVISION = "NEEDS_REVISION"
    COMPLETED = "COMPLETED"


class SubmissionStatus(str, Enum):
    """Status of a submission review."""
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    REJECTED = "REJECTED"
    APPROVED = "APPROVED"


class ActivityAction(str, Enum):
    """Audit actions recorded for mutating workflow calls."""
    PROJECT_CREATED = "PROJECT_CREATED"
    PROJECT_COMPLETED = "PROJECT_COMPLETED"
    MEMBER_ADDED = "MEMBER_ADDED"
    MEMBER_REMOVED = "MEMBER_REMOVED"
    IMAGES_ASSIGNED = "IMAGES_ASSIGNED"
    IMAGES_REASSIGNED = "IMAGES_REASSIGNED"
    SUBMISSION_CREATED = "SUBMISSION_CREATED"
    SUBMISSION_REVIEWED = "SUBMISSION_REVIEWED"


PENDING_ASSIGNMENT_STATUSES = [
    AssignmentStatus.ASSIGNED.value,
    AssignmentStatus.IN_PROGRESS.value,
]

PENDING_SUBMISSION_STATUSES = [
    SubmissionStatus.SUBMITTED.value,
    SubmissionStatus.UNDER_REVIEW.value,
]

ADMIN_ROLES = [UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value]
