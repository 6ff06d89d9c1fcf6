"""
Repository interfaces for data access.

These interfaces define the contracts for data access components,
allowing for different storage implementations (MongoDB, memory, etc.)
without changing the workflow logic.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from annoflow.domains import (
    ImageAssignment,
    ProjectImage,
    Project,
    ProjectMember,
    ReviewHistoryItem,
    SubmissionReview,
)


class ProjectRepository(ABC):
    """Interface for project data access."""

    @abstractmethod
    def create(self, project: Project) -> str:
        """Create a project and return its ID."""
        pass

    @abstractmethod
    def get_by_id(self, project_id: str) -> Optional[Project]:
        """Get a project by ID."""
        pass

    @abstractmethod
    def update(self, project_id: str, updates: Dict[str, Any]) -> bool:
        """Apply field updates to a project."""
        pass


class MemberRepository(ABC):
    """Interface for project membership data access."""

    @abstractmethod
    def add(self, member: ProjectMember) -> str:
        """Add a membership and return its ID."""
        pass

    @abstractmethod
    def get(self, project_id: str, user_id: str) -> Optional[ProjectMember]:
        """Get the membership of a user in a project."""
        pass

    @abstractmethod
    def find_by_project(
        self, project_id: str, role: Optional[str] = None, skip: int = 0, limit: int = 0
    ) -> List[ProjectMember]:
        """List members of a project in stable membership order."""
        pass

    @abstractmethod
    def count(self, project_id: str, role: Optional[str] = None) -> int:
        """Count members of a project."""
        pass

    @abstractmethod
    def remove(self, project_id: str, user_id: str) -> bool:
        """Remove a membership."""
        pass


class ImageRepository(ABC):
    """Interface for project image data access."""

    @abstractmethod
    def create(self, image: ProjectImage) -> str:
        """Store an image record and return its ID."""
        pass

    @abstractmethod
    def get_by_id(self, image_id: str) -> Optional[ProjectImage]:
        """Get an image by ID."""
        pass

    @abstractmethod
    def find(self, query: Dict, sort: Optional[List[Tuple]] = None) -> List[ProjectImage]:
        """Find images matching a query."""
        pass

    @abstractmethod
    def find_by_ids(self, image_ids: List[str], query: Optional[Dict] = None) -> List[ProjectImage]:
        """Find the given images, optionally narrowed by a query."""
        pass

    @abstractmethod
    def count(self, query: Dict) -> int:
        """Count images matching a query."""
        pass

    @abstractmethod
    def claim(
        self,
        image_id: str,
        expected_owner: Optional[str],
        new_owner: str,
        require_incomplete_annotation: bool = False,
    ) -> bool:
        """Assign an image only if its current owner is still expected_owner."""
        pass

    @abstractmethod
    def update_many(self, image_ids: List[str], updates: Dict[str, Any]) -> int:
        """Set fields on the given images."""
        pass

    @abstractmethod
    def unassign_user(self, project_id: str, user_id: str) -> int:
        """Clear the owner of every image assigned to a user, keeping attribution."""
        pass


class AssignmentRepository(ABC):
    """Interface for image assignment data access."""

    @abstractmethod
    def create(self, assignment: ImageAssignment) -> str:
        """Create an assignment and return its ID."""
        pass

    @abstractmethod
    def get_by_id(self, assignment_id: str) -> Optional[ImageAssignment]:
        """Get an assignment by ID."""
        pass

    @abstractmethod
    def get_pending_for_user(self, project_id: str, user_id: str) -> Optional[ImageAssignment]:
        """Get the ASSIGNED or IN_PROGRESS assignment of a user, if any."""
        pass

    @abstractmethod
    def append_images(
        self, assignment_id: str, image_ids: List[str]
    ) -> Optional[ImageAssignment]:
        """Add images to a pending assignment; None if it is no longer pending."""
        pass

    @abstractmethod
    def find_containing(
        self, project_id: str, image_ids: List[str], exclude_id: Optional[str] = None
    ) -> List[ImageAssignment]:
        """Find assignments listing any of the given images."""
        pass

    @abstractmethod
    def find_by_project(
        self, project_id: str, user_id: Optional[str] = None, skip: int = 0, limit: int = 0
    ) -> List[ImageAssignment]:
        """List assignments of a project, newest first."""
        pass

    @abstractmethod
    def count(self, query: Dict) -> int:
        """Count assignments matching a query."""
        pass

    @abstractmethod
    def set_images(self, assignment_id: str, image_ids: List[str]) -> bool:
        """Replace the image set of an assignment and recompute its total."""
        pass

    @abstractmethod
    def update(self, assignment_id: str, updates: Dict[str, Any]) -> bool:
        """Apply field updates to an assignment."""
        pass

    @abstractmethod
    def transition(
        self, assignment_id: str, from_statuses: List[str], updates: Dict[str, Any]
    ) -> Optional[ImageAssignment]:
        """Apply updates only while the status is one of from_statuses."""
        pass

    @abstractmethod
    def delete(self, assignment_id: str) -> bool:
        """Delete an assignment."""
        pass

    @abstractmethod
    def delete_pending_for_user(self, project_id: str, user_id: str) -> int:
        """Delete every pending assignment of a user in a project."""
        pass

    @abstractmethod
    def latest_activity(self, project_id: str, user_id: str) -> Optional[datetime]:
        """Most recent last_activity across a user's assignments."""
        pass


class SubmissionRepository(ABC):
    """Interface for submission review data access."""

    @abstractmethod
    def create(self, submission: SubmissionReview) -> str:
        """Create a submission and return its ID."""
        pass

    @abstractmethod
    def get_by_id(self, submission_id: str) -> Optional[SubmissionReview]:
        """Get a submission by ID."""
        pass

    @abstractmethod
    def get_pending_for_user(self, project_id: str, user_id: str) -> Optional[SubmissionReview]:
        """Get the SUBMITTED or UNDER_REVIEW submission of a user, if any."""
        pass

    @abstractmethod
    def find(
        self, query: Dict, skip: int = 0, limit: int = 0
    ) -> List[SubmissionReview]:
        """Find submissions matching a query, newest first."""
        pass

    @abstractmethod
    def count(self, query: Dict) -> int:
        """Count submissions matching a query."""
        pass

    @abstractmethod
    def record_review(
        self, submission_id: str, updates: Dict[str, Any], history_item: ReviewHistoryItem
    ) -> Optional[SubmissionReview]:
        """Apply a review decision only while the submission is pending."""
        pass

    @abstractmethod
    def reject_pending(self, project_id: str, reviewed_by: str, feedback: str) -> int:
        """Force every pending submission of a project to REJECTED."""
        pass

    @abstractmethod
    def latest_submitted_at(self, project_id: str, user_id: str) -> Optional[datetime]:
        """Most recent submitted_at across a user's submissions."""
        pass
