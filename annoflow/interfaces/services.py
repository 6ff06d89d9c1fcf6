"""
Service interfaces for the annotation workflow.

These interfaces define the contracts the client facade and the CLI
depend on.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple, Union

from annoflow.domains import (
    Actor,
    AssignmentMetrics,
    AssignmentStatus,
    DistributionResult,
    ImageAssignment,
    ImageFeedback,
    MemberRole,
    PoolCounts,
    Project,
    ProjectClass,
    ProjectImage,
    ProjectMember,
    ProjectStats,
    ReviewDecision,
    SubmissionEligibility,
    SubmissionReview,
    SubmissionStats,
    SubmissionStatus,
    UserAllocation,
    UserSubmissionStatus,
)


class ImagePoolSelector(ABC):
    """Interface for selecting images eligible for distribution."""

    @abstractmethod
    async def get_pool(
        self, project_id: str, include_redistributable: bool = False
    ) -> List[ProjectImage]:
        """Get the eligible images in stable pool order."""
        pass

    @abstractmethod
    async def count_pool(self, project_id: str) -> PoolCounts:
        """Count eligible images without loading them."""
        pass


class DistributionService(ABC):
    """Interface for distributing images among annotators."""

    @abstractmethod
    async def distribute_manual(
        self,
        project_id: str,
        allocations: Sequence[Union[UserAllocation, Tuple[str, int]]],
        actor: Actor,
        reset_distribution: bool = False,
    ) -> DistributionResult:
        """Assign explicit image counts to annotators."""
        pass

    @abstractmethod
    async def distribute_smart(
        self, project_id: str, actor: Actor, reset_distribution: bool = False
    ) -> DistributionResult:
        """Split the pool evenly across annotators."""
        pass


class AssignmentLedger(ABC):
    """Interface for image assignment bookkeeping."""

    @abstractmethod
    def release_images(
        self, project_id: str, image_ids: List[str], keep_assignment_id: Optional[str] = None
    ) -> int:
        """Remove images from every assignment except keep_assignment_id."""
        pass

    @abstractmethod
    def merge_or_create(
        self, project_id: str, user_id: str, image_ids: List[str], assigned_by: Optional[str] = None
    ) -> ImageAssignment:
        """Add images to the user's pending assignment, creating one if needed."""
        pass

    @abstractmethod
    def reclaim_member(self, project_id: str, user_id: str) -> Tuple[int, int]:
        """Unassign a user's images and drop their pending assignments."""
        pass

    @abstractmethod
    async def get_assignment_metrics(self, project_id: str) -> AssignmentMetrics:
        """Get project-wide and per-annotator assignment progress."""
        pass

    @abstractmethod
    async def get_project_assignments(
        self, project_id: str, page: int = 1, limit: int = 20
    ) -> List[ImageAssignment]:
        """List assignments of a project."""
        pass

    @abstractmethod
    async def get_user_assignments(
        self, project_id: str, user_id: str, page: int = 1, limit: int = 20
    ) -> List[ImageAssignment]:
        """List assignments of a user in a project."""
        pass

    @abstractmethod
    async def get_assignment(self, assignment_id: str) -> ImageAssignment:
        """Get an assignment by ID."""
        pass

    @abstractmethod
    async def update_assignment_status(
        self,
        assignment_id: str,
        status: AssignmentStatus,
        completed_images: Optional[int] = None,
    ) -> ImageAssignment:
        """Set the status and optionally the completed count of an assignment."""
        pass


class SubmissionService(ABC):
    """Interface for the submit and review workflow."""

    @abstractmethod
    async def submit_for_review(
        self, project_id: str, user_id: str, assignment_id: str, message: str = ""
    ) -> SubmissionReview:
        """Submit the images of an assignment for review."""
        pass

    @abstractmethod
    async def review_submission(
        self, submission_id: str, reviewer: Actor, decision: ReviewDecision
    ) -> SubmissionReview:
        """Record a reviewer decision on a pending submission."""
        pass

    @abstractmethod
    async def reapply_review(self, submission_id: str) -> SubmissionReview:
        """Re-apply the effects of the latest review of a submission."""
        pass

    @abstractmethod
    async def can_user_submit(self, project_id: str, user_id: str) -> SubmissionEligibility:
        """Check whether a user may submit work for review."""
        pass

    @abstractmethod
    async def get_submission(self, submission_id: str) -> SubmissionReview:
        """Get a submission by ID."""
        pass

    @abstractmethod
    async def get_image_feedback(
        self, submission_id: str, image_id: str
    ) -> Optional[ImageFeedback]:
        """Get the reviewer feedback on one image of a submission."""
        pass

    @abstractmethod
    async def get_project_submissions(
        self,
        project_id: str,
        page: int = 1,
        limit: int = 20,
        status: Optional[SubmissionStatus] = None,
        user_id: Optional[str] = None,
    ) -> List[SubmissionReview]:
        """List submissions of a project, newest first."""
        pass

    @abstractmethod
    async def get_user_submissions(
        self, project_id: str, user_id: str, page: int = 1, limit: int = 20
    ) -> List[SubmissionReview]:
        """List submissions of a user in a project, newest first."""
        pass

    @abstractmethod
    async def get_submission_stats(self, project_id: str) -> SubmissionStats:
        """Count submissions of a project by status."""
        pass

    @abstractmethod
    async def get_user_project_submission_status(
        self, project_id: str, user_id: str
    ) -> UserSubmissionStatus:
        """Summarize the review progress of a user in a project."""
        pass


class ProjectAggregator(ABC):
    """Interface for recomputing project counters."""

    @abstractmethod
    async def compute_stats(self, project_id: str) -> ProjectStats:
        """Compute counters from image state without writing them."""
        pass

    @abstractmethod
    async def update_project_stats(self, project_id: str) -> ProjectStats:
        """Recompute and store the counters of a project."""
        pass


class ProjectService(ABC):
    """Interface for projects and their membership."""

    @abstractmethod
    async def create_project(
        self,
        name: str,
        actor: Actor,
        description: str = "",
        classes: Optional[List[ProjectClass]] = None,
        allow_custom_classes: bool = False,
    ) -> Project:
        """Create a project; the creator becomes a reviewer."""
        pass

    @abstractmethod
    async def get_project(self, project_id: str) -> Project:
        """Get a project by ID."""
        pass

    @abstractmethod
    async def add_member(
        self, project_id: str, user_id: str, role: MemberRole, actor: Actor
    ) -> ProjectMember:
        """Add a user to a project."""
        pass

    @abstractmethod
    async def get_members(
        self, project_id: str, page: int = 1, limit: int = 50
    ) -> List[ProjectMember]:
        """List members in membership order."""
        pass

    @abstractmethod
    async def is_member(
        self, project_id: str, user_id: str, role: Optional[MemberRole] = None
    ) -> bool:
        """Check membership, optionally with a given role."""
        pass

    @abstractmethod
    async def remove_member(self, project_id: str, user_id: str, actor: Actor) -> bool:
        """Remove a member and reclaim their incomplete work."""
        pass

    @abstractmethod
    async def mark_project_complete(self, project_id: str, actor: Actor) -> Project:
        """Complete a project whose images are all approved."""
        pass

    @abstractmethod
    async def is_project_complete(self, project_id: str) -> bool:
        """Check whether a project has been marked complete."""
        pass
