"""
Assignment ledger service.

This service owns ImageAssignment records: merging new allocations into
a user's pending assignment, releasing images that moved to someone
else, reclaiming work from removed members, and reporting progress.

The sync helpers (release_images, merge_or_create, reclaim_member) are
building blocks for the distribution and project services and expect the
caller to hold the project lock.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from annoflow.domains import (
    PENDING_ASSIGNMENT_STATUSES,
    AnnotationStatus,
    AssignmentMetrics,
    AssignmentStatus,
    ImageAssignment,
    MemberRole,
    UserProgressMetrics,
)
from annoflow.exceptions import ConflictError, InvalidRequestError, NotFoundError
from annoflow.interfaces.repositories import (
    AssignmentRepository,
    ImageRepository,
    MemberRepository,
    ProjectRepository,
    SubmissionRepository,
)
from annoflow.interfaces.services import AssignmentLedger as AssignmentLedgerInterface
from annoflow.services.common import page_bounds, percentage, round_ratio
from annoflow.services.locking import ProjectLockRegistry

logger = logging.getLogger(__name__)


class AssignmentLedgerService(AssignmentLedgerInterface):
    """Service for image assignment bookkeeping."""

    def __init__(
        self,
        assignment_repository: AssignmentRepository,
        image_repository: ImageRepository,
        member_repository: MemberRepository,
        submission_repository: SubmissionRepository,
        project_repository: ProjectRepository,
        locks: Optional[ProjectLockRegistry] = None,
    ):
        """Initialize the assignment ledger.

        Args:
            assignment_repository: Repository for assignments
            image_repository: Repository for project images
            member_repository: Repository for project members
            submission_repository: Repository for submissions, used for activity
            project_repository: Repository for projects
            locks: Per-project lock registry shared with the other services
        """
        self.assignment_repository = assignment_repository
        self.image_repository = image_repository
        self.member_repository = member_repository
        self.submission_repository = submission_repository
        self.project_repository = project_repository
        self.locks = locks or ProjectLockRegistry()

    def release_images(
        self, project_id: str, image_ids: List[str], keep_assignment_id: Optional[str] = None
    ) -> int:
        """Remove images from every assignment that lists them.

        Assignments left empty are deleted; the others get a recomputed
        total.

        Args:
            project_id: Project ID
            image_ids: Images that changed hands
            keep_assignment_id: Assignment to leave untouched

        Returns:
            Number of assignments changed or deleted
        """
        if not image_ids:
            return 0

        released = set(image_ids)
        holders = self.assignment_repository.find_containing(
            project_id, image_ids, exclude_id=keep_assignment_id)

        for assignment in holders:
            remaining = [i for i in assignment.image_ids if i not in released]
            if remaining:
                self.assignment_repository.set_images(assignment.id, remaining)
            else:
                self.assignment_repository.delete(assignment.id)
                logger.info(
                    f"Deleted assignment {assignment.id} of user {assignment.user_id}: "
                    "all of its images were reassigned"
                )

        return len(holders)

    def merge_or_create(
        self, project_id: str, user_id: str, image_ids: List[str], assigned_by: Optional[str] = None
    ) -> ImageAssignment:
        """Merge images into the user's pending assignment or start a new one."""
        pending = self.assignment_repository.get_pending_for_user(project_id, user_id)
        if pending:
            merged = self.assignment_repository.append_images(pending.id, image_ids)
            if merged:
                return merged
            logger.warning(
                f"Assignment {pending.id} stopped being pending during merge; creating a new one")

        now = datetime.now()
        assignment = ImageAssignment(
            id=str(uuid.uuid4()),
            project_id=project_id,
            user_id=user_id,
            image_ids=list(dict.fromkeys(image_ids)),
            status=AssignmentStatus.ASSIGNED,
            completed_images=0,
            assigned_at=now,
            assigned_by=assigned_by,
            last_activity=now,
        )
        assignment.total_images = len(assignment.image_ids)
        self.assignment_repository.create(assignment)
        return assignment

    def reclaim_member(self, project_id: str, user_id: str) -> Tuple[int, int]:
        """Return a user's images to the pool.

        Returns:
            Tuple of (images unassigned, pending assignments deleted)
        """
        images = self.image_repository.unassign_user(project_id, user_id)
        assignments = self.assignment_repository.delete_pending_for_user(project_id, user_id)
        logger.info(
            f"Reclaimed {images} images and {assignments} pending assignments "
            f"from user {user_id} in project {project_id}"
        )
        return images, assignments

    async def get_assignment_metrics(self, project_id: str) -> AssignmentMetrics:
        """Get assignment progress for a project.

        Args:
            project_id: Project ID

        Returns:
            Project-wide image counts and per-annotator progress
        """
        if not self.project_repository.get_by_id(project_id):
            raise NotFoundError(f"Project not found: {project_id}")

        base = {"project_id": project_id}
        total = self.image_repository.count(base)
        unassigned = self.image_repository.count({**base, "assigned_to": None})
        annotated = self.image_repository.count(
            {**base, "annotation_status": AnnotationStatus.COMPLETED.value})
        assigned_unannotated = self.image_repository.count({
            **base,
            "assigned_to": {"$ne": None},
            "annotation_status": {"$ne": AnnotationStatus.COMPLETED.value},
        })

        annotators = self.member_repository.find_by_project(
            project_id, role=MemberRole.ANNOTATOR.value)
        user_progress = [self._user_progress(project_id, m.user_id) for m in annotators]

        return AssignmentMetrics(
            project_id=project_id,
            total_images=total,
            unassigned_images=unassigned,
            assigned_images=total - unassigned,
            annotated_images=annotated,
            redistributable_images=unassigned + assigned_unannotated,
            user_progress=user_progress,
        )

    def _user_progress(self, project_id: str, user_id: str) -> UserProgressMetrics:
        images = self.image_repository.find({"project_id": project_id, "assigned_to": user_id})
        done = [
            img for img in images
            if img.annotation_status == AnnotationStatus.COMPLETED.value
        ]
        time_spent = sum(img.time_spent for img in done)

        candidates = [img.annotated_at for img in images if img.annotated_at]
        candidates.append(self.assignment_repository.latest_activity(project_id, user_id))
        candidates.append(self.submission_repository.latest_submitted_at(project_id, user_id))
        seen = [c for c in candidates if c is not None]

        return UserProgressMetrics(
            user_id=user_id,
            total_assigned=len(images),
            annotated=len(done),
            unannotated=len(images) - len(done),
            progress=percentage(len(done), len(images)),
            time_spent=time_spent,
            average_time_per_image=round_ratio(time_spent, len(done)),
            last_activity=max(seen) if seen else None,
        )

    async def get_project_assignments(
        self, project_id: str, page: int = 1, limit: int = 20
    ) -> List[ImageAssignment]:
        skip, limit = page_bounds(page, limit)
        return self.assignment_repository.find_by_project(project_id, skip=skip, limit=limit)

    async def get_user_assignments(
        self, project_id: str, user_id: str, page: int = 1, limit: int = 20
    ) -> List[ImageAssignment]:
        skip, limit = page_bounds(page, limit)
        return self.assignment_repository.find_by_project(
            project_id, user_id=user_id, skip=skip, limit=limit)

    async def get_assignment(self, assignment_id: str) -> ImageAssignment:
        assignment = self.assignment_repository.get_by_id(assignment_id)
        if not assignment:
            raise NotFoundError(f"Assignment not found: {assignment_id}")
        return assignment

    async def update_assignment_status(
        self,
        assignment_id: str,
        status: AssignmentStatus,
        completed_images: Optional[int] = None,
    ) -> ImageAssignment:
        """Set the status of an assignment.

        Args:
            assignment_id: Assignment ID
            status: New status
            completed_images: Optional completed count, at most total_images

        Returns:
            The updated assignment
        """
        assignment = await self.get_assignment(assignment_id)

        try:
            status = AssignmentStatus(status)
        except ValueError:
            raise InvalidRequestError(f"Unknown assignment status: {status}")

        updates = {"status": status.value}
        if completed_images is not None:
            if completed_images < 0 or completed_images > assignment.total_images:
                raise InvalidRequestError(
                    f"completed_images must be between 0 and {assignment.total_images}")
            updates["completed_images"] = completed_images

        async with self.locks.hold(assignment.project_id):
            if status.value in PENDING_ASSIGNMENT_STATUSES:
                pending = self.assignment_repository.get_pending_for_user(
                    assignment.project_id, assignment.user_id)
                if pending and pending.id != assignment_id:
                    raise ConflictError(
                        f"User {assignment.user_id} already has pending assignment {pending.id}")
            self.assignment_repository.update(assignment_id, updates)

        return await self.get_assignment(assignment_id)
