"""
Submission workflow service.

This service owns SubmissionReview records: creating a submission from an
assignment, recording reviewer decisions with their per-image flags and
feedback, and pushing the decision back onto images and assignments.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from annoflow.domains import (
    PENDING_SUBMISSION_STATUSES,
    ActivityAction,
    Actor,
    AnnotationStatus,
    AssignmentStatus,
    ImageFeedback,
    ImageStatus,
    MemberRole,
    ProjectStatus,
    ReviewDecision,
    ReviewHistoryItem,
    ReviewStatus,
    SubmissionEligibility,
    SubmissionReview,
    SubmissionStats,
    SubmissionStatus,
    UserSubmissionStatus,
)
from annoflow.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from annoflow.interfaces.providers.activity_log import ActivityLogProvider
from annoflow.interfaces.repositories import (
    AssignmentRepository,
    ImageRepository,
    MemberRepository,
    ProjectRepository,
    SubmissionRepository,
)
from annoflow.interfaces.services import (
    ProjectAggregator,
    SubmissionService as SubmissionServiceInterface,
)
from annoflow.services.common import page_bounds, percentage, record_activity
from annoflow.services.locking import ProjectLockRegistry

logger = logging.getLogger(__name__)

# Assignment status each review decision leads to
ASSIGNMENT_STATUS_FOR_DECISION = {
    SubmissionStatus.APPROVED.value: AssignmentStatus.COMPLETED.value,
    SubmissionStatus.REJECTED.value: AssignmentStatus.NEEDS_REVISION.value,
    SubmissionStatus.UNDER_REVIEW.value: AssignmentStatus.UNDER_REVIEW.value,
}

SUBMITTABLE_ASSIGNMENT_STATUSES = [
    AssignmentStatus.ASSIGNED.value,
    AssignmentStatus.IN_PROGRESS.value,
    AssignmentStatus.NEEDS_REVISION.value,
    AssignmentStatus.COMPLETED.value,
]

REASON_PROJECT_COMPLETE = "Project is marked as complete"
REASON_PENDING_SUBMISSION = "You have a pending submission awaiting review"
REASON_NO_IMAGES = "No images assigned to you"
REASON_NOTHING_TO_SUBMIT = "All your assigned images are already approved or not fully annotated"


class SubmissionService(SubmissionServiceInterface):
    """Service for submitting annotation work and reviewing it."""

    def __init__(
        self,
        project_repository: ProjectRepository,
        member_repository: MemberRepository,
        image_repository: ImageRepository,
        assignment_repository: AssignmentRepository,
        submission_repository: SubmissionRepository,
        aggregator: ProjectAggregator,
        locks: Optional[ProjectLockRegistry] = None,
        activity_log: Optional[ActivityLogProvider] = None,
    ):
        """Initialize the submission service.

        Args:
            project_repository: Repository for projects
            member_repository: Repository for project members
            image_repository: Repository for project images
            assignment_repository: Repository for assignments
            submission_repository: Repository for submissions
            aggregator: Recomputes project counters after each change
            locks: Per-project lock registry shared with the other services
            activity_log: Optional audit sink
        """
        self.project_repository = project_repository
        self.member_repository = member_repository
        self.image_repository = image_repository
        self.assignment_repository = assignment_repository
        self.submission_repository = submission_repository
        self.aggregator = aggregator
        self.locks = locks or ProjectLockRegistry()
        self.activity_log = activity_log

    def _require_project(self, project_id: str):
        project = self.project_repository.get_by_id(project_id)
        if not project:
            raise NotFoundError(f"Project not found: {project_id}")
        return project

    async def submit_for_review(
        self, project_id: str, user_id: str, assignment_id: str, message: str = ""
    ) -> SubmissionReview:
        """Submit the images of an assignment for review.

        Images that are already approved are left out of the submission.

        Args:
            project_id: Project ID
            user_id: Submitting annotator
            assignment_id: Assignment whose images are submitted
            message: Optional note for the reviewer

        Returns:
            The created submission
        """
        async with self.locks.hold(project_id):
            project = self._require_project(project_id)
            if project.status == ProjectStatus.COMPLETED.value:
                raise ConflictError("Cannot submit to a project that is marked as complete")

            assignment = self.assignment_repository.get_by_id(assignment_id)
            if not assignment or assignment.project_id != project_id:
                raise NotFoundError(f"Assignment not found: {assignment_id}")
            if assignment.user_id != user_id:
                raise ForbiddenError("You can only submit your own assignments")
            if assignment.status not in SUBMITTABLE_ASSIGNMENT_STATUSES:
                raise ConflictError("This assignment has already been submitted for review")

            if self.submission_repository.get_pending_for_user(project_id, user_id):
                raise ConflictError("You already have a pending submission for this project")

            approved = {
                image.id for image in self.image_repository.find_by_ids(
                    assignment.image_ids, {"review_status": ReviewStatus.APPROVED.value})
            }
            submittable = [i for i in assignment.image_ids if i not in approved]
            if not submittable:
                raise InvalidRequestError("No images available to submit")

            moved = self.assignment_repository.transition(
                assignment_id,
                SUBMITTABLE_ASSIGNMENT_STATUSES,
                {"status": AssignmentStatus.SUBMITTED.value},
            )
            if not moved:
                raise ConflictError("This assignment has already been submitted for review")

            submission = SubmissionReview(
                id=str(uuid.uuid4()),
                project_id=project_id,
                user_id=user_id,
                assignment_id=assignment_id,
                image_ids=submittable,
                status=SubmissionStatus.SUBMITTED,
                message=message or "",
                submitted_at=datetime.now(),
            )
            self.submission_repository.create(submission)

            self.image_repository.update_many(
                submittable,
                {
                    "status": ImageStatus.UNDER_REVIEW.value,
                    "current_submission_id": submission.id,
                }
            )

            logger.info(
                f"User {user_id} submitted {len(submittable)} images of assignment "
                f"{assignment_id} for review"
            )
            record_activity(
                self.activity_log,
                user_id,
                ActivityAction.SUBMISSION_CREATED,
                project_id=project_id,
                details={"submission_id": submission.id, "image_count": len(submittable)},
            )

            await self.aggregator.update_project_stats(project_id)
            return submission

    async def review_submission(
        self, submission_id: str, reviewer: Actor, decision: ReviewDecision
    ) -> SubmissionReview:
        """Record a reviewer decision on a pending submission.

        Args:
            submission_id: Submission ID
            reviewer: Reviewing user, an admin or a REVIEWER member
            decision: Status, feedback, flagged images and per-image feedback

        Returns:
            The updated submission
        """
        existing = self.submission_repository.get_by_id(submission_id)
        if not existing:
            raise NotFoundError(f"Submission not found: {submission_id}")

        project_id = existing.project_id
        async with self.locks.hold(project_id):
            submission = self.submission_repository.get_by_id(submission_id)
            if submission.status not in PENDING_SUBMISSION_STATUSES:
                raise ConflictError("Submission is not available for review")

            if not reviewer.is_admin:
                member = self.member_repository.get(project_id, reviewer.user_id)
                if not member or member.role != MemberRole.REVIEWER.value:
                    raise ForbiddenError("Only reviewers can review submissions")

            status = SubmissionStatus(decision.status).value
            if status == SubmissionStatus.SUBMITTED.value:
                raise InvalidRequestError("A review decision cannot set status SUBMITTED")

            submitted = set(submission.image_ids)
            for flagged in decision.flagged_images:
                if flagged.image_id not in submitted:
                    raise InvalidRequestError(
                        f"Flagged image {flagged.image_id} is not part of this submission")
            image_feedback = [fb for fb in decision.image_feedback if fb.feedback.strip()]
            for fb in image_feedback:
                if fb.image_id not in submitted:
                    raise InvalidRequestError(
                        f"Feedback image {fb.image_id} is not part of this submission")

            now = datetime.now()
            history_item = ReviewHistoryItem(
                reviewed_by=reviewer.user_id,
                reviewed_at=now,
                status=status,
                feedback=decision.feedback or "",
                flagged_images=decision.flagged_images,
                image_feedback=image_feedback,
            )
            updated = self.submission_repository.record_review(
                submission_id,
                {
                    "status": status,
                    "feedback": history_item.feedback,
                    "flagged_images": [f.model_dump() for f in history_item.flagged_images],
                    "image_feedback": [f.model_dump() for f in history_item.image_feedback],
                    "reviewed_by": reviewer.user_id,
                    "reviewed_at": now,
                },
                history_item,
            )
            if not updated:
                raise ConflictError("Submission was reviewed concurrently")

            self._apply_review(updated, history_item)

            logger.info(f"Submission {submission_id} reviewed by {reviewer.user_id}: {status}")
            record_activity(
                self.activity_log,
                reviewer.user_id,
                ActivityAction.SUBMISSION_REVIEWED,
                project_id=project_id,
                details={
                    "submission_id": submission_id,
                    "status": status,
                    "flagged_count": len(history_item.flagged_images),
                },
            )

            await self.aggregator.update_project_stats(project_id)
            return updated

    async def reapply_review(self, submission_id: str) -> SubmissionReview:
        """Re-apply the image and assignment effects of the latest review.

        Used to converge after a review whose follow-up writes were
        interrupted. Every effect is a plain field assignment, so applying
        it twice is harmless.
        """
        existing = self.submission_repository.get_by_id(submission_id)
        if not existing:
            raise NotFoundError(f"Submission not found: {submission_id}")

        async with self.locks.hold(existing.project_id):
            submission = self.submission_repository.get_by_id(submission_id)
            if not submission.review_history:
                raise ConflictError("Submission has not been reviewed yet")

            pending = self.submission_repository.get_pending_for_user(
                submission.project_id, submission.user_id)
            if pending and pending.id != submission.id:
                raise ConflictError("A newer submission from this user is pending review")

            self._apply_review(submission, submission.review_history[-1])
            await self.aggregator.update_project_stats(submission.project_id)
            return submission

    def _apply_review(self, submission: SubmissionReview, item: ReviewHistoryItem) -> None:
        status = item.status
        reviewed = {"reviewed_by": item.reviewed_by, "reviewed_at": item.reviewed_at}

        # Images moved on to a newer submission or a new owner keep their newer state
        image_ids = [
            image.id for image in self.image_repository.find_by_ids(
                submission.image_ids,
                {"current_submission_id": submission.id, "assigned_to": submission.user_id},
            )
        ]

        if status == SubmissionStatus.APPROVED.value:
            self.image_repository.update_many(image_ids, {
                "status": ImageStatus.APPROVED.value,
                "review_status": ReviewStatus.APPROVED.value,
                **reviewed,
            })
        elif status == SubmissionStatus.REJECTED.value:
            flagged = {f.image_id for f in item.flagged_images}
            self.image_repository.update_many([i for i in image_ids if i in flagged], {
                "status": ImageStatus.REVIEWED.value,
                "review_status": ReviewStatus.FLAGGED.value,
                **reviewed,
            })
            self.image_repository.update_many([i for i in image_ids if i not in flagged], {
                "status": ImageStatus.ANNOTATED.value,
                **reviewed,
            })

        assignment_status = ASSIGNMENT_STATUS_FOR_DECISION[status]
        self.assignment_repository.update(submission.assignment_id, {"status": assignment_status})

        assignment = self.assignment_repository.get_by_id(submission.assignment_id)
        if assignment and assignment.image_ids:
            approved = self.image_repository.count({
                "id": {"$in": assignment.image_ids},
                "review_status": ReviewStatus.APPROVED.value,
            })
            if approved == len(assignment.image_ids):
                self.assignment_repository.update(assignment.id, {
                    "status": AssignmentStatus.COMPLETED.value,
                    "completed_images": assignment.total_images,
                })

    async def can_user_submit(self, project_id: str, user_id: str) -> SubmissionEligibility:
        """Check whether a user may submit work for review. Never writes."""
        project = self._require_project(project_id)
        if project.status == ProjectStatus.COMPLETED.value:
            return SubmissionEligibility(can_submit=False, reason=REASON_PROJECT_COMPLETE)

        base = {"project_id": project_id, "assigned_to": user_id}
        has_assigned = self.image_repository.count(base) > 0

        if self.submission_repository.get_pending_for_user(project_id, user_id):
            return SubmissionEligibility(
                can_submit=False,
                reason=REASON_PENDING_SUBMISSION,
                has_assigned_images=has_assigned,
                pending_submission=True,
            )

        if not has_assigned:
            return SubmissionEligibility(can_submit=False, reason=REASON_NO_IMAGES)

        ready = self.image_repository.count({
            **base,
            "annotation_status": AnnotationStatus.COMPLETED.value,
            "review_status": {"$ne": ReviewStatus.APPROVED.value},
        })
        if ready == 0:
            return SubmissionEligibility(
                can_submit=False, reason=REASON_NOTHING_TO_SUBMIT, has_assigned_images=True)

        return SubmissionEligibility(can_submit=True, has_assigned_images=True)

    async def get_submission(self, submission_id: str) -> SubmissionReview:
        submission = self.submission_repository.get_by_id(submission_id)
        if not submission:
            raise NotFoundError(f"Submission not found: {submission_id}")
        return submission

    async def get_image_feedback(
        self, submission_id: str, image_id: str
    ) -> Optional[ImageFeedback]:
        submission = await self.get_submission(submission_id)
        if image_id not in submission.image_ids:
            raise InvalidRequestError(f"Image {image_id} is not part of this submission")
        for feedback in submission.image_feedback:
            if feedback.image_id == image_id:
                return feedback
        return None

    async def get_project_submissions(
        self,
        project_id: str,
        page: int = 1,
        limit: int = 20,
        status: Optional[SubmissionStatus] = None,
        user_id: Optional[str] = None,
    ) -> List[SubmissionReview]:
        skip, limit = page_bounds(page, limit)
        query = {"project_id": project_id}
        if status:
            query["status"] = SubmissionStatus(status).value
        if user_id:
            query["user_id"] = user_id
        return self.submission_repository.find(query, skip=skip, limit=limit)

    async def get_user_submissions(
        self, project_id: str, user_id: str, page: int = 1, limit: int = 20
    ) -> List[SubmissionReview]:
        return await self.get_project_submissions(
            project_id, page=page, limit=limit, user_id=user_id)

    async def get_submission_stats(self, project_id: str) -> SubmissionStats:
        base = {"project_id": project_id}
        return SubmissionStats(
            total_submissions=self.submission_repository.count(base),
            pending_submissions=self.submission_repository.count(
                {**base, "status": {"$in": PENDING_SUBMISSION_STATUSES}}),
            approved_submissions=self.submission_repository.count(
                {**base, "status": SubmissionStatus.APPROVED.value}),
            rejected_submissions=self.submission_repository.count(
                {**base, "status": SubmissionStatus.REJECTED.value}),
        )

    async def get_user_project_submission_status(
        self, project_id: str, user_id: str
    ) -> UserSubmissionStatus:
        """Summarize where a user's images stand in review."""
        eligibility = await self.can_user_submit(project_id, user_id)

        base = {"project_id": project_id, "assigned_to": user_id}
        total = self.image_repository.count(base)
        approved = self.image_repository.count(
            {**base, "review_status": ReviewStatus.APPROVED.value})

        return UserSubmissionStatus(
            total_assigned=total,
            completed=self.image_repository.count({
                **base,
                "annotation_status": AnnotationStatus.COMPLETED.value,
                "review_status": ReviewStatus.NOT_REVIEWED.value,
            }),
            flagged=self.image_repository.count(
                {**base, "review_status": ReviewStatus.FLAGGED.value}),
            approved=approved,
            pending_review=self.image_repository.count(
                {**base, "status": ImageStatus.UNDER_REVIEW.value}),
            progress=percentage(approved, total),
            can_submit=eligibility.can_submit,
            pending_submission=self.submission_repository.get_pending_for_user(
                project_id, user_id),
        )
