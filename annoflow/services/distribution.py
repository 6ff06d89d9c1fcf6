"""
Distribution engine.

Hands images from the pool to annotators, either with explicit per-user
counts or as an even split across every annotator of the project.
"""
import logging
from typing import List, Optional, Sequence, Tuple, Union

from annoflow.domains import (
    ActivityAction,
    Actor,
    DistributionResult,
    MemberRole,
    ProjectImage,
    UserAllocation,
)
from annoflow.exceptions import InvalidRequestError
from annoflow.interfaces.providers.activity_log import ActivityLogProvider
from annoflow.interfaces.repositories import ImageRepository, MemberRepository
from annoflow.interfaces.services import (
    AssignmentLedger,
    DistributionService as DistributionServiceInterface,
    ImagePoolSelector,
)
from annoflow.services.common import record_activity, require_admin
from annoflow.services.locking import ProjectLockRegistry

logger = logging.getLogger(__name__)


class DistributionService(DistributionServiceInterface):
    """Service for distributing project images among annotators."""

    def __init__(
        self,
        member_repository: MemberRepository,
        image_repository: ImageRepository,
        image_pool: ImagePoolSelector,
        assignment_ledger: AssignmentLedger,
        locks: Optional[ProjectLockRegistry] = None,
        activity_log: Optional[ActivityLogProvider] = None,
    ):
        """Initialize the distribution service.

        Args:
            member_repository: Repository for project members
            image_repository: Repository for project images
            image_pool: Selector for eligible images
            assignment_ledger: Ledger that records the resulting assignments
            locks: Per-project lock registry shared with the other services
            activity_log: Optional audit sink
        """
        self.member_repository = member_repository
        self.image_repository = image_repository
        self.image_pool = image_pool
        self.assignment_ledger = assignment_ledger
        self.locks = locks or ProjectLockRegistry()
        self.activity_log = activity_log

    async def distribute_manual(
        self,
        project_id: str,
        allocations: Sequence[Union[UserAllocation, Tuple[str, int]]],
        actor: Actor,
        reset_distribution: bool = False,
    ) -> DistributionResult:
        """Assign explicit image counts to annotators, in the order given.

        Args:
            project_id: Project ID
            allocations: (user_id, count) pairs or UserAllocation objects
            actor: Calling user, must be an admin
            reset_distribution: Also take back assigned images whose
                annotation is not complete

        Returns:
            Counts granted per user and the pool left over
        """
        require_admin(actor, "distribute images")

        async with self.locks.hold(project_id):
            pool = await self.image_pool.get_pool(
                project_id, include_redistributable=reset_distribution)
            if not pool:
                raise InvalidRequestError("No images available for distribution")

            plan = [self._parse_allocation(a) for a in allocations]
            # Every target is checked before anything is written
            for user_id in dict.fromkeys(user_id for user_id, _ in plan):
                member = self.member_repository.get(project_id, user_id)
                if not member or member.role != MemberRole.ANNOTATOR.value:
                    raise InvalidRequestError(
                        f"User {user_id} is not an annotator in this project")

            return self._distribute(project_id, pool, plan, actor, reset_distribution)

    async def distribute_smart(
        self, project_id: str, actor: Actor, reset_distribution: bool = False
    ) -> DistributionResult:
        """Split the pool evenly across annotators in membership order.

        Each annotator gets floor(pool / annotators) images and the first
        pool % annotators of them get one more.
        """
        require_admin(actor, "distribute images")

        async with self.locks.hold(project_id):
            pool = await self.image_pool.get_pool(
                project_id, include_redistributable=reset_distribution)

            annotators = self.member_repository.find_by_project(
                project_id, role=MemberRole.ANNOTATOR.value)
            if not annotators:
                raise InvalidRequestError("No annotators found in this project")
            if not pool:
                raise InvalidRequestError("No images available for distribution")

            base, extra = divmod(len(pool), len(annotators))
            plan = [
                (member.user_id, base + (1 if index < extra else 0))
                for index, member in enumerate(annotators)
            ]

            return self._distribute(project_id, pool, plan, actor, reset_distribution)

    @staticmethod
    def _parse_allocation(allocation: Union[UserAllocation, Tuple[str, int]]) -> Tuple[str, int]:
        if isinstance(allocation, UserAllocation):
            user_id, count = allocation.user_id, allocation.count
        else:
            try:
                user_id, count = allocation
            except (TypeError, ValueError):
                raise InvalidRequestError(f"Invalid allocation: {allocation!r}")

        if not user_id:
            raise InvalidRequestError("Allocation is missing a user id")
        if isinstance(count, bool) or not isinstance(count, int):
            raise InvalidRequestError(f"Image count for user {user_id} must be an integer")
        if count < 0:
            raise InvalidRequestError(f"Image count for user {user_id} cannot be negative")
        return user_id, count

    def _distribute(
        self,
        project_id: str,
        pool: List[ProjectImage],
        plan: List[Tuple[str, int]],
        actor: Actor,
        reset_distribution: bool,
    ) -> DistributionResult:
        result = DistributionResult(project_id=project_id, pool_size=len(pool))
        remaining = list(pool)

        for user_id, count in plan:
            if count <= 0 or not remaining:
                continue

            batch, remaining = remaining[:count], remaining[count:]
            claimed = self._claim(batch, user_id, result)
            if not claimed:
                continue

            pending = self.assignment_ledger.merge_or_create(
                project_id, user_id, claimed, assigned_by=actor.user_id)
            self.assignment_ledger.release_images(
                project_id, claimed, keep_assignment_id=pending.id)
            result.assigned[user_id] = result.assigned.get(user_id, 0) + len(claimed)

        result.remaining = len(remaining)

        logger.info(
            f"Distributed {result.total_assigned} of {result.pool_size} images in project "
            f"{project_id} to {len(result.assigned)} annotators"
        )
        if result.skipped_claims:
            logger.warning(
                f"{len(result.skipped_claims)} images in project {project_id} were "
                "claimed concurrently and skipped"
            )

        action = (
            ActivityAction.IMAGES_REASSIGNED if reset_distribution
            else ActivityAction.IMAGES_ASSIGNED
        )
        record_activity(
            self.activity_log,
            actor.user_id,
            action,
            project_id=project_id,
            details={"assigned": dict(result.assigned), "reset_distribution": reset_distribution},
        )
        return result

    def _claim(
        self, batch: List[ProjectImage], user_id: str, result: DistributionResult
    ) -> List[str]:
        """Compare-and-swap each image to the new owner, skipping lost races."""
        claimed = []
        for image in batch:
            won = self.image_repository.claim(
                image.id,
                expected_owner=image.assigned_to,
                new_owner=user_id,
                require_incomplete_annotation=image.assigned_to is not None,
            )
            if won:
                claimed.append(image.id)
            else:
                logger.warning(
                    f"Lost claim on image {image.id} for user {user_id}; "
                    f"owner changed from {image.assigned_to}"
                )
                result.skipped_claims.append(image.id)
        return claimed
