"""
Project service implementation.

This service manages projects, their membership and the explicit admin
action that marks a project complete.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from annoflow.domains import (
    ActivityAction,
    Actor,
    MemberRole,
    Project,
    ProjectClass,
    ProjectMember,
    ProjectStatus,
)
from annoflow.exceptions import ConflictError, InvalidRequestError, NotFoundError
from annoflow.interfaces.providers.activity_log import ActivityLogProvider
from annoflow.interfaces.repositories import (
    MemberRepository,
    ProjectRepository,
    SubmissionRepository,
)
from annoflow.interfaces.services import (
    AssignmentLedger,
    ProjectAggregator,
    ProjectService as ProjectServiceInterface,
)
from annoflow.services.common import page_bounds, record_activity, require_admin
from annoflow.services.locking import ProjectLockRegistry

logger = logging.getLogger(__name__)

AUTO_REJECT_FEEDBACK = (
    "This submission was automatically rejected because the project was marked as complete."
)


class ProjectService(ProjectServiceInterface):
    """Service for managing projects and their members."""

    def __init__(
        self,
        project_repository: ProjectRepository,
        member_repository: MemberRepository,
        submission_repository: SubmissionRepository,
        assignment_ledger: AssignmentLedger,
        aggregator: ProjectAggregator,
        locks: Optional[ProjectLockRegistry] = None,
        activity_log: Optional[ActivityLogProvider] = None,
    ):
        """Initialize the project service.

        Args:
            project_repository: Repository for projects
            member_repository: Repository for project members
            submission_repository: Repository for submissions
            assignment_ledger: Ledger used to reclaim a removed member's work
            aggregator: Recomputes project counters
            locks: Per-project lock registry shared with the other services
            activity_log: Optional audit sink
        """
        self.project_repository = project_repository
        self.member_repository = member_repository
        self.submission_repository = submission_repository
        self.assignment_ledger = assignment_ledger
        self.aggregator = aggregator
        self.locks = locks or ProjectLockRegistry()
        self.activity_log = activity_log

    async def create_project(
        self,
        name: str,
        actor: Actor,
        description: str = "",
        classes: Optional[List[ProjectClass]] = None,
        allow_custom_classes: bool = False,
    ) -> Project:
        """Create a project and add its creator as a reviewer.

        Args:
            name: Project name
            actor: Creating user, must be an admin
            description: Optional description
            classes: Annotation classes
            allow_custom_classes: Whether annotators may add classes

        Returns:
            The created project
        """
        require_admin(actor, "create projects")
        if not name or not name.strip():
            raise InvalidRequestError("Project name is required")

        project = Project(
            id=str(uuid.uuid4()),
            name=name.strip(),
            description=description or "",
            classes=classes or [],
            allow_custom_classes=allow_custom_classes,
            created_by=actor.user_id,
        )
        self.project_repository.create(project)

        self.member_repository.add(ProjectMember(
            id=str(uuid.uuid4()),
            project_id=project.id,
            user_id=actor.user_id,
            role=MemberRole.REVIEWER,
            added_by=actor.user_id,
        ))

        logger.info(f"Project {project.id} created by {actor.user_id}")
        record_activity(
            self.activity_log,
            actor.user_id,
            ActivityAction.PROJECT_CREATED,
            project_id=project.id,
            details={"name": project.name},
        )
        return project

    async def get_project(self, project_id: str) -> Project:
        project = self.project_repository.get_by_id(project_id)
        if not project:
            raise NotFoundError(f"Project not found: {project_id}")
        return project

    async def add_member(
        self, project_id: str, user_id: str, role: MemberRole, actor: Actor
    ) -> ProjectMember:
        require_admin(actor, "add project members")
        await self.get_project(project_id)

        try:
            role = MemberRole(role)
        except ValueError:
            raise InvalidRequestError(f"Unknown member role: {role}")

        if self.member_repository.get(project_id, user_id):
            raise ConflictError(f"User {user_id} is already a member of this project")

        member = ProjectMember(
            id=str(uuid.uuid4()),
            project_id=project_id,
            user_id=user_id,
            role=role,
            added_by=actor.user_id,
        )
        self.member_repository.add(member)

        record_activity(
            self.activity_log,
            actor.user_id,
            ActivityAction.MEMBER_ADDED,
            project_id=project_id,
            details={"user_id": user_id, "role": role.value},
        )
        return member

    async def get_members(
        self, project_id: str, page: int = 1, limit: int = 50
    ) -> List[ProjectMember]:
        skip, limit = page_bounds(page, limit)
        return self.member_repository.find_by_project(project_id, skip=skip, limit=limit)

    async def is_member(
        self, project_id: str, user_id: str, role: Optional[MemberRole] = None
    ) -> bool:
        member = self.member_repository.get(project_id, user_id)
        if not member:
            return False
        return role is None or member.role == MemberRole(role).value

    async def remove_member(self, project_id: str, user_id: str, actor: Actor) -> bool:
        """Remove a member and return their incomplete work to the pool.

        Images keep their annotated_by attribution; the member's pending
        assignments are deleted.
        """
        require_admin(actor, "remove project members")

        async with self.locks.hold(project_id):
            await self.get_project(project_id)
            member = self.member_repository.get(project_id, user_id)
            if not member:
                raise NotFoundError(f"User {user_id} is not a member of this project")

            images, assignments = self.assignment_ledger.reclaim_member(project_id, user_id)
            self.member_repository.remove(project_id, user_id)

            record_activity(
                self.activity_log,
                actor.user_id,
                ActivityAction.MEMBER_REMOVED,
                project_id=project_id,
                details={
                    "user_id": user_id,
                    "images_unassigned": images,
                    "assignments_deleted": assignments,
                },
            )

            await self.aggregator.update_project_stats(project_id)
            return True

    async def mark_project_complete(self, project_id: str, actor: Actor) -> Project:
        """Mark a project complete once every image is approved.

        Pending submissions are rejected with an automatic note.
        """
        require_admin(actor, "complete projects")

        async with self.locks.hold(project_id):
            await self.get_project(project_id)

            stats = await self.aggregator.update_project_stats(project_id)
            if not stats.ready_for_completion:
                raise ConflictError(
                    f"Only {stats.approved_images} out of {stats.total_images} "
                    "images are approved."
                )

            rejected = self.submission_repository.reject_pending(
                project_id, actor.user_id, AUTO_REJECT_FEEDBACK)
            if rejected:
                logger.info(
                    f"Rejected {rejected} pending submissions while completing project {project_id}")

            self.project_repository.update(project_id, {
                "status": ProjectStatus.COMPLETED.value,
                "completion_percentage": 100,
                "completed_at": datetime.now(),
                "completed_by": actor.user_id,
            })

            record_activity(
                self.activity_log,
                actor.user_id,
                ActivityAction.PROJECT_COMPLETED,
                project_id=project_id,
                details={"rejected_submissions": rejected},
            )
            return await self.get_project(project_id)

    async def is_project_complete(self, project_id: str) -> bool:
        project = await self.get_project(project_id)
        return project.status == ProjectStatus.COMPLETED.value
