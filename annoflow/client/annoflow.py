"""
Simplified client interface for the AnnoFlow workflow engine.

This module provides a clean API for callers (HTTP routes, scripts, the
CLI) without dealing with repositories and service wiring.
"""

import json
import importlib.util
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

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
from annoflow.factories.workflow_factory import AnnoFlowFactory
from annoflow.interfaces.providers.data_storage import DataStorageProvider


class AnnoFlow:
    """Facade over the workflow services."""

    def __init__(
        self,
        config_path: str = None,
        config: Dict[str, Any] = None,
        db_adapter: Optional[DataStorageProvider] = None,
    ):
        """Initialize the workflow engine from config file or dictionary.

        Args:
            config_path: Path to configuration file (JSON or Python)
            config: Configuration dictionary
            db_adapter: Optional storage adapter overriding the mongo section
        """
        if not config and not config_path:
            raise ValueError("Either config or config_path must be provided")

        if config_path:
            with open(config_path, "r") as f:
                if config_path.endswith(".json"):
                    config = json.load(f)
                else:
                    # Assume it's a Python file
                    spec = importlib.util.spec_from_file_location("config", config_path)
                    config_module = importlib.util.module_from_spec(spec)
                    spec.loader.exec_module(config_module)
                    config = config_module.config

        self.services = AnnoFlowFactory.create_from_config(config, db_adapter=db_adapter)

    # Distribution

    async def distribute_manual(
        self,
        project_id: str,
        allocations: Sequence[Union[UserAllocation, Tuple[str, int]]],
        actor: Actor,
        reset_distribution: bool = False,
    ) -> DistributionResult:
        return await self.services.distribution.distribute_manual(
            project_id, allocations, actor, reset_distribution)

    async def distribute_smart(
        self, project_id: str, actor: Actor, reset_distribution: bool = False
    ) -> DistributionResult:
        return await self.services.distribution.distribute_smart(
            project_id, actor, reset_distribution)

    async def count_pool(self, project_id: str) -> PoolCounts:
        return await self.services.image_pool.count_pool(project_id)

    # Submissions

    async def submit_for_review(
        self, project_id: str, user_id: str, assignment_id: str, message: str = ""
    ) -> SubmissionReview:
        return await self.services.submissions.submit_for_review(
            project_id, user_id, assignment_id, message)

    async def review_submission(
        self, submission_id: str, reviewer: Actor, decision: ReviewDecision
    ) -> SubmissionReview:
        return await self.services.submissions.review_submission(
            submission_id, reviewer, decision)

    async def reapply_review(self, submission_id: str) -> SubmissionReview:
        return await self.services.submissions.reapply_review(submission_id)

    async def can_user_submit(self, project_id: str, user_id: str) -> SubmissionEligibility:
        return await self.services.submissions.can_user_submit(project_id, user_id)

    async def get_submission(self, submission_id: str) -> SubmissionReview:
        return await self.services.submissions.get_submission(submission_id)

    async def get_image_feedback(
        self, submission_id: str, image_id: str
    ) -> Optional[ImageFeedback]:
        return await self.services.submissions.get_image_feedback(submission_id, image_id)

    async def get_project_submissions(
        self,
        project_id: str,
        page: int = 1,
        limit: int = 20,
        status: Optional[SubmissionStatus] = None,
        user_id: Optional[str] = None,
    ) -> List[SubmissionReview]:
        return await self.services.submissions.get_project_submissions(
            project_id, page=page, limit=limit, status=status, user_id=user_id)

    async def get_user_submissions(
        self, project_id: str, user_id: str, page: int = 1, limit: int = 20
    ) -> List[SubmissionReview]:
        return await self.services.submissions.get_user_submissions(
            project_id, user_id, page=page, limit=limit)

    async def get_submission_stats(self, project_id: str) -> SubmissionStats:
        return await self.services.submissions.get_submission_stats(project_id)

    async def get_user_project_submission_status(
        self, project_id: str, user_id: str
    ) -> UserSubmissionStatus:
        return await self.services.submissions.get_user_project_submission_status(
            project_id, user_id)

    # Assignments

    async def get_assignment_metrics(self, project_id: str) -> AssignmentMetrics:
        return await self.services.assignment_ledger.get_assignment_metrics(project_id)

    async def get_project_assignments(
        self, project_id: str, page: int = 1, limit: int = 20
    ) -> List[ImageAssignment]:
        return await self.services.assignment_ledger.get_project_assignments(
            project_id, page=page, limit=limit)

    async def get_user_assignments(
        self, project_id: str, user_id: str, page: int = 1, limit: int = 20
    ) -> List[ImageAssignment]:
        return await self.services.assignment_ledger.get_user_assignments(
            project_id, user_id, page=page, limit=limit)

    async def get_assignment(self, assignment_id: str) -> ImageAssignment:
        return await self.services.assignment_ledger.get_assignment(assignment_id)

    async def update_assignment_status(
        self,
        assignment_id: str,
        status: AssignmentStatus,
        completed_images: Optional[int] = None,
    ) -> ImageAssignment:
        return await self.services.assignment_ledger.update_assignment_status(
            assignment_id, status, completed_images)

    # Projects

    async def create_project(
        self,
        name: str,
        actor: Actor,
        description: str = "",
        classes: Optional[List[ProjectClass]] = None,
        allow_custom_classes: bool = False,
    ) -> Project:
        return await self.services.projects.create_project(
            name, actor, description, classes, allow_custom_classes)

    async def get_project(self, project_id: str) -> Project:
        return await self.services.projects.get_project(project_id)

    async def add_member(
        self, project_id: str, user_id: str, role: MemberRole, actor: Actor
    ) -> ProjectMember:
        return await self.services.projects.add_member(project_id, user_id, role, actor)

    async def get_members(
        self, project_id: str, page: int = 1, limit: int = 50
    ) -> List[ProjectMember]:
        return await self.services.projects.get_members(project_id, page=page, limit=limit)

    async def is_member(
        self, project_id: str, user_id: str, role: Optional[MemberRole] = None
    ) -> bool:
        return await self.services.projects.is_member(project_id, user_id, role)

    async def remove_member(self, project_id: str, user_id: str, actor: Actor) -> bool:
        return await self.services.projects.remove_member(project_id, user_id, actor)

    async def mark_project_complete(self, project_id: str, actor: Actor) -> Project:
        return await self.services.projects.mark_project_complete(project_id, actor)

    async def is_project_complete(self, project_id: str) -> bool:
        return await self.services.projects.is_project_complete(project_id)

    async def update_project_stats(self, project_id: str) -> ProjectStats:
        return await self.services.aggregator.update_project_stats(project_id)
