"""
Project counter aggregation.

Counters and the derived progress status are recomputed from image state
after every workflow change; nothing else writes them.
"""
import logging

from annoflow.domains import (
    AnnotationStatus,
    ProgressStatus,
    ProjectStats,
    ProjectStatus,
    ReviewStatus,
)
from annoflow.exceptions import NotFoundError
from annoflow.interfaces.repositories import ImageRepository, ProjectRepository
from annoflow.interfaces.services import ProjectAggregator as ProjectAggregatorInterface
from annoflow.services.common import percentage

logger = logging.getLogger(__name__)


class ProjectAggregatorService(ProjectAggregatorInterface):
    """Recomputes project counters from the images of a project."""

    def __init__(self, project_repository: ProjectRepository, image_repository: ImageRepository):
        self.project_repository = project_repository
        self.image_repository = image_repository

    async def compute_stats(self, project_id: str) -> ProjectStats:
        """Compute counters and progress status without writing them.

        Args:
            project_id: Project ID

        Returns:
            Fresh project statistics
        """
        if not self.project_repository.get_by_id(project_id):
            raise NotFoundError(f"Project not found: {project_id}")

        base = {"project_id": project_id}
        total = self.image_repository.count(base)
        annotated = self.image_repository.count(
            {**base, "annotation_status": AnnotationStatus.COMPLETED.value})
        reviewed = self.image_repository.count(
            {**base, "review_status": {"$in": [
                ReviewStatus.APPROVED.value, ReviewStatus.FLAGGED.value]}})
        approved = self.image_repository.count(
            {**base, "review_status": ReviewStatus.APPROVED.value})
        started = self.image_repository.count(
            {**base, "annotation_status": {"$ne": AnnotationStatus.UNANNOTATED.value}})

        if total > 0 and annotated == total and approved == total:
            progress_status = ProgressStatus.COMPLETED
        elif started > 0:
            progress_status = ProgressStatus.IN_PROGRESS
        else:
            progress_status = ProgressStatus.CREATED

        return ProjectStats(
            project_id=project_id,
            total_images=total,
            annotated_images=annotated,
            reviewed_images=reviewed,
            approved_images=approved,
            completion_percentage=percentage(approved, total),
            progress_status=progress_status,
        )

    async def update_project_stats(self, project_id: str) -> ProjectStats:
        """Recompute and store the counters of a project.

        The lifecycle status is only ever moved from CREATED to IN_PROGRESS
        here; completing a project is an explicit admin action.
        """
        stats = await self.compute_stats(project_id)

        updates = {
            "total_images": stats.total_images,
            "annotated_images": stats.annotated_images,
            "reviewed_images": stats.reviewed_images,
            "approved_images": stats.approved_images,
            "completion_percentage": stats.completion_percentage,
            "progress_status": stats.progress_status,
        }

        project = self.project_repository.get_by_id(project_id)
        if (
            project
            and project.status == ProjectStatus.CREATED.value
            and stats.progress_status != ProgressStatus.CREATED.value
        ):
            updates["status"] = ProjectStatus.IN_PROGRESS.value

        self.project_repository.update(project_id, updates)

        if stats.ready_for_completion:
            logger.info(
                f"All {stats.total_images} images of project {project_id} are approved; "
                "it can be marked complete"
            )

        return stats
