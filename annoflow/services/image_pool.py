"""
Image pool selection.

The pool is the set of images a distribution may hand out: images nobody
owns and, when redistributing, images whose owner has not finished
annotating them.
"""
from typing import Any, Dict, List

from annoflow.domains import AnnotationStatus, PoolCounts, ProjectImage
from annoflow.exceptions import NotFoundError
from annoflow.interfaces.repositories import ImageRepository, ProjectRepository
from annoflow.interfaces.services import ImagePoolSelector as ImagePoolSelectorInterface


class ImagePoolService(ImagePoolSelectorInterface):
    """Read-only selector of distributable images."""

    def __init__(self, project_repository: ProjectRepository, image_repository: ImageRepository):
        self.project_repository = project_repository
        self.image_repository = image_repository

    def _require_project(self, project_id: str) -> None:
        if not self.project_repository.get_by_id(project_id):
            raise NotFoundError(f"Project not found: {project_id}")

    @staticmethod
    def _unassigned_query(project_id: str) -> Dict[str, Any]:
        return {"project_id": project_id, "assigned_to": None}

    @staticmethod
    def _redistributable_query(project_id: str) -> Dict[str, Any]:
        return {
            "project_id": project_id,
            "assigned_to": {"$ne": None},
            "annotation_status": {"$ne": AnnotationStatus.COMPLETED.value},
        }

    async def get_pool(
        self, project_id: str, include_redistributable: bool = False
    ) -> List[ProjectImage]:
        """Get the eligible images of a project.

        Args:
            project_id: Project ID
            include_redistributable: Also return assigned images whose
                annotation is not complete

        Returns:
            Images sorted by upload time, then id
        """
        self._require_project(project_id)

        if include_redistributable:
            query = {
                "project_id": project_id,
                "$or": [
                    {"assigned_to": None},
                    {"annotation_status": {"$ne": AnnotationStatus.COMPLETED.value}},
                ],
            }
        else:
            query = self._unassigned_query(project_id)

        return self.image_repository.find(query)

    async def count_pool(self, project_id: str) -> PoolCounts:
        self._require_project(project_id)
        return PoolCounts(
            unassigned=self.image_repository.count(self._unassigned_query(project_id)),
            redistributable=self.image_repository.count(
                self._redistributable_query(project_id)),
        )
