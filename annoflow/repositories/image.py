"""
MongoDB implementation of the project image repository.
"""
from typing import Any, Dict, List, Optional, Tuple

from annoflow.domains import AnnotationStatus, ImageStatus, ProjectImage
from annoflow.interfaces.providers.data_storage import DataStorageProvider
from annoflow.interfaces.repositories import ImageRepository

# Stable pool order: upload time, then id
POOL_SORT = [("uploaded_at", 1), ("id", 1)]


class MongoImageRepository(ImageRepository):
    """MongoDB implementation of the ImageRepository interface."""

    def __init__(self, db_adapter: DataStorageProvider, collection_name: str = "project_images"):
        """Initialize the repository with a database adapter.

        Args:
            db_adapter: MongoDB adapter instance
            collection_name: Name of the collection to use
        """
        self.db = db_adapter
        self.collection = collection_name

        self.db.create_collection(self.collection)
        self.db.create_index(self.collection, [("id", 1)], unique=True)
        self.db.create_index(self.collection, [("project_id", 1), ("assigned_to", 1)])
        self.db.create_index(self.collection, [("project_id", 1), ("review_status", 1)])
        self.db.create_index(self.collection, [("project_id", 1), ("uploaded_at", 1)])

    def create(self, image: ProjectImage) -> str:
        return self.db.insert_one(self.collection, image.model_dump(exclude_none=True))

    def get_by_id(self, image_id: str) -> Optional[ProjectImage]:
        doc = self.db.find_one(self.collection, {"id": image_id})
        if not doc:
            return None

        return ProjectImage.model_validate(doc)

    def find(self, query: Dict, sort: Optional[List[Tuple]] = None) -> List[ProjectImage]:
        docs = self.db.find(self.collection, query, sort=sort or POOL_SORT)
        return [ProjectImage.model_validate(doc) for doc in docs]

    def find_by_ids(self, image_ids: List[str], query: Optional[Dict] = None) -> List[ProjectImage]:
        if not image_ids:
            return []
        return self.find({**(query or {}), "id": {"$in": list(image_ids)}})

    def count(self, query: Dict) -> int:
        return self.db.count_documents(self.collection, query)

    def claim(
        self,
        image_id: str,
        expected_owner: Optional[str],
        new_owner: str,
        require_incomplete_annotation: bool = False,
    ) -> bool:
        """Compare-and-swap the owner of an image.

        A null expected_owner matches images whose owner field is absent.
        """
        query: Dict[str, Any] = {"id": image_id, "assigned_to": expected_owner}
        if require_incomplete_annotation:
            query["annotation_status"] = {"$ne": AnnotationStatus.COMPLETED.value}

        return self.db.update_one(
            self.collection,
            query,
            {"$set": {"assigned_to": new_owner, "status": ImageStatus.ASSIGNED.value}}
        )

    def update_many(self, image_ids: List[str], updates: Dict[str, Any]) -> int:
        if not image_ids:
            return 0
        return self.db.update_many(
            self.collection,
            {"id": {"$in": list(image_ids)}},
            {"$set": updates}
        )

    def unassign_user(self, project_id: str, user_id: str) -> int:
        # annotated_by survives unassignment
        return self.db.update_many(
            self.collection,
            {"project_id": project_id, "assigned_to": user_id},
            {
                "$unset": {"assigned_to": ""},
                "$set": {"status": ImageStatus.UPLOADED.value},
            }
        )
