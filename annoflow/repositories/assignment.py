"""
MongoDB implementation of the image assignment repository.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from annoflow.domains import PENDING_ASSIGNMENT_STATUSES, ImageAssignment
from annoflow.interfaces.providers.data_storage import DataStorageProvider
from annoflow.interfaces.repositories import AssignmentRepository


class MongoAssignmentRepository(AssignmentRepository):
    """MongoDB implementation of the AssignmentRepository interface."""

    def __init__(self, db_adapter: DataStorageProvider, collection_name: str = "image_assignments"):
        """Initialize the repository with a database adapter.

        Args:
            db_adapter: MongoDB adapter instance
            collection_name: Name of the collection to use
        """
        self.db = db_adapter
        self.collection = collection_name

        self.db.create_collection(self.collection)
        self.db.create_index(self.collection, [("id", 1)], unique=True)
        self.db.create_index(
            self.collection, [("project_id", 1), ("user_id", 1), ("status", 1)])
        self.db.create_index(self.collection, [("project_id", 1), ("image_ids", 1)])
        self.db.create_index(self.collection, [("assigned_at", -1)])

    def create(self, assignment: ImageAssignment) -> str:
        """Create a new assignment and return its ID."""
        return self.db.insert_one(self.collection, assignment.model_dump())

    def get_by_id(self, assignment_id: str) -> Optional[ImageAssignment]:
        """Get an assignment by ID."""
        doc = self.db.find_one(self.collection, {"id": assignment_id})
        if not doc:
            return None

        return ImageAssignment.model_validate(doc)

    def get_pending_for_user(self, project_id: str, user_id: str) -> Optional[ImageAssignment]:
        """Get the pending assignment of a user in a project."""
        doc = self.db.find_one(
            self.collection,
            {
                "project_id": project_id,
                "user_id": user_id,
                "status": {"$in": PENDING_ASSIGNMENT_STATUSES},
            }
        )
        if not doc:
            return None

        return ImageAssignment.model_validate(doc)

    def append_images(
        self, assignment_id: str, image_ids: List[str]
    ) -> Optional[ImageAssignment]:
        """Merge images into an assignment that is still pending.

        Args:
            assignment_id: Assignment ID
            image_ids: Images to add; duplicates are ignored

        Returns:
            The updated assignment, or None if it stopped being pending
        """
        doc = self.db.find_one_and_update(
            self.collection,
            {"id": assignment_id, "status": {"$in": PENDING_ASSIGNMENT_STATUSES}},
            {
                "$addToSet": {"image_ids": {"$each": list(image_ids)}},
                "$set": {"last_activity": datetime.now()},
            }
        )
        if not doc:
            return None

        total = len(doc.get("image_ids", []))
        self.db.update_one(
            self.collection,
            {"id": assignment_id},
            {"$set": {"total_images": total}}
        )
        doc["total_images"] = total
        return ImageAssignment.model_validate(doc)

    def find_containing(
        self, project_id: str, image_ids: List[str], exclude_id: Optional[str] = None
    ) -> List[ImageAssignment]:
        """Find assignments in a project that list any of the given images."""
        query: Dict[str, Any] = {
            "project_id": project_id,
            "image_ids": {"$in": list(image_ids)},
        }
        if exclude_id:
            query["id"] = {"$ne": exclude_id}

        docs = self.db.find(self.collection, query)
        return [ImageAssignment.model_validate(doc) for doc in docs]

    def find_by_project(
        self, project_id: str, user_id: Optional[str] = None, skip: int = 0, limit: int = 0
    ) -> List[ImageAssignment]:
        """List assignments of a project, newest first."""
        query: Dict[str, Any] = {"project_id": project_id}
        if user_id:
            query["user_id"] = user_id

        docs = self.db.find(
            self.collection,
            query,
            sort=[("assigned_at", -1), ("id", 1)],
            limit=limit,
            skip=skip,
        )
        return [ImageAssignment.model_validate(doc) for doc in docs]

    def count(self, query: Dict) -> int:
        """Count assignments matching query."""
        return self.db.count_documents(self.collection, query)

    def set_images(self, assignment_id: str, image_ids: List[str]) -> bool:
        """Replace the image set of an assignment."""
        return self.db.update_one(
            self.collection,
            {"id": assignment_id},
            {"$set": {"image_ids": list(image_ids), "total_images": len(image_ids)}}
        )

    def update(self, assignment_id: str, updates: Dict[str, Any]) -> bool:
        """Update an assignment, bumping last_activity."""
        updates_with_timestamp = {
            **updates,
            "last_activity": datetime.now()
        }

        return self.db.update_one(
            self.collection,
            {"id": assignment_id},
            {"$set": updates_with_timestamp}
        )

    def transition(
        self, assignment_id: str, from_statuses: List[str], updates: Dict[str, Any]
    ) -> Optional[ImageAssignment]:
        """Conditionally update an assignment whose status is in from_statuses."""
        doc = self.db.find_one_and_update(
            self.collection,
            {"id": assignment_id, "status": {"$in": list(from_statuses)}},
            {"$set": {**updates, "last_activity": datetime.now()}}
        )
        if not doc:
            return None

        return ImageAssignment.model_validate(doc)

    def delete(self, assignment_id: str) -> bool:
        return self.db.delete_one(self.collection, {"id": assignment_id})

    def delete_pending_for_user(self, project_id: str, user_id: str) -> int:
        return self.db.delete_many(
            self.collection,
            {
                "project_id": project_id,
                "user_id": user_id,
                "status": {"$in": PENDING_ASSIGNMENT_STATUSES},
            }
        )

    def latest_activity(self, project_id: str, user_id: str) -> Optional[datetime]:
        docs = self.db.find(
            self.collection,
            {
                "project_id": project_id,
                "user_id": user_id,
                "last_activity": {"$ne": None},
            },
            sort=[("last_activity", -1)],
            limit=1,
        )
        return docs[0]["last_activity"] if docs else None
