"""
Project and membership repositories using MongoDB.

This module provides data access for projects and their members.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from annoflow.domains import Project, ProjectMember
from annoflow.interfaces.providers.data_storage import DataStorageProvider
from annoflow.interfaces.repositories import MemberRepository, ProjectRepository


class MongoProjectRepository(ProjectRepository):
    """MongoDB implementation of the ProjectRepository interface."""

    def __init__(self, db_adapter: DataStorageProvider, collection_name: str = "projects"):
        """Initialize with a MongoDB adapter.

        Args:
            db_adapter: MongoDB adapter
            collection_name: Name of the collection to use
        """
        self.db = db_adapter
        self.collection = collection_name

        self.db.create_collection(self.collection)
        self.db.create_index(self.collection, [("id", 1)], unique=True)
        self.db.create_index(self.collection, [("status", 1)])

    def create(self, project: Project) -> str:
        """Create a new project.

        Args:
            project: Project to create

        Returns:
            ID of the created project
        """
        return self.db.insert_one(self.collection, project.model_dump())

    def get_by_id(self, project_id: str) -> Optional[Project]:
        """Get a project by ID.

        Args:
            project_id: ID of the project to retrieve

        Returns:
            Project or None if not found
        """
        doc = self.db.find_one(self.collection, {"id": project_id})
        if not doc:
            return None

        return Project.model_validate(doc)

    def update(self, project_id: str, updates: Dict[str, Any]) -> bool:
        """Update an existing project.

        Args:
            project_id: ID of the project
            updates: Fields to set

        Returns:
            True if the project exists
        """
        updates_with_timestamp = {
            **updates,
            "updated_at": datetime.now()
        }

        return self.db.update_one(
            self.collection,
            {"id": project_id},
            {"$set": updates_with_timestamp}
        )


class MongoMemberRepository(MemberRepository):
    """MongoDB implementation of the MemberRepository interface."""

    def __init__(self, db_adapter: DataStorageProvider, collection_name: str = "project_members"):
        self.db = db_adapter
        self.collection = collection_name

        self.db.create_collection(self.collection)
        # One membership per user and project
        self.db.create_index(
            self.collection, [("project_id", 1), ("user_id", 1)], unique=True)
        self.db.create_index(self.collection, [("project_id", 1), ("role", 1)])

    def add(self, member: ProjectMember) -> str:
        return self.db.insert_one(self.collection, member.model_dump())

    def get(self, project_id: str, user_id: str) -> Optional[ProjectMember]:
        doc = self.db.find_one(
            self.collection, {"project_id": project_id, "user_id": user_id})
        if not doc:
            return None

        return ProjectMember.model_validate(doc)

    def find_by_project(
        self, project_id: str, role: Optional[str] = None, skip: int = 0, limit: int = 0
    ) -> List[ProjectMember]:
        """List members in the order they joined the project."""
        query: Dict[str, Any] = {"project_id": project_id}
        if role:
            query["role"] = role

        docs = self.db.find(
            self.collection,
            query,
            sort=[("added_at", 1), ("id", 1)],
            limit=limit,
            skip=skip,
        )
        return [ProjectMember.model_validate(doc) for doc in docs]

    def count(self, project_id: str, role: Optional[str] = None) -> int:
        query: Dict[str, Any] = {"project_id": project_id}
        if role:
            query["role"] = role
        return self.db.count_documents(self.collection, query)

    def remove(self, project_id: str, user_id: str) -> bool:
        return self.db.delete_one(
            self.collection, {"project_id": project_id, "user_id": user_id})
