"""
MongoDB implementation of the submission review repository.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from annoflow.domains import (
    PENDING_SUBMISSION_STATUSES,
    ReviewHistoryItem,
    SubmissionReview,
    SubmissionStatus,
)
from annoflow.interfaces.providers.data_storage import DataStorageProvider
from annoflow.interfaces.repositories import SubmissionRepository


class MongoSubmissionRepository(SubmissionRepository):
    """MongoDB implementation of the SubmissionRepository interface."""

    def __init__(self, db_adapter: DataStorageProvider, collection_name: str = "submission_reviews"):
        self.db = db_adapter
        self.collection = collection_name

        self.db.create_collection(self.collection)
        self.db.create_index(self.collection, [("id", 1)], unique=True)
        self.db.create_index(
            self.collection, [("project_id", 1), ("user_id", 1), ("status", 1)])
        self.db.create_index(self.collection, [("submitted_at", -1)])

    def create(self, submission: SubmissionReview) -> str:
        return self.db.insert_one(self.collection, submission.model_dump())

    def get_by_id(self, submission_id: str) -> Optional[SubmissionReview]:
        doc = self.db.find_one(self.collection, {"id": submission_id})
        if not doc:
            return None

        return SubmissionReview.model_validate(doc)

    def get_pending_for_user(self, project_id: str, user_id: str) -> Optional[SubmissionReview]:
        doc = self.db.find_one(
            self.collection,
            {
                "project_id": project_id,
                "user_id": user_id,
                "status": {"$in": PENDING_SUBMISSION_STATUSES},
            }
        )
        if not doc:
            return None

        return SubmissionReview.model_validate(doc)

    def find(
        self, query: Dict, skip: int = 0, limit: int = 0
    ) -> List[SubmissionReview]:
        docs = self.db.find(
            self.collection,
            query,
            sort=[("submitted_at", -1), ("id", 1)],
            limit=limit,
            skip=skip,
        )
        return [SubmissionReview.model_validate(doc) for doc in docs]

    def count(self, query: Dict) -> int:
        return self.db.count_documents(self.collection, query)

    def record_review(
        self, submission_id: str, updates: Dict[str, Any], history_item: ReviewHistoryItem
    ) -> Optional[SubmissionReview]:
        """Apply a review decision and append it to the history in one write.

        The write is conditional on the submission still being pending, so two
        reviewers racing on the same submission cannot both succeed.
        """
        doc = self.db.find_one_and_update(
            self.collection,
            {"id": submission_id, "status": {"$in": PENDING_SUBMISSION_STATUSES}},
            {
                "$set": updates,
                "$push": {"review_history": history_item.model_dump()},
            }
        )
        if not doc:
            return None

        return SubmissionReview.model_validate(doc)

    def reject_pending(self, project_id: str, reviewed_by: str, feedback: str) -> int:
        now = datetime.now()
        history_item = ReviewHistoryItem(
            reviewed_by=reviewed_by,
            reviewed_at=now,
            status=SubmissionStatus.REJECTED,
            feedback=feedback,
        )
        return self.db.update_many(
            self.collection,
            {"project_id": project_id, "status": {"$in": PENDING_SUBMISSION_STATUSES}},
            {
                "$set": {
                    "status": SubmissionStatus.REJECTED.value,
                    "reviewed_by": reviewed_by,
                    "reviewed_at": now,
                    "feedback": feedback,
                },
                "$push": {"review_history": history_item.model_dump()},
            }
        )

    def latest_submitted_at(self, project_id: str, user_id: str) -> Optional[datetime]:
        docs = self.db.find(
            self.collection,
            {"project_id": project_id, "user_id": user_id},
            sort=[("submitted_at", -1)],
            limit=1,
        )
        return docs[0]["submitted_at"] if docs else None
