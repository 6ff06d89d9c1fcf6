"""
Activity log adapter storing audit records in MongoDB.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from annoflow.domains import ActivityAction, ActivityLog
from annoflow.interfaces.providers.activity_log import ActivityLogProvider
from annoflow.interfaces.providers.data_storage import DataStorageProvider


class MongoActivityLogAdapter(ActivityLogProvider):
    """Writes one document per mutating call into an activity log collection."""

    def __init__(self, db_adapter: DataStorageProvider, collection: str = "activity_logs"):
        self.db = db_adapter
        self.collection = collection

        self.db.create_collection(self.collection)
        self.db.create_index(self.collection, [("project_id", 1), ("timestamp", -1)])
        self.db.create_index(self.collection, [("user_id", 1)])

    def record(
        self,
        user_id: str,
        action: ActivityAction,
        project_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        entry = ActivityLog(
            id=str(uuid.uuid4()),
            user_id=user_id,
            project_id=project_id,
            action=action,
            timestamp=datetime.now(),
            details=details or {},
        )
        self.db.insert_one(self.collection, entry.model_dump())


class NullActivityLogAdapter(ActivityLogProvider):
    """Activity log sink used when auditing is disabled in config."""

    def record(
        self,
        user_id: str,
        action: ActivityAction,
        project_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        return None
