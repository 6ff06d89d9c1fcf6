"""
Activity log domain model.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from annoflow.domains.enums import ActivityAction


class ActivityLog(BaseModel):
    """Audit record of a mutating workflow call."""
    model_config = {"use_enum_values": True}

    id: str = Field(..., description="Unique identifier")
    user_id: str = Field(..., description="Acting user ID")
    project_id: Optional[str] = Field(None, description="Project ID")
    action: ActivityAction = Field(..., description="Recorded action")
    timestamp: datetime = Field(
        default_factory=datetime.now, description="When the action happened")
    details: Dict[str, Any] = Field(
        default_factory=dict, description="Action details")
