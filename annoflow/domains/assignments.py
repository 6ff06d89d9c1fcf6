"""
Assignment domain models.

These models define image assignments, distribution requests and results,
and the progress metrics reported for a project.
"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from annoflow.domains.enums import AssignmentStatus


class ImageAssignment(BaseModel):
    """A set of images handed to one annotator."""
    model_config = {"use_enum_values": True}

    id: str = Field(..., description="Unique identifier")
    project_id: str = Field(..., description="Project ID")
    user_id: str = Field(..., description="Annotator ID")
    image_ids: List[str] = Field(
        default_factory=list, description="Assigned image IDs")
    status: AssignmentStatus = Field(
        AssignmentStatus.ASSIGNED, description="Assignment status")
    total_images: int = Field(0, description="Number of assigned images")
    completed_images: int = Field(0, description="Number of completed images")
    assigned_at: datetime = Field(
        default_factory=datetime.now, description="When the assignment was created")
    assigned_by: Optional[str] = Field(None, description="Who created the assignment")
    last_activity: Optional[datetime] = Field(
        None, description="Last time the assignment changed")


class UserAllocation(BaseModel):
    """Requested number of images for one annotator."""
    user_id: str = Field(..., description="Annotator ID")
    count: int = Field(..., description="Number of images to assign")


class DistributionResult(BaseModel):
    """Outcome of a manual or smart distribution."""
    project_id: str = Field(..., description="Project ID")
    pool_size: int = Field(0, description="Eligible images before distribution")
    assigned: Dict[str, int] = Field(
        default_factory=dict, description="Images granted per annotator")
    skipped_claims: List[str] = Field(
        default_factory=list, description="Images lost to a concurrent claim")
    remaining: int = Field(0, description="Eligible images left in the pool")

    @property
    def total_assigned(self) -> int:
        return sum(self.assigned.values())


class PoolCounts(BaseModel):
    """Size of the assignable pool of a project."""
    unassigned: int = Field(0, description="Images without an owner")
    redistributable: int = Field(
        0, description="Assigned images whose annotation is incomplete")

    @property
    def total(self) -> int:
        return self.unassigned + self.redistributable


class UserProgressMetrics(BaseModel):
    """Annotation progress of one annotator."""
    user_id: str = Field(..., description="Annotator ID")
    total_assigned: int = Field(0, description="Images assigned to the user")
    annotated: int = Field(0, description="Assigned images with completed annotation")
    unannotated: int = Field(0, description="Assigned images still to annotate")
    progress: int = Field(0, description="Annotated share, 0-100")
    time_spent: int = Field(0, description="Seconds spent on annotated images")
    average_time_per_image: int = Field(
        0, description="Seconds per annotated image")
    last_activity: Optional[datetime] = Field(
        None, description="Most recent activity in the project")


class AssignmentMetrics(BaseModel):
    """Assignment progress of a project."""
    project_id: str = Field(..., description="Project ID")
    total_images: int = Field(0, description="Images in the project")
    unassigned_images: int = Field(0, description="Images without an owner")
    assigned_images: int = Field(0, description="Images with an owner")
    annotated_images: int = Field(0, description="Images with completed annotation")
    redistributable_images: int = Field(
        0, description="Unassigned plus assigned-but-unannotated images")
    user_progress: List[UserProgressMetrics] = Field(
        default_factory=list, description="Per-annotator progress")
