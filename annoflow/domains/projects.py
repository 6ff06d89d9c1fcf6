"""
Project domain models.

These models define projects, their members, and the acting user.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from annoflow.domains.enums import (
    ADMIN_ROLES,
    MemberRole,
    ProgressStatus,
    ProjectStatus,
    UserRole,
)


class ProjectClass(BaseModel):
    """Annotation class available in a project."""
    id: str = Field(..., description="Unique identifier")
    name: str = Field(..., description="Class name")
    color: str = Field("#000000", description="Display color")
    is_custom: bool = Field(False, description="Whether an annotator added it")


class Project(BaseModel):
    """Project model."""
    model_config = {"use_enum_values": True}

    id: str = Field(..., description="Unique identifier")
    name: str = Field(..., description="Project name")
    description: str = Field("", description="Project description")
    classes: List[ProjectClass] = Field(
        default_factory=list, description="Annotation classes")
    allow_custom_classes: bool = Field(
        False, description="Whether annotators may add classes")
    created_by: Optional[str] = Field(None, description="ID of the creator")
    created_at: datetime = Field(
        default_factory=datetime.now, description="When the project was created")
    updated_at: datetime = Field(
        default_factory=datetime.now, description="When the project was last updated")
    status: ProjectStatus = Field(
        ProjectStatus.CREATED, description="Authoritative lifecycle status")
    progress_status: ProgressStatus = Field(
        ProgressStatus.CREATED, description="Status derived from image state")
    total_images: int = Field(0, description="Images in the project")
    annotated_images: int = Field(0, description="Images with completed annotation")
    reviewed_images: int = Field(0, description="Images approved or flagged")
    approved_images: int = Field(0, description="Images approved")
    completion_percentage: int = Field(0, description="Approved share, 0-100")
    completed_at: Optional[datetime] = Field(
        None, description="When the project was marked complete")
    completed_by: Optional[str] = Field(
        None, description="Who marked the project complete")


class ProjectMember(BaseModel):
    """Membership of a user in a project."""
    model_config = {"use_enum_values": True}

    id: str = Field(..., description="Unique identifier")
    project_id: str = Field(..., description="Project ID")
    user_id: str = Field(..., description="User ID")
    role: MemberRole = Field(..., description="Role inside the project")
    added_at: datetime = Field(
        default_factory=datetime.now, description="When the member was added")
    added_by: Optional[str] = Field(None, description="Who added the member")


class Actor(BaseModel):
    """Authenticated caller identity, trusted as supplied."""
    model_config = {"use_enum_values": True}

    user_id: str = Field(..., description="User ID")
    role: UserRole = Field(UserRole.USER, description="System role")
    is_office_user: bool = Field(False, description="Internal staff flag")

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


class ProjectStats(BaseModel):
    """Counters recomputed from the images of a project."""
    model_config = {"use_enum_values": True}

    project_id: str = Field(..., description="Project ID")
    total_images: int = Field(0, description="Images in the project")
    annotated_images: int = Field(0, description="Images with completed annotation")
    reviewed_images: int = Field(0, description="Images approved or flagged")
    approved_images: int = Field(0, description="Images approved")
    completion_percentage: int = Field(0, description="Approved share, 0-100")
    progress_status: ProgressStatus = Field(
        ProgressStatus.CREATED, description="Derived progress status")

    @property
    def ready_for_completion(self) -> bool:
        """Whether every image is approved, so an admin may complete the project."""
        return self.total_images > 0 and self.approved_images == self.total_images
