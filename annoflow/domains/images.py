"""
Project image domain model.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from annoflow.domains.enums import AnnotationStatus, ImageStatus, ReviewStatus


class ProjectImage(BaseModel):
    """Image uploaded to a project and tracked through the workflow."""
    model_config = {"use_enum_values": True}

    id: str = Field(..., description="Unique identifier")
    project_id: str = Field(..., description="Project ID")
    filename: str = Field("", description="Original file name")
    s3_key: str = Field("", description="Opaque object storage key")
    uploaded_at: datetime = Field(
        default_factory=datetime.now, description="When the image was uploaded")
    uploaded_by: Optional[str] = Field(None, description="Who uploaded the image")
    status: ImageStatus = Field(ImageStatus.UPLOADED, description="Workflow status")
    assigned_to: Optional[str] = Field(
        None, description="Owning annotator, absent when unassigned")
    annotation_status: AnnotationStatus = Field(
        AnnotationStatus.UNANNOTATED, description="Annotation progress")
    annotated_by: Optional[str] = Field(
        None, description="Who annotated the image, kept across reassignment")
    annotated_at: Optional[datetime] = Field(
        None, description="When the annotation was last saved")
    time_spent: int = Field(0, description="Seconds spent annotating")
    review_status: ReviewStatus = Field(
        ReviewStatus.NOT_REVIEWED, description="Review outcome")
    reviewed_by: Optional[str] = Field(None, description="Last reviewer")
    reviewed_at: Optional[datetime] = Field(None, description="When last reviewed")
    current_submission_id: Optional[str] = Field(
        None, description="Submission that last included the image")
