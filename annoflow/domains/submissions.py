"""
Submission domain models.

These models define submissions for review, reviewer decisions and the
append-only review history.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from annoflow.domains.enums import SubmissionStatus


class FlaggedImage(BaseModel):
    """Image flagged by a reviewer."""
    image_id: str = Field(..., description="Image ID")
    reason: str = Field("", description="Why the image was flagged")


class ImageFeedback(BaseModel):
    """Free-text feedback on a single image, independent of flagging."""
    image_id: str = Field(..., description="Image ID")
    feedback: str = Field(..., description="Feedback text")


class ReviewHistoryItem(BaseModel):
    """One review decision recorded on a submission."""
    model_config = {"use_enum_values": True}

    reviewed_by: str = Field(..., description="Reviewer ID")
    reviewed_at: datetime = Field(
        default_factory=datetime.now, description="When the decision was made")
    status: SubmissionStatus = Field(..., description="Decision status")
    feedback: str = Field("", description="Overall feedback")
    flagged_images: List[FlaggedImage] = Field(
        default_factory=list, description="Images flagged in this decision")
    image_feedback: List[ImageFeedback] = Field(
        default_factory=list, description="Per-image feedback in this decision")


class SubmissionReview(BaseModel):
    """Images submitted by an annotator for review."""
    model_config = {"use_enum_values": True}

    id: str = Field(..., description="Unique identifier")
    project_id: str = Field(..., description="Project ID")
    user_id: str = Field(..., description="Submitting annotator ID")
    assignment_id: str = Field(..., description="Assignment the images come from")
    image_ids: List[str] = Field(
        default_factory=list, description="Submitted image IDs")
    status: SubmissionStatus = Field(
        SubmissionStatus.SUBMITTED, description="Submission status")
    message: str = Field("", description="Message from the annotator")
    feedback: str = Field("", description="Latest reviewer feedback")
    flagged_images: List[FlaggedImage] = Field(
        default_factory=list, description="Latest flagged images")
    image_feedback: List[ImageFeedback] = Field(
        default_factory=list, description="Latest per-image feedback")
    review_history: List[ReviewHistoryItem] = Field(
        default_factory=list, description="Every review decision, oldest first")
    submitted_at: datetime = Field(
        default_factory=datetime.now, description="When the submission was created")
    reviewed_by: Optional[str] = Field(None, description="Latest reviewer")
    reviewed_at: Optional[datetime] = Field(None, description="When last reviewed")


class ReviewDecision(BaseModel):
    """Reviewer decision payload."""
    model_config = {"use_enum_values": True}

    status: SubmissionStatus = Field(..., description="Decision status")
    feedback: str = Field("", description="Overall feedback")
    flagged_images: List[FlaggedImage] = Field(
        default_factory=list, description="Images to flag")
    image_feedback: List[ImageFeedback] = Field(
        default_factory=list, description="Per-image feedback")


class SubmissionEligibility(BaseModel):
    """Whether a user may submit work for a project."""
    can_submit: bool = Field(..., description="Whether a submission is allowed")
    reason: Optional[str] = Field(None, description="Why not, when refused")
    has_assigned_images: bool = Field(
        False, description="Whether the user holds any images")
    pending_submission: bool = Field(
        False, description="Whether a submission is awaiting review")


class SubmissionStats(BaseModel):
    """Submission counts for a project."""
    total_submissions: int = Field(0, description="All submissions")
    pending_submissions: int = Field(0, description="Submitted or under review")
    approved_submissions: int = Field(0, description="Approved submissions")
    rejected_submissions: int = Field(0, description="Rejected submissions")


class UserSubmissionStatus(BaseModel):
    """Review progress of one annotator in a project."""
    total_assigned: int = Field(0, description="Images assigned to the user")
    completed: int = Field(
        0, description="Annotated images not reviewed yet")
    flagged: int = Field(0, description="Images flagged by a reviewer")
    approved: int = Field(0, description="Images approved")
    pending_review: int = Field(0, description="Images under review")
    progress: int = Field(0, description="Approved share, 0-100")
    can_submit: bool = Field(False, description="Whether a submission is allowed")
    pending_submission: Optional[SubmissionReview] = Field(
        None, description="Submission awaiting review, if any")
