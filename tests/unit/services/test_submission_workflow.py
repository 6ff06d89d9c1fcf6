"""
Tests for the SubmissionService.

These tests drive the submit and review lifecycle end to end against a
mongomock-backed workflow and check the effects on images, assignments,
submissions and project counters.
"""
import pytest
import pytest_asyncio

from annoflow.domains import (
    Actor,
    AssignmentStatus,
    FlaggedImage,
    ImageFeedback,
    ImageStatus,
    MemberRole,
    ProjectStatus,
    ReviewDecision,
    ReviewStatus,
    SubmissionStatus,
    UserRole,
)
from annoflow.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
)
from annoflow.services.submission import (
    REASON_NO_IMAGES,
    REASON_NOTHING_TO_SUBMIT,
    REASON_PENDING_SUBMISSION,
    REASON_PROJECT_COMPLETE,
)
from workflow_helpers import annotate, seed_images, seed_project

# ---------------------
# Fixtures
# ---------------------


@pytest_asyncio.fixture
async def assigned(workflow, admin):
    """Return (project, image_ids, assignment) with five annotated images for ann-a."""
    project, image_ids = await seed_project(workflow, admin, ["ann-a"], images=5)
    await workflow.distribution.distribute_smart(project.id, admin)
    annotate(workflow, image_ids, "ann-a")
    assignment = (await workflow.assignment_ledger.get_user_assignments(project.id, "ann-a"))[0]
    return project, image_ids, assignment


@pytest.fixture
def reviewer():
    """Return a reviewer actor who is not an admin."""
    return Actor(user_id="rev-1", role=UserRole.USER)


def image(workflow, image_id):
    return workflow.image_repository.get_by_id(image_id)


# ---------------------
# Submit
# ---------------------


@pytest.mark.asyncio
async def test_submit_creates_pending_submission(workflow, assigned):
    project, image_ids, assignment = assigned

    submission = await workflow.submissions.submit_for_review(
        project.id, "ann-a", assignment.id, "done")

    assert submission.status == SubmissionStatus.SUBMITTED.value
    assert sorted(submission.image_ids) == sorted(image_ids)
    assert submission.message == "done"

    stored = await workflow.assignment_ledger.get_assignment(assignment.id)
    assert stored.status == AssignmentStatus.SUBMITTED.value
    for image_id in image_ids:
        img = image(workflow, image_id)
        assert img.status == ImageStatus.UNDER_REVIEW.value
        assert img.current_submission_id == submission.id


@pytest.mark.asyncio
async def test_second_submit_while_pending_conflicts(workflow, admin, assigned):
    project, image_ids, assignment = assigned
    await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    with pytest.raises(ConflictError):
        await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)


@pytest.mark.asyncio
async def test_pending_submission_blocks_other_assignment(workflow, admin, assigned):
    """A second assignment cannot be submitted while the first is pending."""
    project, image_ids, assignment = assigned
    await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    seed_images(workflow, project.id, 2)
    await workflow.distribution.distribute_smart(project.id, admin)
    assignments = await workflow.assignment_ledger.get_user_assignments(project.id, "ann-a")
    pending = [a for a in assignments if a.status == AssignmentStatus.ASSIGNED.value][0]

    with pytest.raises(ConflictError):
        await workflow.submissions.submit_for_review(project.id, "ann-a", pending.id)


@pytest.mark.asyncio
async def test_submit_other_users_assignment_forbidden(workflow, assigned):
    project, _, assignment = assigned

    with pytest.raises(ForbiddenError):
        await workflow.submissions.submit_for_review(project.id, "ann-b", assignment.id)


@pytest.mark.asyncio
async def test_submit_missing_assignment(workflow, assigned):
    project, _, _ = assigned

    with pytest.raises(NotFoundError):
        await workflow.submissions.submit_for_review(project.id, "ann-a", "missing")


@pytest.mark.asyncio
async def test_submit_to_missing_project(workflow, assigned):
    _, _, assignment = assigned

    with pytest.raises(NotFoundError):
        await workflow.submissions.submit_for_review("missing", "ann-a", assignment.id)


@pytest.mark.asyncio
async def test_submit_to_completed_project_conflicts(workflow, assigned):
    project, _, assignment = assigned
    workflow.projects.project_repository.update(
        project.id, {"status": ProjectStatus.COMPLETED.value})

    with pytest.raises(ConflictError):
        await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)


# ---------------------
# Review
# ---------------------


@pytest.mark.asyncio
async def test_approve_round_trip(workflow, admin, assigned):
    """Submit then approve: every image approved and the assignment completed."""
    project, image_ids, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    reviewed = await workflow.submissions.review_submission(
        submission.id, admin, ReviewDecision(status=SubmissionStatus.APPROVED, feedback="great"))

    assert reviewed.status == SubmissionStatus.APPROVED.value
    assert reviewed.reviewed_by == admin.user_id
    assert len(reviewed.review_history) == 1
    assert reviewed.review_history[0].feedback == "great"

    for image_id in image_ids:
        img = image(workflow, image_id)
        assert img.review_status == ReviewStatus.APPROVED.value
        assert img.status == ImageStatus.APPROVED.value
        assert img.reviewed_by == admin.user_id

    stored = await workflow.assignment_ledger.get_assignment(assignment.id)
    assert stored.status == AssignmentStatus.COMPLETED.value
    assert stored.completed_images == stored.total_images == 5

    project_after = await workflow.projects.get_project(project.id)
    assert project_after.approved_images == 5
    assert project_after.completion_percentage == 100
    # All-approved does not complete the project on its own
    assert project_after.status != ProjectStatus.COMPLETED.value


@pytest.mark.asyncio
async def test_reject_with_two_of_five_flagged(workflow, admin, assigned):
    project, image_ids, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)
    flagged = image_ids[:2]

    reviewed = await workflow.submissions.review_submission(
        submission.id,
        admin,
        ReviewDecision(
            status=SubmissionStatus.REJECTED,
            feedback="two boxes are off",
            flagged_images=[FlaggedImage(image_id=i, reason="misaligned") for i in flagged],
        ),
    )

    assert reviewed.status == SubmissionStatus.REJECTED.value
    for image_id in flagged:
        img = image(workflow, image_id)
        assert img.review_status == ReviewStatus.FLAGGED.value
        assert img.status == ImageStatus.REVIEWED.value
    for image_id in image_ids[2:]:
        img = image(workflow, image_id)
        assert img.status == ImageStatus.ANNOTATED.value
        assert img.review_status == ReviewStatus.NOT_REVIEWED.value

    stored = await workflow.assignment_ledger.get_assignment(assignment.id)
    assert stored.status == AssignmentStatus.NEEDS_REVISION.value


@pytest.mark.asyncio
async def test_resubmission_after_rejection_excludes_approved(workflow, admin, assigned):
    """A resubmission leaves out images approved in an earlier round."""
    project, image_ids, assignment = assigned
    first = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)
    await workflow.submissions.review_submission(
        first.id, admin, ReviewDecision(status=SubmissionStatus.REJECTED))
    workflow.image_repository.update_many(
        image_ids[:3], {"review_status": ReviewStatus.APPROVED.value})

    second = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    assert sorted(second.image_ids) == sorted(image_ids[3:])


@pytest.mark.asyncio
async def test_under_review_then_approve(workflow, admin, assigned):
    project, _, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    await workflow.submissions.review_submission(
        submission.id, admin, ReviewDecision(status=SubmissionStatus.UNDER_REVIEW))
    stored = await workflow.assignment_ledger.get_assignment(assignment.id)
    assert stored.status == AssignmentStatus.UNDER_REVIEW.value

    reviewed = await workflow.submissions.review_submission(
        submission.id, admin, ReviewDecision(status=SubmissionStatus.APPROVED))
    assert [h.status for h in reviewed.review_history] == [
        SubmissionStatus.UNDER_REVIEW.value, SubmissionStatus.APPROVED.value]


@pytest.mark.asyncio
async def test_double_review_conflicts(workflow, admin, assigned):
    project, _, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)
    await workflow.submissions.review_submission(
        submission.id, admin, ReviewDecision(status=SubmissionStatus.APPROVED))

    with pytest.raises(ConflictError):
        await workflow.submissions.review_submission(
            submission.id, admin, ReviewDecision(status=SubmissionStatus.REJECTED))


@pytest.mark.asyncio
async def test_review_status_submitted_is_invalid(workflow, admin, assigned):
    project, _, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    with pytest.raises(InvalidRequestError):
        await workflow.submissions.review_submission(
            submission.id, admin, ReviewDecision(status=SubmissionStatus.SUBMITTED))


@pytest.mark.asyncio
async def test_flagging_foreign_image_is_invalid(workflow, admin, assigned):
    project, _, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    with pytest.raises(InvalidRequestError):
        await workflow.submissions.review_submission(
            submission.id,
            admin,
            ReviewDecision(
                status=SubmissionStatus.REJECTED,
                flagged_images=[FlaggedImage(image_id="not-in-submission")],
            ),
        )

    stored = await workflow.submissions.get_submission(submission.id)
    assert stored.status == SubmissionStatus.SUBMITTED.value


@pytest.mark.asyncio
async def test_empty_image_feedback_is_dropped(workflow, admin, assigned):
    project, image_ids, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    reviewed = await workflow.submissions.review_submission(
        submission.id,
        admin,
        ReviewDecision(
            status=SubmissionStatus.REJECTED,
            image_feedback=[
                ImageFeedback(image_id=image_ids[0], feedback="label the truck"),
                ImageFeedback(image_id=image_ids[1], feedback="   "),
            ],
        ),
    )

    assert [f.image_id for f in reviewed.image_feedback] == [image_ids[0]]
    feedback = await workflow.submissions.get_image_feedback(submission.id, image_ids[0])
    assert feedback.feedback == "label the truck"
    assert await workflow.submissions.get_image_feedback(submission.id, image_ids[1]) is None


@pytest.mark.asyncio
async def test_reviewer_member_may_review(workflow, admin, assigned, reviewer):
    project, _, assignment = assigned
    await workflow.projects.add_member(project.id, reviewer.user_id, MemberRole.REVIEWER, admin)
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    reviewed = await workflow.submissions.review_submission(
        submission.id, reviewer, ReviewDecision(status=SubmissionStatus.APPROVED))

    assert reviewed.reviewed_by == reviewer.user_id


@pytest.mark.asyncio
async def test_non_reviewer_cannot_review(workflow, assigned):
    project, _, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    with pytest.raises(ForbiddenError):
        await workflow.submissions.review_submission(
            submission.id,
            Actor(user_id="ann-a"),
            ReviewDecision(status=SubmissionStatus.APPROVED),
        )


@pytest.mark.asyncio
async def test_review_missing_submission(workflow, admin):
    with pytest.raises(NotFoundError):
        await workflow.submissions.review_submission(
            "missing", admin, ReviewDecision(status=SubmissionStatus.APPROVED))


@pytest.mark.asyncio
async def test_review_skips_images_reassigned_to_another_annotator(workflow, admin):
    """Approving a submission does not touch images that moved to a new owner."""
    project, image_ids = await seed_project(workflow, admin, ["ann-a", "ann-b"], images=2)
    await workflow.distribution.distribute_manual(project.id, [("ann-a", 2)], admin)
    assignment = (await workflow.assignment_ledger.get_user_assignments(project.id, "ann-a"))[0]
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    await workflow.distribution.distribute_manual(
        project.id, [("ann-b", 2)], admin, reset_distribution=True)
    await workflow.submissions.review_submission(
        submission.id, admin, ReviewDecision(status=SubmissionStatus.APPROVED))

    for image_id in image_ids:
        img = image(workflow, image_id)
        assert img.assigned_to == "ann-b"
        assert img.status == ImageStatus.ASSIGNED.value
        assert img.review_status == ReviewStatus.NOT_REVIEWED.value

    stats = await workflow.aggregator.compute_stats(project.id)
    assert stats.approved_images == 0


# ---------------------
# Replay
# ---------------------


@pytest.mark.asyncio
async def test_reapply_review_restores_image_effects(workflow, admin, assigned):
    """Replaying a review converges images that missed the first write."""
    project, image_ids, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)
    await workflow.submissions.review_submission(
        submission.id, admin, ReviewDecision(status=SubmissionStatus.APPROVED))

    # Simulate a partial failure that left two images behind
    workflow.image_repository.update_many(image_ids[:2], {
        "status": ImageStatus.UNDER_REVIEW.value,
        "review_status": ReviewStatus.NOT_REVIEWED.value,
    })

    await workflow.submissions.reapply_review(submission.id)

    for image_id in image_ids:
        assert image(workflow, image_id).review_status == ReviewStatus.APPROVED.value


@pytest.mark.asyncio
async def test_reapply_unreviewed_submission_conflicts(workflow, assigned):
    project, _, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    with pytest.raises(ConflictError):
        await workflow.submissions.reapply_review(submission.id)


# ---------------------
# Eligibility
# ---------------------


@pytest.mark.asyncio
async def test_can_submit_with_annotated_images(workflow, assigned):
    project, _, _ = assigned

    eligibility = await workflow.submissions.can_user_submit(project.id, "ann-a")

    assert eligibility.can_submit is True
    assert eligibility.has_assigned_images is True
    assert eligibility.reason is None


@pytest.mark.asyncio
async def test_can_submit_reasons(workflow, admin, assigned):
    project, image_ids, assignment = assigned

    nobody = await workflow.submissions.can_user_submit(project.id, "ann-z")
    assert nobody.can_submit is False
    assert nobody.reason == REASON_NO_IMAGES

    await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)
    pending = await workflow.submissions.can_user_submit(project.id, "ann-a")
    assert pending.reason == REASON_PENDING_SUBMISSION
    assert pending.pending_submission is True


@pytest.mark.asyncio
async def test_cannot_submit_when_nothing_annotated(workflow, admin):
    project, _ = await seed_project(workflow, admin, ["ann-a"], images=2)
    await workflow.distribution.distribute_smart(project.id, admin)

    eligibility = await workflow.submissions.can_user_submit(project.id, "ann-a")

    assert eligibility.can_submit is False
    assert eligibility.reason == REASON_NOTHING_TO_SUBMIT
    assert eligibility.has_assigned_images is True


@pytest.mark.asyncio
async def test_cannot_submit_to_completed_project(workflow, assigned):
    project, _, _ = assigned
    workflow.projects.project_repository.update(
        project.id, {"status": ProjectStatus.COMPLETED.value})

    eligibility = await workflow.submissions.can_user_submit(project.id, "ann-a")

    assert eligibility.reason == REASON_PROJECT_COMPLETE


@pytest.mark.asyncio
async def test_can_user_submit_never_writes(workflow, admin, assigned):
    project, _, assignment = assigned
    await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)
    db = workflow.db_adapter.db

    def snapshot():
        return {
            name: sorted(db[name].find({}, {"_id": 0}), key=lambda d: d.get("id", ""))
            for name in db.list_collection_names()
        }

    before = snapshot()
    for user_id in ["ann-a", "ann-z", admin.user_id]:
        await workflow.submissions.can_user_submit(project.id, user_id)
    assert snapshot() == before


# ---------------------
# Queries
# ---------------------


@pytest.mark.asyncio
async def test_submission_queries_and_stats(workflow, admin, assigned):
    project, image_ids, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    stats = await workflow.submissions.get_submission_stats(project.id)
    assert (stats.total_submissions, stats.pending_submissions) == (1, 1)

    await workflow.submissions.review_submission(
        submission.id, admin, ReviewDecision(status=SubmissionStatus.REJECTED))
    stats = await workflow.submissions.get_submission_stats(project.id)
    assert (stats.pending_submissions, stats.rejected_submissions) == (0, 1)

    rejected = await workflow.submissions.get_project_submissions(
        project.id, status=SubmissionStatus.REJECTED)
    assert [s.id for s in rejected] == [submission.id]
    assert await workflow.submissions.get_project_submissions(
        project.id, status=SubmissionStatus.APPROVED) == []
    mine = await workflow.submissions.get_user_submissions(project.id, "ann-a")
    assert [s.id for s in mine] == [submission.id]


@pytest.mark.asyncio
async def test_pagination_rejects_bad_page(workflow, assigned):
    project, _, _ = assigned

    with pytest.raises(InvalidRequestError):
        await workflow.submissions.get_project_submissions(project.id, page=0)


@pytest.mark.asyncio
async def test_user_project_submission_status(workflow, admin, assigned):
    project, image_ids, assignment = assigned
    submission = await workflow.submissions.submit_for_review(project.id, "ann-a", assignment.id)

    status = await workflow.submissions.get_user_project_submission_status(project.id, "ann-a")
    assert status.total_assigned == 5
    assert status.pending_review == 5
    assert status.can_submit is False
    assert status.pending_submission.id == submission.id

    await workflow.submissions.review_submission(
        submission.id,
        admin,
        ReviewDecision(
            status=SubmissionStatus.REJECTED,
            flagged_images=[FlaggedImage(image_id=image_ids[0])],
        ),
    )
    status = await workflow.submissions.get_user_project_submission_status(project.id, "ann-a")
    assert status.flagged == 1
    assert status.completed == 4
    assert status.approved == 0
    assert status.progress == 0
    assert status.can_submit is True
    assert status.pending_submission is None
