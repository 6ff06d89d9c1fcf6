"""
Tests for the MongoDB submission repository.
"""
from datetime import datetime, timedelta

import pytest

from annoflow.domains import ReviewHistoryItem, SubmissionReview, SubmissionStatus
from annoflow.repositories.submission import MongoSubmissionRepository

BASE = datetime(2024, 1, 1, 9, 0, 0)


@pytest.fixture
def repo(db_adapter):
    return MongoSubmissionRepository(db_adapter)


def make_submission(submission_id, user_id="ann-a", status=SubmissionStatus.SUBMITTED, minutes=0):
    return SubmissionReview(
        id=submission_id,
        project_id="p1",
        user_id=user_id,
        assignment_id=f"asg-{submission_id}",
        image_ids=["i1", "i2"],
        status=status,
        submitted_at=BASE + timedelta(minutes=minutes),
    )


class TestMongoSubmissionRepository:
    """Tests for the MongoSubmissionRepository."""

    def test_get_pending_for_user(self, repo):
        repo.create(make_submission("s1", status=SubmissionStatus.APPROVED))
        assert repo.get_pending_for_user("p1", "ann-a") is None

        repo.create(make_submission("s2", status=SubmissionStatus.UNDER_REVIEW))
        assert repo.get_pending_for_user("p1", "ann-a").id == "s2"

    def test_record_review_appends_history(self, repo):
        repo.create(make_submission("s1"))
        item = ReviewHistoryItem(reviewed_by="rev-1", status=SubmissionStatus.REJECTED, feedback="redo")

        updated = repo.record_review(
            "s1", {"status": SubmissionStatus.REJECTED.value, "feedback": "redo"}, item)

        assert updated.status == SubmissionStatus.REJECTED.value
        assert len(updated.review_history) == 1
        assert updated.review_history[0].reviewed_by == "rev-1"

    def test_record_review_only_while_pending(self, repo):
        """Test a second decision on a closed submission is refused."""
        repo.create(make_submission("s1", status=SubmissionStatus.APPROVED))
        item = ReviewHistoryItem(reviewed_by="rev-1", status=SubmissionStatus.REJECTED)

        assert repo.record_review("s1", {"status": SubmissionStatus.REJECTED.value}, item) is None
        assert repo.get_by_id("s1").review_history == []

    def test_reject_pending(self, repo):
        repo.create(make_submission("s1"))
        repo.create(make_submission("s2", user_id="ann-b", status=SubmissionStatus.UNDER_REVIEW))
        repo.create(make_submission("s3", user_id="ann-c", status=SubmissionStatus.APPROVED))

        assert repo.reject_pending("p1", "admin-1", "closed") == 2

        for submission_id in ("s1", "s2"):
            closed = repo.get_by_id(submission_id)
            assert closed.status == SubmissionStatus.REJECTED.value
            assert closed.feedback == "closed"
            assert closed.reviewed_by == "admin-1"
        assert repo.get_by_id("s3").status == SubmissionStatus.APPROVED.value

    def test_find_newest_first_and_latest(self, repo):
        repo.create(make_submission("s1", minutes=0, status=SubmissionStatus.REJECTED))
        repo.create(make_submission("s2", minutes=10))

        assert [s.id for s in repo.find({"project_id": "p1"})] == ["s2", "s1"]
        assert repo.count({"status": SubmissionStatus.SUBMITTED.value}) == 1
        assert repo.latest_submitted_at("p1", "ann-a") == BASE + timedelta(minutes=10)
        assert repo.latest_submitted_at("p1", "ann-z") is None
