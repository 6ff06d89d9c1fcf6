"""
Shared fixtures for the AnnoFlow test suite.
"""
import pytest

from annoflow.domains import Actor, UserRole
from annoflow.factories.workflow_factory import AnnoFlowFactory
from workflow_helpers import build_mock_adapter


# ---------------------
# Fixtures
# ---------------------


@pytest.fixture
def db_adapter():
    """Return a MongoDBAdapter backed by mongomock."""
    return build_mock_adapter()


@pytest.fixture
def workflow(db_adapter):
    """Return fully wired workflow services on a fresh in-memory database."""
    return AnnoFlowFactory.create_from_config({}, db_adapter=db_adapter)


@pytest.fixture
def admin():
    """Return an admin actor."""
    return Actor(user_id="admin-1", role=UserRole.ADMIN)


@pytest.fixture
def plain_user():
    """Return a non-admin actor."""
    return Actor(user_id="user-9", role=UserRole.USER)
