"""
Tests for the AnnoFlow client interface.
"""
import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from annoflow.client.annoflow import AnnoFlow
from annoflow.domains import Actor, ReviewDecision, UserRole


@pytest.fixture
def config_dict():
    """Fixture providing test configuration."""
    return {
        "mongo": {
            "connection_string": "mongodb://localhost:27017",
            "database": "test_db",
        },
    }


@pytest.fixture
def mock_services():
    services = MagicMock()
    services.distribution.distribute_smart = AsyncMock(return_value="result")
    services.distribution.distribute_manual = AsyncMock(return_value="result")
    services.submissions.review_submission = AsyncMock(return_value="reviewed")
    services.projects.mark_project_complete = AsyncMock(return_value="project")
    services.assignment_ledger.get_user_assignments = AsyncMock(return_value=[])
    return services


class TestAnnoFlow:
    """Test suite for AnnoFlow client."""

    def test_requires_config(self):
        with pytest.raises(ValueError):
            AnnoFlow()

    @patch("annoflow.client.annoflow.AnnoFlowFactory")
    def test_init_with_config(self, mock_factory, config_dict):
        AnnoFlow(config=config_dict)

        mock_factory.create_from_config.assert_called_once_with(config_dict, db_adapter=None)

    @patch("annoflow.client.annoflow.AnnoFlowFactory")
    def test_init_with_json_file(self, mock_factory, config_dict, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(config_dict))

        AnnoFlow(config_path=str(path))

        mock_factory.create_from_config.assert_called_once_with(config_dict, db_adapter=None)

    @patch("annoflow.client.annoflow.AnnoFlowFactory")
    def test_init_with_python_file(self, mock_factory, tmp_path):
        path = tmp_path / "settings.py"
        path.write_text("config = {'logging': {'level': 'INFO'}}\n")

        AnnoFlow(config_path=str(path))

        mock_factory.create_from_config.assert_called_once_with(
            {"logging": {"level": "INFO"}}, db_adapter=None)

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AnnoFlow(config_path=str(tmp_path / "missing.json"))

    @pytest.mark.asyncio
    @patch("annoflow.client.annoflow.AnnoFlowFactory")
    async def test_delegates_to_services(self, mock_factory, config_dict, mock_services):
        """Test each call is forwarded to the owning service."""
        mock_factory.create_from_config.return_value = mock_services
        client = AnnoFlow(config=config_dict)
        admin = Actor(user_id="admin-1", role=UserRole.ADMIN)
        decision = ReviewDecision(status="APPROVED")

        assert await client.distribute_smart("p1", admin, reset_distribution=True) == "result"
        mock_services.distribution.distribute_smart.assert_awaited_once_with("p1", admin, True)

        await client.distribute_manual("p1", [("ann-a", 2)], admin)
        mock_services.distribution.distribute_manual.assert_awaited_once_with(
            "p1", [("ann-a", 2)], admin, False)

        assert await client.review_submission("s1", admin, decision) == "reviewed"
        mock_services.submissions.review_submission.assert_awaited_once_with("s1", admin, decision)

        assert await client.mark_project_complete("p1", admin) == "project"

        await client.get_user_assignments("p1", "ann-a", page=2)
        mock_services.assignment_ledger.get_user_assignments.assert_awaited_once_with(
            "p1", "ann-a", page=2, limit=20)

    @pytest.mark.asyncio
    async def test_end_to_end_with_adapter(self, db_adapter):
        """Test the client drives a real workflow on an injected adapter."""
        client = AnnoFlow(config={"activity_log": {"enabled": False}}, db_adapter=db_adapter)
        admin = Actor(user_id="admin-1", role=UserRole.ADMIN)

        project = await client.create_project("Signs", admin)
        await client.add_member(project.id, "ann-a", "ANNOTATOR", admin)

        assert await client.is_member(project.id, "ann-a")
        assert (await client.count_pool(project.id)).total == 0
        assert not await client.is_project_complete(project.id)
