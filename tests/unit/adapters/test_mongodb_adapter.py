import uuid
from unittest.mock import MagicMock

import pytest
import mongomock
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ServerSelectionTimeoutError

from annoflow.adapters.mongodb_adapter import MongoDBAdapter
from annoflow.exceptions import StorageError


@pytest.fixture
def mongo_client():
    """Fixture for an in-memory MongoDB client."""
    client = mongomock.MongoClient()
    db = client["test_db"]
    yield client, db


@pytest.fixture
def mongodb_adapter(mongo_client):
    """Fixture for MongoDB adapter."""
    client, _ = mongo_client
    adapter = MongoDBAdapter(connection_string="mongodb://localhost:27017", database_name="test_db")
    # Replace the real client with our fixture
    adapter.client = client
    adapter.db = client["test_db"]
    return adapter


@pytest.fixture
def sample_images():
    """Fixture for sample image documents."""
    return [
        {"id": "img-1", "assigned_to": "ann-a", "time_spent": 30},
        {"id": "img-2", "assigned_to": "ann-a", "time_spent": 45},
        {"id": "img-3", "assigned_to": "ann-b", "time_spent": 10},
        {"id": "img-4", "time_spent": 0},
        {"id": "img-5", "time_spent": 0},
    ]


class TestMongoDBAdapter:
    """Test suite for MongoDB adapter."""

    def test_init(self):
        """Test initializing the adapter does not need a live server."""
        adapter = MongoDBAdapter(connection_string="mongodb://localhost:27017", database_name="test_db")
        assert adapter.db.name == "test_db"

    def test_create_collection(self, mongodb_adapter):
        mongodb_adapter.create_collection("project_images")
        mongodb_adapter.create_collection("project_images")
        assert "project_images" in mongodb_adapter.db.list_collection_names()

    def test_collection_exists(self, mongodb_adapter):
        mongodb_adapter.create_collection("projects")
        assert mongodb_adapter.collection_exists("projects") is True
        assert mongodb_adapter.collection_exists("missing") is False

    def test_insert_one_uses_document_id(self, mongodb_adapter):
        """Test the domain id doubles as the Mongo _id."""
        result_id = mongodb_adapter.insert_one("project_images", {"id": "img-1"})
        assert result_id == "img-1"
        assert mongodb_adapter.db["project_images"].find_one({"_id": "img-1"}) is not None

    def test_insert_one_without_id(self, mongodb_adapter):
        result_id = mongodb_adapter.insert_one("project_images", {"filename": "a.jpg"})
        uuid.UUID(result_id)

    def test_find_with_sort_skip_limit(self, mongodb_adapter, sample_images):
        for doc in sample_images:
            mongodb_adapter.insert_one("project_images", doc)

        results = mongodb_adapter.find(
            "project_images", {}, sort=[("time_spent", DESCENDING), ("id", ASCENDING)],
            skip=1, limit=2)
        assert [doc["id"] for doc in results] == ["img-1", "img-3"]

    def test_find_missing_owner_matches_null(self, mongodb_adapter, sample_images):
        """Test a null owner query matches images without the field."""
        for doc in sample_images:
            mongodb_adapter.insert_one("project_images", doc)

        results = mongodb_adapter.find("project_images", {"assigned_to": None})
        assert {doc["id"] for doc in results} == {"img-4", "img-5"}

    def test_find_one_not_existing(self, mongodb_adapter):
        assert mongodb_adapter.find_one("project_images", {"id": "missing"}) is None

    def test_update_one_reports_match(self, mongodb_adapter, sample_images):
        """Test conditional updates report whether the condition held."""
        for doc in sample_images:
            mongodb_adapter.insert_one("project_images", doc)

        assert mongodb_adapter.update_one(
            "project_images", {"id": "img-4", "assigned_to": None},
            {"$set": {"assigned_to": "ann-c"}}) is True
        assert mongodb_adapter.update_one(
            "project_images", {"id": "img-4", "assigned_to": None},
            {"$set": {"assigned_to": "ann-d"}}) is False
        assert mongodb_adapter.find_one("project_images", {"id": "img-4"})["assigned_to"] == "ann-c"

    def test_update_one_with_upsert(self, mongodb_adapter):
        assert mongodb_adapter.update_one(
            "projects", {"id": "p1"}, {"$set": {"name": "Signs"}}, upsert=True) is True
        assert mongodb_adapter.find_one("projects", {"id": "p1"})["name"] == "Signs"

    def test_update_many_returns_matched(self, mongodb_adapter, sample_images):
        for doc in sample_images:
            mongodb_adapter.insert_one("project_images", doc)

        count = mongodb_adapter.update_many(
            "project_images", {"assigned_to": "ann-a"}, {"$unset": {"assigned_to": ""}})
        assert count == 2
        assert mongodb_adapter.count_documents("project_images", {"assigned_to": None}) == 4

    def test_find_one_and_update_returns_new_document(self, mongodb_adapter, sample_images):
        for doc in sample_images:
            mongodb_adapter.insert_one("project_images", doc)

        doc = mongodb_adapter.find_one_and_update(
            "project_images", {"id": "img-3"}, {"$set": {"time_spent": 99}})
        assert doc["time_spent"] == 99
        assert mongodb_adapter.find_one_and_update(
            "project_images", {"id": "missing"}, {"$set": {"time_spent": 1}}) is None

    def test_delete_one_and_many(self, mongodb_adapter, sample_images):
        for doc in sample_images:
            mongodb_adapter.insert_one("project_images", doc)

        assert mongodb_adapter.delete_one("project_images", {"id": "img-5"}) is True
        assert mongodb_adapter.delete_one("project_images", {"id": "img-5"}) is False
        assert mongodb_adapter.delete_many("project_images", {"assigned_to": "ann-a"}) == 2
        assert mongodb_adapter.count_documents("project_images", {}) == 2

    def test_create_index(self, mongodb_adapter):
        mongodb_adapter.create_index("project_images", [("id", ASCENDING)], unique=True)

        indexes = mongodb_adapter.db["project_images"].index_information()
        id_index = [info for name, info in indexes.items() if name != "_id_"]
        assert id_index and id_index[0]["unique"] is True

    def test_driver_errors_become_storage_errors(self, mongodb_adapter):
        """Test driver failures surface as StorageError."""
        collection = MagicMock()
        collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")
        mongodb_adapter.db = MagicMock()
        mongodb_adapter.db.__getitem__.return_value = collection

        with pytest.raises(StorageError) as exc_info:
            mongodb_adapter.find_one("project_images", {"id": "img-1"})

        assert "find_one" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ServerSelectionTimeoutError)
