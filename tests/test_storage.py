"""
Unit tests for file-backed storage.
"""

import json

import pytest

from stepwright.core.types import (
    CreateTestCaseInput,
    ModelConfigInput,
    StepType,
    TestCaseStep,
    UpdateTestCaseInput,
)
from stepwright.error_handling import StorageError, TestCaseNotFoundError, ValidationError
from stepwright.storage.store import ModelConfigStore, TestCaseStore


@pytest.fixture
def store(tmp_path) -> TestCaseStore:
    """Test case store in a temporary directory."""
    return TestCaseStore(tmp_path / "test-cases")


def _login_input() -> CreateTestCaseInput:
    return CreateTestCaseInput(
        name="  Login  ",
        base_url=" https://example.com/login ",
        steps=[
            TestCaseStep(id="s1", type=StepType.INPUT, params={"target": "Email", "value": "a@b.c"}),
            TestCaseStep(id="s2", type=StepType.TAP, params={"target": "Sign in"}),
        ],
    )


class TestTestCaseStore:
    """Tests for TestCaseStore."""

    def test_create_assigns_identity(self, store):
        """Create assigns an id and matching timestamps and trims text."""
        test_case = store.create(_login_input())

        assert test_case.id
        assert test_case.created_at == test_case.updated_at
        assert test_case.name == "Login"
        assert test_case.base_url == "https://example.com/login"
        assert (store.directory / f"{test_case.id}.json").exists()

    def test_create_rejects_blank_name(self, store):
        """A blank name is rejected."""
        with pytest.raises(ValidationError, match="name is required"):
            store.create(CreateTestCaseInput(name="   ", base_url="https://example.com"))

    def test_get_round_trip(self, store):
        """A created test case loads back unchanged."""
        created = store.create(_login_input())

        loaded = store.get(created.id)

        assert loaded == created
        assert [step.id for step in loaded.steps] == ["s1", "s2"]

    def test_get_missing(self, store):
        """An unknown id returns None."""
        assert store.get("does-not-exist") is None

    def test_get_rejects_path_ids(self, store):
        """Ids that would escape the directory are rejected."""
        with pytest.raises(ValidationError):
            store.get("../secrets")

    def test_stored_document_is_camel_case(self, store):
        """Documents on disk use camelCase keys."""
        created = store.create(_login_input())

        document = json.loads((store.directory / f"{created.id}.json").read_text())

        assert document["baseUrl"] == "https://example.com/login"
        assert document["steps"][0]["params"]["value"] == "a@b.c"

    def test_list_sorted_by_creation(self, store):
        """List returns test cases oldest first."""
        store.import_document(
            {"id": "b", "name": "B", "baseUrl": "https://b", "createdAt": "2024-02-01T00:00:00.000Z"}
        )
        store.import_document(
            {"id": "a", "name": "A", "baseUrl": "https://a", "createdAt": "2024-03-01T00:00:00.000Z"}
        )
        store.import_document(
            {"id": "c", "name": "C", "baseUrl": "https://c", "createdAt": "2024-01-01T00:00:00.000Z"}
        )

        assert [tc.id for tc in store.list()] == ["c", "b", "a"]

    def test_list_empty_directory(self, tmp_path):
        """A missing directory lists nothing."""
        assert TestCaseStore(tmp_path / "missing").list() == []

    def test_update_keeps_id(self, store):
        """Update changes fields, refreshes updated_at and keeps the id."""
        created = store.create(_login_input())

        updated = store.update(
            created.id,
            UpdateTestCaseInput(
                name="Login v2",
                steps=[TestCaseStep(id="s9", type=StepType.ASSERT, params={"value": "Welcome"})],
            ),
        )

        assert updated.id == created.id
        assert updated.name == "Login v2"
        assert updated.base_url == created.base_url
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at
        assert [step.id for step in store.get(created.id).steps] == ["s9"]

    def test_update_missing(self, store):
        """Updating an unknown id raises."""
        with pytest.raises(TestCaseNotFoundError):
            store.update("nope", UpdateTestCaseInput(name="x"))

    def test_delete(self, store):
        """Delete removes the document."""
        created = store.create(_login_input())

        store.delete(created.id)

        assert store.get(created.id) is None
        with pytest.raises(TestCaseNotFoundError):
            store.delete(created.id)

    def test_import_assigns_missing_fields(self, store):
        """Import fills in id and timestamps and normalizes legacy tags."""
        test_case = store.import_document(
            {
                "name": "Search",
                "baseUrl": "https://example.com",
                "steps": [{"id": "s1", "type": "aiTap", "params": {"target": "Search"}}],
            }
        )

        assert test_case.id
        assert test_case.created_at
        assert test_case.steps[0].type == StepType.TAP

    def test_import_invalid_document(self, store):
        """A document without required fields is rejected."""
        with pytest.raises(ValidationError):
            store.import_document({"name": "No base url"})

    def test_malformed_document(self, store):
        """A corrupt stored document raises StorageError."""
        store.directory.mkdir(parents=True)
        (store.directory / "broken.json").write_text("[1, 2")

        with pytest.raises(StorageError):
            store.get("broken")


class TestModelConfigStore:
    """Tests for ModelConfigStore."""

    def test_get_missing(self, tmp_path):
        """No document returns None."""
        assert ModelConfigStore(tmp_path / "model-config.json").get() is None

    def test_save_normalizes(self, tmp_path):
        """Save strips values, defaults the family and stamps updated_at."""
        store = ModelConfigStore(tmp_path / "model-config.json")

        saved = store.save(
            ModelConfigInput(api_key=" sk-abc ", base_url="https://api/ ", model_name=" gpt-4o ")
        )

        assert saved.api_key == "sk-abc"
        assert saved.model_name == "gpt-4o"
        assert saved.model_family == "openai"
        assert saved.updated_at
        assert store.get() == saved

        document = json.loads(store.path.read_text())
        assert document["modelName"] == "gpt-4o"
        assert document["modelFamily"] == "openai"

    def test_save_rejects_missing_fields(self, tmp_path):
        """Save rejects an incomplete configuration."""
        store = ModelConfigStore(tmp_path / "model-config.json")

        with pytest.raises(ValidationError, match="baseUrl is required"):
            store.save(ModelConfigInput(api_key="sk-abc", model_name="gpt-4o"))

        assert not store.path.exists()

    def test_invalid_document(self, tmp_path):
        """A non-object document raises StorageError."""
        path = tmp_path / "model-config.json"
        path.write_text('"just a string"')

        with pytest.raises(StorageError):
            ModelConfigStore(path).get()
