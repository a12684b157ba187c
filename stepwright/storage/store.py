"""
File-backed storage for test case documents and the model configuration.

Each test case lives in ``<directory>/<id>.json``; the model configuration is
a single JSON document. Both are plain camelCase JSON so they stay editable
by hand and by the flow-canvas editor.
"""

import json
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from stepwright.core.interfaces import TestCaseRepository
from stepwright.core.types import (
    DEFAULT_MODEL_FAMILY,
    CreateTestCaseInput,
    ModelConfig,
    ModelConfigInput,
    TestCase,
    UpdateTestCaseInput,
    utc_now_iso,
    validate_model_config,
)
from stepwright.error_handling import StorageError, TestCaseNotFoundError, ValidationError
from stepwright.monitoring.logger import get_logger

logger = get_logger(__name__)


def _read_json(path: Path) -> Optional[Dict[str, Any]]:
    """Read a JSON object from ``path``; None when the file does not exist."""
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StorageError(f"Failed to read {path}: {e}", path=str(path), cause=e)

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise StorageError(f"Malformed JSON in {path}: {e}", path=str(path), cause=e)

    if not isinstance(data, dict):
        raise StorageError(f"Expected a JSON object in {path}", path=str(path))
    return data


def _write_json(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def _require_text(value: Optional[str], field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required", field=field)
    return value.strip()


class TestCaseStore(TestCaseRepository):
    """Keyed JSON-document storage for test cases."""

    __test__ = False

    def __init__(self, directory: Path):
        """
        Initialize the store.

        Args:
            directory: Directory holding one JSON document per test case
        """
        self.directory = Path(directory)

    def _path_for(self, test_case_id: str) -> Path:
        if (
            not test_case_id
            or "/" in test_case_id
            or "\\" in test_case_id
            or test_case_id in {".", ".."}
        ):
            raise ValidationError(f"Invalid test case id: {test_case_id!r}", field="id")
        return self.directory / f"{test_case_id}.json"

    def _parse(self, data: Dict[str, Any], path: Path) -> TestCase:
        try:
            return TestCase.model_validate(data)
        except PydanticValidationError as e:
            raise StorageError(
                f"Invalid test case document {path}: {e.error_count()} validation error(s)",
                path=str(path),
                cause=e,
            )

    def _save(self, test_case: TestCase) -> None:
        _write_json(self._path_for(test_case.id), test_case.to_document())

    def get(self, test_case_id: str) -> Optional[TestCase]:
        """Load a test case by id; None when no document exists."""
        path = self._path_for(test_case_id)
        data = _read_json(path)
        if data is None:
            return None
        return self._parse(data, path)

    def list(self) -> List[TestCase]:
        """Return every stored test case, oldest first."""
        if not self.directory.exists():
            return []

        test_cases = []
        for path in sorted(self.directory.glob("*.json")):
            data = _read_json(path)
            if data is not None:
                test_cases.append(self._parse(data, path))
        return sorted(test_cases, key=lambda tc: tc.created_at)

    def create(self, data: CreateTestCaseInput) -> TestCase:
        """Create a test case, assigning its id and timestamps."""
        now = utc_now_iso()
        test_case = TestCase(
            id=str(uuid.uuid4()),
            name=_require_text(data.name, "name"),
            base_url=_require_text(data.base_url, "baseUrl"),
            created_at=now,
            updated_at=now,
            steps=list(data.steps),
        )
        self._save(test_case)
        logger.info("Created test case", extra={"test_case_id": test_case.id})
        return test_case

    def import_document(self, document: Dict[str, Any]) -> TestCase:
        """
        Store an externally authored document.

        Missing ids and timestamps are assigned; an existing document with the
        same id is replaced.
        """
        now = utc_now_iso()
        payload = dict(document)
        payload.setdefault("id", str(uuid.uuid4()))
        payload.setdefault("createdAt", now)
        payload.setdefault("updatedAt", now)

        try:
            test_case = TestCase.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid test case document: {e}", cause=e)

        _require_text(test_case.name, "name")
        _require_text(test_case.base_url, "baseUrl")
        self._save(test_case)
        logger.info("Imported test case", extra={"test_case_id": test_case.id})
        return test_case

    def update(self, test_case_id: str, data: UpdateTestCaseInput) -> TestCase:
        """Apply a partial update and refresh ``updated_at``."""
        existing = self.get(test_case_id)
        if existing is None:
            raise TestCaseNotFoundError(test_case_id)

        changes: Dict[str, Any] = {"updated_at": utc_now_iso()}
        if data.name is not None:
            changes["name"] = _require_text(data.name, "name")
        if data.base_url is not None:
            changes["base_url"] = _require_text(data.base_url, "baseUrl")
        if data.steps is not None:
            changes["steps"] = list(data.steps)

        updated = existing.model_copy(update=changes)
        self._save(updated)
        logger.info("Updated test case", extra={"test_case_id": test_case_id})
        return updated

    def delete(self, test_case_id: str) -> None:
        """Delete a stored test case."""
        path = self._path_for(test_case_id)
        if not path.exists():
            raise TestCaseNotFoundError(test_case_id)
        path.unlink()
        logger.info("Deleted test case", extra={"test_case_id": test_case_id})


class ModelConfigStore:
    """Single-document storage for the AI model configuration."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def get(self) -> Optional[ModelConfig]:
        """Return the persisted configuration; None when none was saved."""
        data = _read_json(self.path)
        if data is None:
            return None
        try:
            return ModelConfig.model_validate(data)
        except PydanticValidationError as e:
            raise StorageError(
                f"Invalid model configuration document {self.path}",
                path=str(self.path),
                cause=e,
            )

    def save(self, data: ModelConfigInput) -> ModelConfig:
        """Validate, normalize and persist a model configuration."""
        problem = validate_model_config(data)
        if problem:
            raise ValidationError(problem)

        config = ModelConfig(
            api_key=data.api_key.strip(),
            base_url=data.base_url.strip(),
            model_name=data.model_name.strip(),
            model_family=(data.model_family or "").strip() or DEFAULT_MODEL_FAMILY,
            updated_at=utc_now_iso(),
        )
        _write_json(self.path, config.to_document())
        logger.info(
            "Saved model configuration",
            extra={"model_name": config.model_name, "model_family": config.model_family},
        )
        return config
