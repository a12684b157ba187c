"""
Model configuration resolution.

The AI capability needs credentials, an endpoint and a model name. They come
from the persisted configuration document when one exists, otherwise from
``STEPWRIGHT_MODEL_*`` environment variables.
"""

from pathlib import Path
from typing import Dict, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from stepwright.config.settings import get_settings
from stepwright.core.types import DEFAULT_MODEL_FAMILY, ModelConfig
from stepwright.monitoring.logger import get_logger
from stepwright.storage.store import ModelConfigStore

logger = get_logger(__name__)

ENV_MODEL_API_KEY = "STEPWRIGHT_MODEL_API_KEY"
ENV_MODEL_BASE_URL = "STEPWRIGHT_MODEL_BASE_URL"
ENV_MODEL_NAME = "STEPWRIGHT_MODEL_NAME"
ENV_MODEL_FAMILY = "STEPWRIGHT_MODEL_FAMILY"
ENV_USE_VL_MODEL = "STEPWRIGHT_USE_VL_MODEL"


class ModelEnvironment(BaseSettings):
    """Model configuration keys read from the process environment."""

    model_config = SettingsConfigDict(
        env_prefix="STEPWRIGHT_MODEL_",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: Optional[str] = None
    base_url: Optional[str] = None
    name: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.api_key or self.base_url or self.name)

    def to_model_config(self) -> ModelConfig:
        return ModelConfig(
            api_key=self.api_key or "",
            base_url=self.base_url or "",
            model_name=self.name or "",
            model_family=DEFAULT_MODEL_FAMILY,
        )


class ModelConfigResolver:
    """Resolve the model configuration: persisted document first, then environment."""

    def __init__(self, store: Optional[ModelConfigStore] = None, config_path: Optional[Path] = None):
        """
        Initialize the resolver.

        Args:
            store: Store holding the persisted configuration
            config_path: Document location used when no store is given
        """
        if store is None:
            store = ModelConfigStore(config_path or get_settings().model_config_path)
        self.store = store

    def resolve(self) -> Optional[ModelConfig]:
        """
        Return the effective model configuration, or None when neither the
        persisted document nor the environment provides one.

        A malformed persisted document raises StorageError rather than
        silently falling back to the environment.
        """
        config = self.store.get()
        if config is not None:
            logger.debug("Using persisted model configuration", extra={"path": str(self.store.path)})
            return config

        environment = ModelEnvironment()
        if environment.is_empty():
            return None

        logger.debug("Using model configuration from environment")
        return environment.to_model_config()


def is_vl_model(config: ModelConfig, marker: Optional[str] = None) -> bool:
    """
    Whether the configured model belongs to a visually grounded family.

    Matches the family name exactly or the model name by substring, both
    case-insensitively.
    """
    marker = (marker if marker is not None else get_settings().vl_model_marker).lower()
    if not marker:
        return False
    family = (config.model_family or "").lower()
    model_name = (config.model_name or "").lower()
    return family == marker or marker in model_name


def build_model_environment(config: ModelConfig, marker: Optional[str] = None) -> Dict[str, str]:
    """
    Build the per-run model environment handed to the action capability.

    The family key is omitted for visually grounded models, which are driven
    by the VL flag instead.
    """
    use_vl = is_vl_model(config, marker)
    environment = {
        ENV_MODEL_API_KEY: config.api_key,
        ENV_MODEL_BASE_URL: config.base_url,
        ENV_MODEL_NAME: config.model_name,
        ENV_USE_VL_MODEL: "1" if use_vl else "0",
    }
    if not use_vl:
        environment[ENV_MODEL_FAMILY] = config.model_family or DEFAULT_MODEL_FAMILY
    return environment
