"""Application configuration helpers."""

from __future__ import annotations

from .collaborator import CollaboratorConfig, get_collaborator_config
from .datasets import DEFAULT_DATASETS, get_dataset_catalog, parse_dataset_spec
from .document_store import DocumentStoreConfig, get_document_store_config
from .env import float_env_var, optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_http_cache_path,
    get_storage_config,
)

__all__ = [
    "DEFAULT_DATASETS",
    "CacheConfig",
    "CollaboratorConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "DocumentStoreConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "float_env_var",
    "get_collaborator_config",
    "get_database_config",
    "get_dataset_catalog",
    "get_document_store_config",
    "get_http_cache_path",
    "get_storage_config",
    "optional_env_var",
    "parse_dataset_spec",
    "require_env_var",
    "require_env_vars",
]
