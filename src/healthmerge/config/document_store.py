"""Document-store (records REST API) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import float_env_var, optional_env_var, require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

DOCUMENT_STORE_TIMEOUT_SECONDS = 10.0
CACHE_TTL_ENV_VAR = "HEALTHMERGE_DOCUMENT_STORE_CACHE_TTL_SECONDS"


@dataclass(frozen=True)
class DocumentStoreConfig:
    base_url: str
    resilience: ResilienceConfig


def _cache_config() -> CacheConfig | None:
    # Opt-in: cached responses contain personal records.
    if optional_env_var(CACHE_TTL_ENV_VAR) is None:
        return None
    return CacheConfig(
        backend="sqlite",
        default_ttl_seconds=float_env_var(CACHE_TTL_ENV_VAR, 0.0),
    )


def get_document_store_config(
    *,
    resilience: ResilienceConfig | None = None,
) -> DocumentStoreConfig:
    """Return the document-store endpoint.

    Record lookups are not cached unless
    ``HEALTHMERGE_DOCUMENT_STORE_CACHE_TTL_SECONDS`` is set.
    """

    values = require_env_vars(("HEALTHMERGE_DOCUMENT_STORE_URL",))
    base_url = values["HEALTHMERGE_DOCUMENT_STORE_URL"].strip()
    timeout_seconds = float_env_var(
        "HEALTHMERGE_DOCUMENT_STORE_TIMEOUT_SECONDS", DOCUMENT_STORE_TIMEOUT_SECONDS
    )
    return DocumentStoreConfig(
        base_url=base_url,
        resilience=resilience
        or ResilienceConfig(
            name="document-store",
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            cache=_cache_config(),
        ),
    )
