"""Language-model reconciliation collaborator configuration."""

from __future__ import annotations

from dataclasses import dataclass

from .env import float_env_var, optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_MODEL_TIMEOUT_SECONDS = 20.0


@dataclass(frozen=True)
class CollaboratorConfig:
    """Holds the chat-completions endpoint used to reconcile records."""

    base_url: str
    model: str
    timeout_seconds: float
    resilience: ResilienceConfig
    api_key: str | None = None


def _default_resilience(
    base_url: str,
    *,
    timeout_seconds: float,
    api_key: str | None,
) -> ResilienceConfig:
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
    return ResilienceConfig(
        name="reconciliation-model",
        base_url=base_url,
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(total=1, max_backoff_wait=2.0),
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        cache=None,
        default_headers=headers,
    )


def get_collaborator_config(
    *,
    resilience: ResilienceConfig | None = None,
) -> CollaboratorConfig | None:
    """Return the collaborator configuration, or ``None`` when none is set up.

    Without ``HEALTHMERGE_MODEL_BASE_URL`` every merge uses the deterministic
    fallback policy.
    """

    base_url = optional_env_var("HEALTHMERGE_MODEL_BASE_URL")
    if base_url is None:
        return None
    values = require_env_vars(("HEALTHMERGE_MODEL_NAME",))
    api_key = optional_env_var("HEALTHMERGE_MODEL_API_KEY")
    timeout_seconds = float_env_var(
        "HEALTHMERGE_MODEL_TIMEOUT_SECONDS", DEFAULT_MODEL_TIMEOUT_SECONDS
    )
    return CollaboratorConfig(
        base_url=base_url,
        model=values["HEALTHMERGE_MODEL_NAME"].strip(),
        timeout_seconds=timeout_seconds,
        api_key=api_key,
        resilience=resilience
        or _default_resilience(base_url, timeout_seconds=timeout_seconds, api_key=api_key),
    )
