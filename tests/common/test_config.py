from __future__ import annotations

import pytest

from healthmerge.config import (
    DEFAULT_DATASETS,
    ConfigurationError,
    MissingConfigurationError,
    float_env_var,
    get_collaborator_config,
    get_dataset_catalog,
    get_document_store_config,
    parse_dataset_spec,
    require_env_var,
    require_env_vars,
)


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_raises_when_any_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR"])

    assert "MISSING_VAR" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


@pytest.mark.parametrize(("raw", "message"), [("soon", "number"), ("-1", "positive")])
def test_float_env_var_rejects_bad_values(
    monkeypatch: pytest.MonkeyPatch, raw: str, message: str
) -> None:
    monkeypatch.setenv("EXAMPLE_TIMEOUT", raw)

    with pytest.raises(ConfigurationError, match=message):
        float_env_var("EXAMPLE_TIMEOUT", 5.0)


def test_float_env_var_defaults_when_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_TIMEOUT", raising=False)

    assert float_env_var("EXAMPLE_TIMEOUT", 5.0) == 5.0


def test_default_dataset_catalog() -> None:
    catalog = get_dataset_catalog()

    assert catalog.ids == tuple(dataset_id for dataset_id, _ in DEFAULT_DATASETS)
    assert catalog.require("seksi-p2p").name == "Seksi Pencegahan dan Penanggulangan Penyakit"


def test_dataset_catalog_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEALTHMERGE_DATASETS", "puskesmas-a=Puskesmas A; puskesmas-b = Puskesmas B;")

    catalog = get_dataset_catalog()

    assert catalog.ids == ("puskesmas-a", "puskesmas-b")
    assert catalog.require("puskesmas-b").name == "Puskesmas B"


@pytest.mark.parametrize("raw", ["no-separator", "=Name Only", ";;", "a=A;a=Again"])
def test_invalid_dataset_config_is_rejected(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("HEALTHMERGE_DATASETS", raw)

    with pytest.raises(ConfigurationError):
        get_dataset_catalog()


def test_parse_dataset_spec_keeps_order() -> None:
    assert parse_dataset_spec("b=B;a=A") == (("b", "B"), ("a", "A"))


def test_collaborator_is_optional() -> None:
    assert get_collaborator_config() is None


def test_collaborator_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEALTHMERGE_MODEL_BASE_URL", "https://llm.example.test/v1/")
    monkeypatch.setenv("HEALTHMERGE_MODEL_NAME", "merge-model")
    monkeypatch.setenv("HEALTHMERGE_MODEL_API_KEY", "secret")
    monkeypatch.setenv("HEALTHMERGE_MODEL_TIMEOUT_SECONDS", "7.5")

    config = get_collaborator_config()

    assert config is not None
    assert config.model == "merge-model"
    assert config.timeout_seconds == 7.5
    assert config.resilience.base_url == "https://llm.example.test/v1/"
    assert config.resilience.cache is None
    assert config.resilience.default_headers == {"Authorization": "Bearer secret"}


def test_collaborator_requires_model_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEALTHMERGE_MODEL_BASE_URL", "https://llm.example.test/v1/")

    with pytest.raises(MissingConfigurationError, match="HEALTHMERGE_MODEL_NAME"):
        get_collaborator_config()


def test_document_store_requires_url() -> None:
    with pytest.raises(MissingConfigurationError, match="HEALTHMERGE_DOCUMENT_STORE_URL"):
        get_document_store_config()


def test_document_store_skips_cache_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEALTHMERGE_DOCUMENT_STORE_URL", " https://records.example.test/api/ ")

    config = get_document_store_config()

    assert config.base_url == "https://records.example.test/api/"
    assert config.resilience.cache is None


def test_document_store_cache_is_opt_in(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEALTHMERGE_DOCUMENT_STORE_URL", "https://records.example.test/api/")
    monkeypatch.setenv("HEALTHMERGE_DOCUMENT_STORE_CACHE_TTL_SECONDS", "60")

    config = get_document_store_config()

    assert config.resilience.cache is not None
    assert config.resilience.cache.backend == "sqlite"
    assert config.resilience.cache.default_ttl_seconds == 60.0


def test_document_store_cache_ttl_must_be_positive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HEALTHMERGE_DOCUMENT_STORE_URL", "https://records.example.test/api/")
    monkeypatch.setenv("HEALTHMERGE_DOCUMENT_STORE_CACHE_TTL_SECONDS", "0")

    with pytest.raises(ConfigurationError, match="must be positive"):
        get_document_store_config()
