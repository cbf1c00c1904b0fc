"""Unit tests covering environment and file overrides for settings."""

from __future__ import annotations

import textwrap

from anzen.settings.config import DEFAULT_ICONS, reload_settings


def _clear_env(monkeypatch: object, *names: str) -> None:
    for name in names:
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_deployment_values(monkeypatch: object) -> None:
    _clear_env(
        monkeypatch,
        "ANZEN_LLM__PROVIDER",
        "ANZEN_LLM_PROVIDER",
        "LLM__PROVIDER",
        "LLM_PROVIDER",
        "ANZEN_SETTINGS_FILE",
        "ANZEN_SEARCH__MIN_MEDIA_BYTES",
    )

    settings = reload_settings()

    assert settings.base_language == "ja"
    assert settings.languages.targets == ["en", "bn", "zh"]
    assert settings.languages.all_languages == ["ja", "en", "bn", "zh"]
    assert settings.embedding_dim == 3072
    assert settings.storage.cases_collection == "anzen-site-cases"
    assert settings.storage.case_cause_field == "原因"
    assert settings.catalog.target_category_count == 50
    assert settings.catalog.min_category_count == 40
    assert settings.search.min_media_bytes == 51200
    assert settings.search.suggestion_count == 10
    assert tuple(settings.search.icons) == DEFAULT_ICONS


def test_llm_provider_env_override(monkeypatch: object) -> None:
    """Ensure the llm.provider value follows environment overrides."""

    _clear_env(monkeypatch, "ANZEN_LLM__PROVIDER", "ANZEN_LLM_PROVIDER", "LLM__PROVIDER", "LLM_PROVIDER")

    assert reload_settings().llm.provider == "vertex_ai"

    monkeypatch.setenv("ANZEN_LLM__PROVIDER", "mock")
    assert reload_settings().llm.provider == "mock"


def test_nested_search_env_override(monkeypatch: object) -> None:
    _clear_env(monkeypatch, "ANZEN_SEARCH__MIN_MEDIA_BYTES", "ANZEN_SEARCH__SUGGESTION_COUNT")
    monkeypatch.setenv("ANZEN_SEARCH__MIN_MEDIA_BYTES", "1024")
    monkeypatch.setenv("ANZEN_SEARCH__SUGGESTION_COUNT", "5")

    settings = reload_settings()

    assert settings.search.min_media_bytes == 1024
    assert settings.search.suggestion_count == 5


def test_settings_file_override(tmp_path, monkeypatch: object) -> None:
    """Ensure TOML config files populate settings without manual env vars."""

    _clear_env(monkeypatch, "ANZEN_STORAGE__FIRESTORE_PROJECT", "ANZEN_CATALOG__MIN_CATEGORY_COUNT")
    settings_file = tmp_path / "settings.override.toml"
    settings_file.write_text(
        textwrap.dedent(
            """
            [storage]
            firestore_project = "anzen-dev"

            [catalog]
            min_category_count = 12
            """
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("ANZEN_SETTINGS_FILE", str(settings_file))

    settings = reload_settings()

    assert settings.storage.firestore_project == "anzen-dev"
    assert settings.catalog.min_category_count == 12
    assert settings.catalog.target_category_count == 50
    assert settings_file in settings.config_files
