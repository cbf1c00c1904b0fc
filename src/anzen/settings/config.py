"""Configuration loader for anzen services using Pydantic settings."""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

ENV_VAR_NAME = "ANZEN_ENV"
DEFAULT_ENV = "local"
PROJECT_ROOT = Path(__file__).resolve().parents[3]
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.default.toml"
LOCAL_CONFIG_FILE = CONFIG_DIR / "settings.local.toml"
SETTINGS_FILE_ENV_VAR = "ANZEN_SETTINGS_FILE"

DEFAULT_ICONS = (
    "person-falling",
    "bolt",
    "helmet-safety",
    "triangle-exclamation",
    "fire",
    "tools",
    "truck-moving",
    "user-doctor",
    "temperature-high",
    "wind",
)


def _resolve_env(explicit_env: str | None = None) -> str:
    """Return the active environment name.

    Args:
        explicit_env: Environment value supplied directly by the caller.

    Returns:
        A stripped environment name, falling back to ``DEFAULT_ENV``.
    """

    env = explicit_env or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV
    return env.strip()


def _env_file_candidates(env: str) -> list[Path]:
    """List candidate ``.env`` files used during settings resolution."""

    return [
        PROJECT_ROOT / ".env",
        PROJECT_ROOT / f".env.{env}",
        PROJECT_ROOT / ".env.local",
    ]


def _resolve_config_path(raw_path: str | None) -> Path | None:
    """Return an absolute config path from user input."""

    if not raw_path:
        return None
    candidate = Path(raw_path).expanduser()
    if not candidate.is_absolute():
        candidate = (PROJECT_ROOT / candidate).resolve()
    return candidate


def _config_file_priority(include_missing: bool = False) -> tuple[Path, ...]:
    """Return config files in descending precedence order."""

    ordered: list[Path] = []
    env_override = _resolve_config_path(os.getenv(SETTINGS_FILE_ENV_VAR))
    if env_override:
        ordered.append(env_override)
    ordered.append(LOCAL_CONFIG_FILE)
    ordered.append(DEFAULT_CONFIG_FILE)
    if include_missing:
        return tuple(ordered)
    return tuple(path for path in ordered if path.exists())


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Pydantic settings source that loads values from a TOML file."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path) -> None:
        super().__init__(settings_cls)
        self.path = path
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data
        if not self.path.exists():
            self._data = {}
            return self._data
        try:
            with self.path.open("rb") as handle:
                self._data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:  # pragma: no cover - invalid files surface immediately
            raise ValueError(f"Invalid TOML syntax in {self.path}") from exc
        return self._data

    def __call__(self) -> dict[str, Any]:  # pragma: no cover - trivial wrapper
        return self._load()

    def get_field_value(self, field_name: str, field):  # pragma: no cover - passthrough helper
        data = self._load()
        return data.get(field_name), field_name in data


def _read_env_value(*keys: str) -> str | None:
    """Return the first present environment variable from ``keys``."""

    for key in keys:
        value = os.getenv(key)
        if value is not None:
            return value
    return None


class RuntimeSettings(BaseSettings):
    """Process-level runtime controls."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL", "RUNTIME__LOG_LEVEL"),
    )


class StorageSettings(BaseSettings):
    """Firestore collections, case field names and artifact buckets."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    firestore_project: str | None = Field(
        default=None,
        validation_alias=AliasChoices("FIRESTORE_PROJECT", "GOOGLE_CLOUD_PROJECT", "STORAGE__FIRESTORE_PROJECT"),
    )
    cases_collection: str = Field(
        default="anzen-site-cases",
        validation_alias=AliasChoices("CASES_COLLECTION", "STORAGE__CASES_COLLECTION"),
    )
    categories_collection: str = Field(
        default="categories",
        validation_alias=AliasChoices("CATEGORIES_COLLECTION", "STORAGE__CATEGORIES_COLLECTION"),
    )
    internal_cases_collection: str = Field(
        default="internal_cases",
        validation_alias=AliasChoices("INTERNAL_CASES_COLLECTION", "STORAGE__INTERNAL_CASES_COLLECTION"),
    )
    case_title_field: str = Field(default="title")
    case_cause_field: str = Field(
        default="原因",
        validation_alias=AliasChoices("CASE_CAUSE_FIELD", "STORAGE__CASE_CAUSE_FIELD"),
    )
    case_measures_field: str = Field(
        default="対策",
        validation_alias=AliasChoices("CASE_MEASURES_FIELD", "STORAGE__CASE_MEASURES_FIELD"),
    )
    reports_bucket: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BUCKET_NAME", "STORAGE__REPORTS_BUCKET"),
    )
    reports_local_dir: Path = Field(default=PROJECT_ROOT / "data" / "reports")


class LLMSettings(BaseSettings):
    """Generative text and embedding provider settings."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    provider: Literal["ollama", "vertex_ai", "mock"] = Field(
        default="vertex_ai",
        validation_alias=AliasChoices("LLM_PROVIDER", "LLM__PROVIDER"),
    )
    chat_model: str = Field(
        default="gemini-2.5-flash",
        validation_alias=AliasChoices("LLM_CHAT_MODEL", "LLM__CHAT_MODEL"),
    )
    embedding_model: str = Field(
        default="gemini-embedding-001",
        validation_alias=AliasChoices("EMBED_MODEL", "LLM__EMBEDDING_MODEL"),
    )
    embedding_dim: int = Field(
        default=3072,
        validation_alias=AliasChoices("EMBED_DIM", "LLM__EMBEDDING_DIM"),
    )
    temperature: float = Field(
        default=0.2,
        validation_alias=AliasChoices("LLM_TEMPERATURE", "LLM__TEMPERATURE"),
    )
    timeout_seconds: float = Field(
        default=120.0,
        validation_alias=AliasChoices("LLM_TIMEOUT_SECONDS", "LLM__TIMEOUT_SECONDS"),
    )
    max_retries: int = Field(
        default=2,
        validation_alias=AliasChoices("LLM_MAX_RETRIES", "LLM__MAX_RETRIES"),
    )
    ollama_base_url: str = Field(
        default="http://127.0.0.1:11434",
        validation_alias=AliasChoices("OLLAMA_BASE_URL", "LLM__OLLAMA_BASE_URL"),
    )
    vertex_ai_project: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LLM_VERTEX_AI_PROJECT", "GOOGLE_CLOUD_PROJECT", "LLM__VERTEX_AI__PROJECT"),
    )
    vertex_ai_location: str | None = Field(
        default="us-central1",
        validation_alias=AliasChoices("LLM_VERTEX_AI_LOCATION", "GOOGLE_CLOUD_LOCATION", "LLM__VERTEX_AI__LOCATION"),
    )


class LanguageSettings(BaseSettings):
    """Base language plus the fixed translation targets."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    base: str = Field(
        default="ja",
        validation_alias=AliasChoices("BASE_LANGUAGE", "LANGUAGES__BASE"),
    )
    targets: list[str] = Field(
        default_factory=lambda: ["en", "bn", "zh"],
        validation_alias=AliasChoices("TARGET_LANGUAGES", "LANGUAGES__TARGETS"),
    )

    @property
    def all_languages(self) -> list[str]:
        """list[str]: Base language followed by every target language."""

        return [self.base, *[lang for lang in self.targets if lang != self.base]]


class CatalogSettings(BaseSettings):
    """Offline catalog build knobs."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    target_category_count: int = Field(
        default=50,
        validation_alias=AliasChoices("CATALOG_TARGET_CATEGORIES", "CATALOG__TARGET_CATEGORY_COUNT"),
    )
    min_category_count: int = Field(
        default=40,
        validation_alias=AliasChoices("CATALOG_MIN_CATEGORIES", "CATALOG__MIN_CATEGORY_COUNT"),
    )
    measures_per_category: int = Field(default=3)
    description_target_chars: int = Field(default=200)
    measure_target_chars: int = Field(default=50)
    max_name_chars: int = Field(default=30)
    unclassified_label: str = Field(default="unclassified")
    failed_generation_text: str = Field(default="generation failed")


class SearchSettings(BaseSettings):
    """Online retrieval and suggestion tuning."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    min_media_bytes: int = Field(
        default=51200,
        validation_alias=AliasChoices("SEARCH_MIN_MEDIA_BYTES", "SEARCH__MIN_MEDIA_BYTES"),
    )
    media_check_timeout_seconds: float = Field(
        default=5.0,
        validation_alias=AliasChoices("SEARCH_MEDIA_CHECK_TIMEOUT", "SEARCH__MEDIA_CHECK_TIMEOUT_SECONDS"),
    )
    related_case_limit: int = Field(
        default=50,
        validation_alias=AliasChoices("SEARCH_RELATED_CASE_LIMIT", "SEARCH__RELATED_CASE_LIMIT"),
    )
    suggestion_count: int = Field(
        default=10,
        validation_alias=AliasChoices("SEARCH_SUGGESTION_COUNT", "SEARCH__SUGGESTION_COUNT"),
    )
    icons: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ICONS),
        validation_alias=AliasChoices("SEARCH_ICONS", "SEARCH__ICONS"),
    )
    default_icon: str = Field(
        default="triangle-exclamation",
        validation_alias=AliasChoices("SEARCH_DEFAULT_ICON", "SEARCH__DEFAULT_ICON"),
    )


class VideoSettings(BaseSettings):
    """Veo generation and polling for measure videos."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    model: str = Field(
        default="veo-3.0-generate-001",
        validation_alias=AliasChoices("VIDEO_MODEL", "VIDEOS__MODEL"),
    )
    bucket: str | None = Field(
        default=None,
        validation_alias=AliasChoices("VIDEO_BUCKET", "BUCKET_NAME", "VIDEOS__BUCKET"),
    )
    poll_interval_seconds: float = Field(default=20.0)
    poll_backoff: float = Field(default=1.5)
    poll_max_interval_seconds: float = Field(default=120.0)
    poll_max_attempts: int = Field(default=30)


class ObservabilitySettings(BaseSettings):
    """Logging and metrics configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    structured_logging: bool = Field(
        default=True,
        validation_alias=AliasChoices("OBS_STRUCTURED_LOGGING", "OBSERVABILITY__STRUCTURED_LOGGING"),
    )
    statsd_host: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OBS_STATSD_HOST", "OBSERVABILITY__STATSD_HOST"),
    )
    statsd_port: int = Field(
        default=8125,
        validation_alias=AliasChoices("OBS_STATSD_PORT", "OBSERVABILITY__STATSD_PORT"),
    )
    statsd_prefix: str = Field(
        default="anzen",
        validation_alias=AliasChoices("OBS_STATSD_PREFIX", "OBSERVABILITY__STATSD_PREFIX"),
    )


class Settings(BaseSettings):
    """Top-level configuration model with nested sections for each subsystem."""

    env: str = Field(
        default_factory=lambda: _resolve_env(),
        validation_alias=AliasChoices("ENV", "ENVIRONMENT", "RUNTIME__ENV"),
    )
    project_root: Path = Field(default=PROJECT_ROOT)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    languages: LanguageSettings = Field(default_factory=LanguageSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    videos: VideoSettings = Field(default_factory=VideoSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    env_files: tuple[Path, ...] = Field(default_factory=tuple, exclude=True)
    config_files: tuple[Path, ...] = Field(default_factory=tuple, exclude=True)

    model_config = SettingsConfigDict(
        env_prefix="ANZEN_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Extend settings sources with TOML-based config files."""

        config_sources = [TomlConfigSettingsSource(settings_cls, path) for path in _config_file_priority()]
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            *config_sources,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Normalize relative paths once the model is initialised."""

        if not self.storage.reports_local_dir.is_absolute():
            storage_updates = {"reports_local_dir": (self.project_root / self.storage.reports_local_dir).resolve()}
            object.__setattr__(self, "storage", self.storage.model_copy(update=storage_updates))

        return self

    @model_validator(mode="after")
    def _apply_environment_overrides(self) -> "Settings":
        """Honor the short-form provider override used by deploy scripts."""

        provider_override = _read_env_value(
            "ANZEN_LLM__PROVIDER",
            "ANZEN_LLM_PROVIDER",
            "LLM__PROVIDER",
            "LLM_PROVIDER",
        )
        if provider_override:
            llm_updates = {"provider": provider_override.strip().lower()}
            object.__setattr__(self, "llm", self.llm.model_copy(update=llm_updates))

        return self

    @property
    def log_level(self) -> str:
        """str: Effective logging level for the running process."""

        return self.runtime.log_level

    @property
    def base_language(self) -> str:
        """str: Language every category is authored in."""

        return self.languages.base

    @property
    def embedding_dim(self) -> int:
        """int: Expected dimensionality of stored and query embeddings."""

        return self.llm.embedding_dim


def _load_settings(env: str | None = None) -> Settings:
    """Load settings with optional environment override.

    Args:
        env: Environment name supplied programmatically.

    Returns:
        Fully parsed :class:`Settings` instance with env files applied.
    """

    resolved_env = _resolve_env(env)
    candidate_files = [path for path in _env_file_candidates(resolved_env) if path.exists()]
    config_files = _config_file_priority()
    return Settings(
        _env_file=[str(path) for path in candidate_files],
        _env_file_encoding="utf-8",
        env=resolved_env,
        env_files=tuple(candidate_files),
        config_files=config_files,
    )


@lru_cache(maxsize=1)
def get_settings(env: str | None = None) -> Settings:
    """Return cached settings for the requested environment."""

    return _load_settings(env)


def reload_settings(env: str | None = None) -> Settings:
    """Clear the cached settings and reload from disk."""

    get_settings.cache_clear()
    return get_settings(env)


__all__ = [
    "Settings",
    "get_settings",
    "reload_settings",
    "PROJECT_ROOT",
    "ENV_VAR_NAME",
    "DEFAULT_ICONS",
]
