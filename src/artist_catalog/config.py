"""Configuration management for artist-catalog using pydantic-settings.

Settings priority (highest to lowest):
1. CLI flags (applied after CatalogConfig creation)
2. Environment variables (CATALOG_* prefix)
3. .env file
4. catalog.yaml project config
5. Default values
"""

import logging
from pathlib import Path

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

logger = logging.getLogger(__name__)

PROJECT_FILE = "catalog.yaml"

# Map catalog.yaml keys to CatalogConfig field names
_YAML_TO_FIELD = {
    "catalog": "catalog_dir",
    "schema": "schema_path",
    "dist": "dist_path",
    "reports": "report_dir",
}


class _ProjectYamlSource(PydanticBaseSettingsSource):
    """Read project config from catalog.yaml (lower priority than env vars)."""

    def get_field_value(self, field, field_name):  # type: ignore[override]
        return None, field_name, False

    def __call__(self) -> dict:
        project_file = Path(PROJECT_FILE)
        if not project_file.exists():
            return {}

        raw = yaml.safe_load(project_file.read_text()) or {}
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring {PROJECT_FILE}: expected a mapping")
            return {}

        result: dict = {}
        for yaml_key, field_name in _YAML_TO_FIELD.items():
            if yaml_key in raw:
                result[field_name] = raw[yaml_key]
        return result


class CatalogConfig(BaseSettings):
    """Configuration settings for artist-catalog.

    All environment variables are prefixed with CATALOG_ (e.g. CATALOG_CATALOG_DIR).
    Empty string values in environment variables are treated as unset.

    Example:
        >>> config = CatalogConfig()
        >>> print(config.catalog_dir)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CATALOG_",
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            _ProjectYamlSource(settings_cls),
            file_secret_settings,
        )

    catalog_dir: Path = Field(
        default=Path("src"),
        description="Directory holding one JSON file per artist"
    )

    schema_path: Path | None = Field(
        default=None,
        description="Path to artist JSON Schema (uses ./artist.schema.json or the bundled schema if not set)"
    )

    dist_path: Path = Field(
        default=Path("dist") / "ai-bands.json",
        description="Output path for the combined, sorted catalog"
    )

    report_dir: Path = Field(
        default=Path("output"),
        description="Directory for import reports"
    )

    @field_validator("catalog_dir", "dist_path", "report_dir", mode="before")
    @classmethod
    def _as_path(cls, v: Path | str) -> Path:
        return Path(v) if isinstance(v, str) else v

    def resolve_schema_path(self) -> Path | None:
        """Schema to load: configured path, else ./artist.schema.json, else bundled (None)."""
        if self.schema_path:
            return self.schema_path
        local = Path("artist.schema.json")
        return local if local.exists() else None
