from __future__ import annotations

from pathlib import Path
from typing import Optional

from platformdirs import user_data_dir
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.domain.options import DEFAULT_FIELDS

APP_NAME = "soter"


def default_database_path() -> Path:
    return Path(user_data_dir(APP_NAME)) / "vulnerabilities.json"


class AppConfig(BaseSettings):
    """Application configuration with automatic environment variable loading.

    All settings can be overridden via environment variables with the SOTER_ prefix.
    For example:
        - SOTER_DATABASE_PATH=/path/to/vulnerabilities.json
        - SOTER_MANIFEST_PATH=/path/to/site.json
        - SOTER_DEFAULT_FIELDS=id,title,fixed_in

    CLI options (--database, --manifest, --fields) take precedence.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOTER_",
        case_sensitive=False,
        extra="forbid",
    )

    database_path: Path = Field(
        default_factory=default_database_path,
        description="JSON vulnerability database. Defaults to platformdirs.user_data_dir('soter')/vulnerabilities.json",
    )

    manifest_path: Optional[Path] = Field(
        default=None,
        description="JSON manifest of installed plugins, themes and core version. Required for batch checks.",
    )

    default_fields: str = Field(
        default=",".join(DEFAULT_FIELDS),
        description="Comma separated fields used when --fields is not given",
    )
