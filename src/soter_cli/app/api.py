from __future__ import annotations

from pathlib import Path
from typing import Sequence

from .container import build_container
from ..config.settings import AppConfig
from ..core.domain.enums import OutputFormat, PackageType
from ..core.domain.options import CheckOptions
from ..core.services.result_formatter import RenderedOutput


class SoterClient:
    """Library entry point mirroring the CLI commands.

    The container and its checker are created once and reused across calls,
    so the database and manifest are read at most once per client.

    Example:
        with SoterClient(database_path="vulns.json", manifest_path="site.json") as client:
            print(client.check_site(format="json").text)
            print(client.check_plugin("akismet", "3.1", format="count").text)

    Field validation and check failures raise FieldValidationError / CheckError.
    """

    def __init__(
        self,
        *,
        database_path: str | Path | None = None,
        manifest_path: str | Path | None = None,
    ):
        """Initialize the client.

        Args:
            database_path: JSON vulnerability database. If None, uses SOTER_DATABASE_PATH
                           or the default user data directory.
            manifest_path: Installed packages manifest. If None, uses SOTER_MANIFEST_PATH.
        """
        config_dict = {}
        if database_path is not None:
            config_dict["database_path"] = Path(database_path)
        if manifest_path is not None:
            config_dict["manifest_path"] = Path(manifest_path)

        self._container = build_container(AppConfig(**config_dict))
        self._container.init_resources()
        self._orchestrator = self._container.orchestrator()

    def _options(self, format: OutputFormat | str, fields: str | Sequence[str] | None, ignore: str | Sequence[str] | None = None) -> CheckOptions:
        if fields is None:
            fields = self._container.config.default_fields()
        return CheckOptions.parse(format, fields, ignore)

    def check_plugin(self, slug: str, version: str | None = None, *, format: OutputFormat | str = OutputFormat.TABLE, fields: str | Sequence[str] | None = None) -> RenderedOutput:
        return self._orchestrator.check_single(PackageType.PLUGIN, slug, version, self._options(format, fields))

    def check_theme(self, slug: str, version: str | None = None, *, format: OutputFormat | str = OutputFormat.TABLE, fields: str | Sequence[str] | None = None) -> RenderedOutput:
        return self._orchestrator.check_single(PackageType.THEME, slug, version, self._options(format, fields))

    def check_wordpress(self, version: str, *, format: OutputFormat | str = OutputFormat.TABLE, fields: str | Sequence[str] | None = None) -> RenderedOutput:
        return self._orchestrator.check_single(PackageType.WORDPRESS, version, version, self._options(format, fields))

    def check_plugins(self, *, format: OutputFormat | str = OutputFormat.TABLE, fields: str | Sequence[str] | None = None, ignore: str | Sequence[str] | None = None) -> RenderedOutput:
        return self._orchestrator.check_batch(PackageType.PLUGIN, self._options(format, fields, ignore))

    def check_themes(self, *, format: OutputFormat | str = OutputFormat.TABLE, fields: str | Sequence[str] | None = None, ignore: str | Sequence[str] | None = None) -> RenderedOutput:
        return self._orchestrator.check_batch(PackageType.THEME, self._options(format, fields, ignore))

    def check_wordpresses(self, *, format: OutputFormat | str = OutputFormat.TABLE, fields: str | Sequence[str] | None = None, ignore: str | Sequence[str] | None = None) -> RenderedOutput:
        return self._orchestrator.check_batch(PackageType.WORDPRESS, self._options(format, fields, ignore))

    def check_site(self, *, format: OutputFormat | str = OutputFormat.TABLE, fields: str | Sequence[str] | None = None, ignore: str | Sequence[str] | None = None) -> RenderedOutput:
        return self._orchestrator.check_site(self._options(format, fields, ignore))

    def close(self) -> None:
        """Release container resources."""
        self._container.shutdown_resources()

    def __enter__(self) -> SoterClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = [
    "SoterClient",
    "AppConfig",
]
