from __future__ import annotations

from enum import Enum


class PackageType(str, Enum):
    PLUGIN = "plugin"
    THEME = "theme"
    WORDPRESS = "wordpress"

    @property
    def plural(self) -> str:
        """Collection name used by the vulnerability database ("plugins", "wordpresses", ...)."""
        return "wordpresses" if self is PackageType.WORDPRESS else f"{self.value}s"


class OutputFormat(str, Enum):
    TABLE = "table"
    CSV = "csv"
    JSON = "json"
    YAML = "yaml"
    IDS = "ids"
    COUNT = "count"

    @property
    def uses_fields(self) -> bool:
        return self not in (OutputFormat.IDS, OutputFormat.COUNT)

    @property
    def is_machine_readable(self) -> bool:
        return self is not OutputFormat.TABLE
