from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.domain.enums import PackageType
from ..core.domain.errors import CheckError
from ..core.domain.models import Package, Vulnerability, VulnerabilityCollection
from ..core.services.batch_checker import BatchChecker
from .schemas import DbEntry, DbVulnerability, SiteManifest, VulnerabilityDatabase

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _load_model(path: Path, model_cls: Type[ModelT], what: str) -> ModelT:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise CheckError(f"{what} not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise CheckError(f"Unable to read {what} {path}: {e}") from e
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise CheckError(f"Invalid {what} {path}: {e.error_count()} validation errors") from e


def _to_domain(raw: DbVulnerability, package: Package) -> Vulnerability:
    return Vulnerability(
        id=raw.id,
        title=raw.title,
        package=package,
        vuln_type=raw.vuln_type,
        created_at=raw.created_at,
        updated_at=raw.updated_at,
        published_date=raw.published_date,
        fixed_in=raw.fixed_in,
        references={kind: tuple(urls) for kind, urls in raw.references.items()},
    )


class JsonDatabaseChecker(BatchChecker):
    """Check packages against a local JSON vulnerability database.

    Installed packages come from a site manifest. Both files are read lazily
    on first use and kept for the lifetime of the checker.
    """

    def __init__(self, database_path: Path | str, manifest_path: Path | str | None = None) -> None:
        super().__init__()
        self._database_path = Path(database_path)
        self._manifest_path = Path(manifest_path) if manifest_path else None
        self._database: Optional[VulnerabilityDatabase] = None
        self._manifest: Optional[SiteManifest] = None

    @property
    def database(self) -> VulnerabilityDatabase:
        if self._database is None:
            logger.info(f"Loading vulnerability database from {self._database_path}")
            self._database = _load_model(self._database_path, VulnerabilityDatabase, "vulnerability database")
        return self._database

    @property
    def manifest(self) -> SiteManifest:
        if self._manifest is None:
            if self._manifest_path is None:
                raise CheckError("No site manifest configured; set SOTER_MANIFEST_PATH or pass --manifest")
            logger.info(f"Loading site manifest from {self._manifest_path}")
            self._manifest = _load_model(self._manifest_path, SiteManifest, "site manifest")
        return self._manifest

    def prepare_batch(self) -> None:
        self.database

    def installed_packages(self, package_type: PackageType) -> Sequence[Package]:
        manifest = self.manifest
        if package_type is PackageType.WORDPRESS:
            return [Package.wordpress(manifest.wordpress)] if manifest.wordpress else []
        installed = manifest.plugins if package_type is PackageType.PLUGIN else manifest.themes
        return [Package(package_type, p.slug, p.version) for p in installed]

    def installed_version(self, package_type: PackageType, slug: str) -> Optional[str]:
        if self._manifest_path is None:
            return None
        for package in self.installed_packages(package_type):
            if package.slug == slug:
                return package.version
        return None

    def check_package(self, package: Package) -> VulnerabilityCollection:
        version = package.version or self.installed_version(package.type, package.slug)
        resolved = package.with_version(version)
        known = self.all_vulnerabilities(resolved)
        if version is None:
            logger.debug(f"No version known for {package.slug}; returning all {len(known)} known vulnerabilities")
            return known
        return known.for_version(version)

    def all_vulnerabilities(self, package: Package) -> VulnerabilityCollection:
        """Every known vulnerability for the package's slug, regardless of version."""
        entries: dict[str, dict[str, Any]] = getattr(self.database, package.type.plural)
        raw = entries.get(package.slug)
        if raw is None:
            return VulnerabilityCollection()
        try:
            entry = DbEntry.model_validate(raw)
        except ValidationError as e:
            raise CheckError(
                f"Malformed database entry for {package.type.value} {package.slug}: {e.error_count()} validation errors",
                package=package,
            ) from e
        return VulnerabilityCollection(_to_domain(v, package) for v in entry.vulnerabilities)
