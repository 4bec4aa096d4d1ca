from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Sequence

from ..domain.enums import PackageType
from ..domain.errors import CheckError
from ..domain.models import Package, PackageCheckResult, VulnerabilityCollection
from ..ports.checker_port import CheckerPort, PostCheckCallback

logger = logging.getLogger(__name__)

SITE_ORDER: tuple[PackageType, ...] = (PackageType.PLUGIN, PackageType.THEME, PackageType.WORDPRESS)


class BatchChecker(CheckerPort, ABC):
    """Batch half of CheckerPort built on a per-package lookup.

    A CheckError raised for one package inside a batch is reported to the
    post-check callbacks and the batch moves on; that package contributes no
    vulnerabilities. Ignored slugs are neither checked nor reported.
    """

    def __init__(self) -> None:
        self._callbacks: list[PostCheckCallback] = []

    @abstractmethod
    def installed_packages(self, package_type: PackageType) -> Sequence[Package]:
        """Return installed packages of one type, in check order."""

    @abstractmethod
    def check_package(self, package: Package) -> VulnerabilityCollection:
        ...

    def prepare_batch(self) -> None:
        """Load shared state a batch depends on.

        Runs once before the per-package loop; a CheckError raised here
        fails the whole call.
        """

    def register_post_check_callback(self, callback: PostCheckCallback) -> None:
        self._callbacks.append(callback)

    def check_plugins(self, ignored: Sequence[str] = ()) -> VulnerabilityCollection:
        return self._check_many(self._checkable(PackageType.PLUGIN, ignored))

    def check_themes(self, ignored: Sequence[str] = ()) -> VulnerabilityCollection:
        return self._check_many(self._checkable(PackageType.THEME, ignored))

    def check_wordpress(self, ignored: Sequence[str] = ()) -> VulnerabilityCollection:
        return self._check_many(self._checkable(PackageType.WORDPRESS, ignored))

    def check_site(self, ignored: Sequence[str] = ()) -> VulnerabilityCollection:
        packages: list[Package] = []
        for package_type in SITE_ORDER:
            packages.extend(self._checkable(package_type, ignored))
        return self._check_many(packages)

    def get_plugin_count(self, ignored: Sequence[str] = ()) -> int:
        return len(self._checkable(PackageType.PLUGIN, ignored))

    def get_theme_count(self, ignored: Sequence[str] = ()) -> int:
        return len(self._checkable(PackageType.THEME, ignored))

    def get_wordpress_count(self, ignored: Sequence[str] = ()) -> int:
        return len(self._checkable(PackageType.WORDPRESS, ignored))

    def get_package_count(self, ignored: Sequence[str] = ()) -> int:
        return sum(len(self._checkable(t, ignored)) for t in SITE_ORDER)

    def _checkable(self, package_type: PackageType, ignored: Sequence[str]) -> list[Package]:
        skip = set(ignored)
        packages = []
        for package in self.installed_packages(package_type):
            if package.slug in skip:
                logger.debug(f"Ignoring {package_type.value} {package.slug}")
                continue
            packages.append(package)
        return packages

    def _check_many(self, packages: Iterable[Package]) -> VulnerabilityCollection:
        self.prepare_batch()
        found = VulnerabilityCollection()
        checked = 0
        failed = 0
        for package in packages:
            checked += 1
            try:
                vulns = self.check_package(package)
                result = PackageCheckResult(package=package, vulnerabilities=vulns)
            except CheckError as e:
                failed += 1
                vulns = VulnerabilityCollection()
                result = PackageCheckResult(package=package, vulnerabilities=vulns, error=e)
            self._notify(vulns, result)
            found = found + vulns
        logger.info(f"Checked {checked} packages ({failed} failed), found {len(found)} vulnerabilities")
        return found

    def _notify(self, vulns: VulnerabilityCollection, result: PackageCheckResult) -> None:
        for callback in self._callbacks:
            callback(vulns, result)
