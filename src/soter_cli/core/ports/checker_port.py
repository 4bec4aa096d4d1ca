from __future__ import annotations

from typing import Callable, Protocol, Sequence

from ..domain.models import Package, PackageCheckResult, VulnerabilityCollection

PostCheckCallback = Callable[[VulnerabilityCollection, PackageCheckResult], None]


class CheckerPort(Protocol):
    def check_package(self, package: Package) -> VulnerabilityCollection:
        """Return vulnerabilities affecting one package.

        Raises CheckError when the lookup fails.
        """
        ...

    def check_plugins(self, ignored: Sequence[str] = ()) -> VulnerabilityCollection:
        ...

    def check_themes(self, ignored: Sequence[str] = ()) -> VulnerabilityCollection:
        ...

    def check_wordpress(self, ignored: Sequence[str] = ()) -> VulnerabilityCollection:
        ...

    def check_site(self, ignored: Sequence[str] = ()) -> VulnerabilityCollection:
        """Check every installed plugin, theme and the core package in one pass."""
        ...

    def get_plugin_count(self, ignored: Sequence[str] = ()) -> int:
        ...

    def get_theme_count(self, ignored: Sequence[str] = ()) -> int:
        ...

    def get_wordpress_count(self, ignored: Sequence[str] = ()) -> int:
        ...

    def get_package_count(self, ignored: Sequence[str] = ()) -> int:
        ...

    def register_post_check_callback(self, callback: PostCheckCallback) -> None:
        """Register a callback fired after every individual package check of a batch."""
