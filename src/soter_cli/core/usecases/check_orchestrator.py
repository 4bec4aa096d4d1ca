from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from ..domain.enums import PackageType
from ..domain.errors import ProgressContractError
from ..domain.models import Package, PackageCheckResult, VulnerabilityCollection
from ..domain.options import CheckOptions
from ..ports.checker_port import CheckerPort
from ..ports.progress_port import ProgressPort
from ..services.result_formatter import RenderedOutput, ResultFormatter

logger = logging.getLogger(__name__)

ProgressFactory = Callable[[], ProgressPort]
_BatchOperation = tuple[Callable[[Sequence[str]], int], Callable[[Sequence[str]], VulnerabilityCollection]]


class CheckOrchestrator:
    """Run single, batch and site checks and render their results.

    One post-check callback is registered on the checker for the lifetime of
    the orchestrator; it ticks whichever progress reporter is currently open.
    Only one reporter may be open at a time.
    """

    def __init__(
        self,
        checker: CheckerPort,
        progress_factory: ProgressFactory,
        formatter: Optional[ResultFormatter] = None,
    ) -> None:
        self._checker = checker
        self._progress_factory = progress_factory
        self._formatter = formatter or ResultFormatter()
        self._progress: Optional[ProgressPort] = None
        self._checker.register_post_check_callback(self._on_package_checked)

    def check_single(
        self,
        package_type: PackageType,
        identity: str,
        version: Optional[str],
        options: CheckOptions,
    ) -> RenderedOutput:
        """Check one package. For core packages `identity` is the version itself."""
        if package_type is PackageType.WORDPRESS:
            package = Package.wordpress(version or identity)
        else:
            package = Package(package_type, identity, version)
        logger.info(f"Checking {package.type.value} {package.slug} (version={package.version or 'installed'})")

        vulns = self._checker.check_package(package)
        return self._formatter.render(vulns, options)

    def check_batch(self, package_type: PackageType, options: CheckOptions) -> RenderedOutput:
        count, check = self._batch_operation(package_type)
        return self._run_batch(f"{package_type.value} packages", count, check, options)

    def check_site(self, options: CheckOptions) -> RenderedOutput:
        return self._run_batch("packages", self._checker.get_package_count, self._checker.check_site, options)

    def _batch_operation(self, package_type: PackageType) -> _BatchOperation:
        if package_type is PackageType.PLUGIN:
            return self._checker.get_plugin_count, self._checker.check_plugins
        if package_type is PackageType.THEME:
            return self._checker.get_theme_count, self._checker.check_themes
        return self._checker.get_wordpress_count, self._checker.check_wordpress

    def _run_batch(
        self,
        noun: str,
        count: Callable[[Sequence[str]], int],
        check: Callable[[Sequence[str]], VulnerabilityCollection],
        options: CheckOptions,
    ) -> RenderedOutput:
        ignored = list(options.ignore)
        if ignored:
            logger.info(f"Ignoring slugs: {', '.join(ignored)}")

        total = count(ignored)
        opened = False
        try:
            if options.show_progress:
                self._start_progress(total, f"Checking {total} {noun}")
                opened = True
            vulns = check(ignored)
        finally:
            if opened:
                self._finish_progress()

        return self._formatter.render(vulns, options)

    def _start_progress(self, total: int, label: str) -> None:
        if self._progress is not None:
            raise ProgressContractError("Too much progress for one request: a batch check is already running")
        progress = self._progress_factory()
        progress.open(total, label)
        self._progress = progress

    def _finish_progress(self) -> None:
        if self._progress is None:
            return
        progress, self._progress = self._progress, None
        progress.finish()

    def _on_package_checked(self, vulns: VulnerabilityCollection, result: PackageCheckResult) -> None:
        if result.ok:
            logger.debug(f"{result.package.type.value} {result.package.slug}: {len(vulns)} vulnerabilities")
        else:
            logger.warning(f"Check failed for {result.package.type.value} {result.package.slug}: {result.error}")
        if self._progress is not None:
            self._progress.tick()
