"""tests/soter_cli/conftest.py

Common fixtures for the entire test suite.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest
from typer.testing import CliRunner

from soter_cli.core.domain.enums import PackageType
from soter_cli.core.domain.errors import CheckError, ProgressContractError
from soter_cli.core.domain.models import Package, Vulnerability, VulnerabilityCollection
from soter_cli.core.ports.progress_port import ProgressPort
from soter_cli.core.services.batch_checker import BatchChecker


def make_vuln(package: Package, id: int, title: str | None = None, **kwargs) -> Vulnerability:
    return Vulnerability(id=id, title=title or f"{package.slug} issue {id}", package=package, **kwargs)


class FakeChecker(BatchChecker):
    """In-memory checker: installed packages per type, vulnerabilities per slug."""

    def __init__(
        self,
        installed: dict[PackageType, list[Package]] | None = None,
        vulns: dict[str, list[int]] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        super().__init__()
        self._installed = installed or {}
        self._vulns = vulns or {}
        self._failing = failing or set()
        self.calls: list[str] = []
        self.checked: list[Package] = []

    def installed_packages(self, package_type: PackageType):
        self.calls.append(f"installed:{package_type.value}")
        return self._installed.get(package_type, [])

    def check_package(self, package: Package) -> VulnerabilityCollection:
        self.calls.append(f"check:{package.slug}")
        self.checked.append(package)
        if package.slug in self._failing:
            raise CheckError(f"lookup failed for {package.slug}", package=package)
        return VulnerabilityCollection(make_vuln(package, i) for i in self._vulns.get(package.slug, []))


class RecordingProgress(ProgressPort):
    def __init__(self) -> None:
        self.total: int | None = None
        self.label: str | None = None
        self.ticks = 0
        self.finished = 0
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self, total: int, label: str = "") -> None:
        if self._open:
            raise ProgressContractError("already open")
        self._open = True
        self.total = total
        self.label = label

    def tick(self) -> None:
        if not self._open:
            raise ProgressContractError("not open")
        self.ticks += 1

    def finish(self) -> None:
        if not self._open:
            return
        self._open = False
        self.finished += 1


@pytest.fixture
def site_packages() -> dict[PackageType, list[Package]]:
    return {
        PackageType.PLUGIN: [
            Package.plugin("akismet", "3.1"),
            Package.plugin("jetpack", "4.0.3"),
            Package.plugin("contact-form-7", "5.0"),
        ],
        PackageType.THEME: [Package.theme("twentyfifteen", "1.1")],
        PackageType.WORDPRESS: [Package.wordpress("4.7.4")],
    }


@pytest.fixture
def fake_checker(site_packages) -> FakeChecker:
    return FakeChecker(
        installed=site_packages,
        vulns={"akismet": [1, 2], "contact-form-7": [20], "twentyfifteen": [30], "474": [40]},
    )


@pytest.fixture
def progress_log() -> list[RecordingProgress]:
    return []


@pytest.fixture
def progress_factory(progress_log):
    def _factory() -> RecordingProgress:
        progress = RecordingProgress()
        progress_log.append(progress)
        return progress

    return _factory


@pytest.fixture
def sample_vulnerability() -> Vulnerability:
    return Vulnerability(
        id=7,
        title="Akismet stored XSS",
        package=Package.plugin("akismet", "3.1"),
        vuln_type="XSS",
        created_at=datetime(2015, 10, 7, 12, 0, tzinfo=timezone.utc),
        updated_at=datetime(2024, 7, 4, 8, 30, tzinfo=timezone.utc),
        published_date=None,
        fixed_in="3.1.5",
    )


# ---------------------------------------------------------------------------
# On-disk database and manifest for the JSON checker and the CLI
# ---------------------------------------------------------------------------

DATABASE = {
    "plugins": {
        "akismet": {
            "vulnerabilities": [
                {
                    "id": 1,
                    "title": "Akismet stored XSS",
                    "created_at": "2015-10-07T12:00:00Z",
                    "updated_at": "2017-04-20T00:00:00Z",
                    "published_date": None,
                    "vuln_type": "XSS",
                    "fixed_in": "3.1.5",
                    "references": {"url": ["https://example.com/akismet-xss"]},
                },
                {
                    "id": 2,
                    "title": "Akismet CSRF",
                    "created_at": "2017-04-20T00:00:00Z",
                    "vuln_type": "CSRF",
                    "fixed_in": None,
                },
            ]
        },
        "jetpack": {"vulnerabilities": [{"id": 10, "title": "Jetpack shortcode XSS", "vuln_type": "XSS", "fixed_in": "4.0.3"}]},
        "contact-form-7": {"vulnerabilities": [{"id": 20, "title": "CF7 privilege escalation", "vuln_type": "PRIVESC", "fixed_in": "5.0.4"}]},
        "broken-plugin": {"vulnerabilities": [{"title": "entry without id"}]},
    },
    "themes": {
        "twentyfifteen": {"vulnerabilities": [{"id": 30, "title": "Twenty Fifteen DOM XSS", "vuln_type": "XSS", "fixed_in": "1.2"}]},
    },
    "wordpresses": {
        "474": {
            "vulnerabilities": [
                {"id": 40, "title": "WordPress 4.7.4 host header injection", "vuln_type": "AUTHBYPASS", "fixed_in": "4.7.5"},
                {"id": 41, "title": "WordPress 4.7.2 REST API content injection", "vuln_type": "BYPASS", "fixed_in": "4.7.3"},
            ]
        },
    },
}

MANIFEST = {
    "wordpress": "4.7.4",
    "plugins": [
        {"slug": "akismet", "version": "3.1"},
        {"slug": "jetpack", "version": "4.0.3"},
        {"slug": "contact-form-7", "version": "5.0"},
        {"slug": "broken-plugin", "version": "1.0"},
    ],
    "themes": [{"slug": "twentyfifteen", "version": "1.1"}],
}


@pytest.fixture
def database_file(tmp_path: Path) -> Path:
    path = tmp_path / "vulnerabilities.json"
    path.write_text(json.dumps(DATABASE))
    return path


@pytest.fixture
def manifest_file(tmp_path: Path) -> Path:
    path = tmp_path / "site.json"
    path.write_text(json.dumps(MANIFEST))
    return path


@pytest.fixture(scope="session")
def runner() -> CliRunner:
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path: Path):
    """Keep SOTER_* settings from the developer's environment out of the tests."""
    for key in ("SOTER_DATABASE_PATH", "SOTER_MANIFEST_PATH", "SOTER_DEFAULT_FIELDS"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("SOTER_DATABASE_PATH", str(tmp_path / "missing.json"))


@pytest.fixture
def checker_cls() -> type[FakeChecker]:
    return FakeChecker


@pytest.fixture
def vuln_factory():
    return make_vuln
