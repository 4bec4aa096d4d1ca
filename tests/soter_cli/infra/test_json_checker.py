from __future__ import annotations

from datetime import datetime, timezone

import pytest

from soter_cli.core.domain.enums import PackageType
from soter_cli.core.domain.errors import CheckError
from soter_cli.core.domain.models import Package
from soter_cli.infra.json_checker import JsonDatabaseChecker


@pytest.fixture
def checker(database_file, manifest_file) -> JsonDatabaseChecker:
    return JsonDatabaseChecker(database_file, manifest_file)


def test_check_package_filters_by_explicit_version(checker):
    assert [v.id for v in checker.check_package(Package.plugin("akismet", "3.1"))] == [1, 2]
    assert [v.id for v in checker.check_package(Package.plugin("akismet", "3.2"))] == [2]


def test_check_package_resolves_installed_version(checker):
    found = checker.check_package(Package.plugin("contact-form-7"))

    assert [v.id for v in found] == [20]
    assert found[0].package == Package.plugin("contact-form-7", "5.0")


def test_check_package_without_any_version_returns_all_known(database_file):
    checker = JsonDatabaseChecker(database_file)

    found = checker.check_package(Package.plugin("jetpack"))

    assert [v.id for v in found] == [10]
    assert found[0].package.version is None


def test_all_vulnerabilities_ignores_version(checker):
    assert [v.id for v in checker.all_vulnerabilities(Package.plugin("jetpack", "4.0.3"))] == [10]
    assert checker.check_package(Package.plugin("jetpack", "4.0.3")).is_empty()


def test_unknown_slug_has_no_vulnerabilities(checker):
    assert checker.check_package(Package.plugin("hello-dolly", "1.6")).is_empty()


def test_core_lookup_by_numeric_slug(checker):
    found = checker.check_package(Package.wordpress("4.7.4"))
    assert [v.id for v in found] == [40]


def test_records_are_mapped_to_domain(checker):
    v = checker.check_package(Package.plugin("akismet", "3.1"))[0]

    assert v.title == "Akismet stored XSS"
    assert v.vuln_type == "XSS"
    assert v.created_at == datetime(2015, 10, 7, 12, 0, tzinfo=timezone.utc)
    assert v.published_date is None
    assert v.fixed_in == "3.1.5"
    assert v.references == {"url": ("https://example.com/akismet-xss",)}


def test_installed_packages_from_manifest(checker):
    plugins = checker.installed_packages(PackageType.PLUGIN)
    assert [p.slug for p in plugins] == ["akismet", "jetpack", "contact-form-7", "broken-plugin"]
    assert checker.installed_packages(PackageType.WORDPRESS) == [Package.wordpress("4.7.4")]
    assert checker.get_package_count() == 6


def test_malformed_entry_is_a_per_item_error(checker):
    with pytest.raises(CheckError) as ei:
        checker.check_package(Package.plugin("broken-plugin", "1.0"))
    assert ei.value.package.slug == "broken-plugin"


def test_batch_survives_malformed_entry(checker):
    results = []
    checker.register_post_check_callback(lambda vulns, result: results.append(result))

    found = checker.check_plugins()

    assert [v.id for v in found] == [1, 2, 20]
    assert [r.ok for r in results] == [True, True, True, False]


def test_check_site(checker):
    assert [v.id for v in checker.check_site()] == [1, 2, 20, 30, 40]
    assert [v.id for v in checker.check_site(["akismet", "broken-plugin", "474"])] == [20, 30]


def test_missing_database_is_a_check_error(tmp_path, manifest_file):
    checker = JsonDatabaseChecker(tmp_path / "nope.json", manifest_file)
    with pytest.raises(CheckError, match="not found"):
        checker.check_package(Package.plugin("akismet"))


def test_invalid_json_is_a_check_error(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json")
    with pytest.raises(CheckError, match="Unable to read"):
        JsonDatabaseChecker(path).check_package(Package.plugin("akismet"))


def test_batch_with_missing_database_is_a_check_error(tmp_path, manifest_file):
    checker = JsonDatabaseChecker(tmp_path / "absent.json", manifest_file)
    results = []
    checker.register_post_check_callback(lambda vulns, result: results.append(result))

    with pytest.raises(CheckError, match="not found"):
        checker.check_plugins()
    with pytest.raises(CheckError, match="not found"):
        checker.check_site()
    assert results == []


def test_batch_with_invalid_database_is_a_check_error(tmp_path, manifest_file):
    path = tmp_path / "bad.json"
    path.write_text("{not json")

    with pytest.raises(CheckError, match="Unable to read"):
        JsonDatabaseChecker(path, manifest_file).check_themes()


def test_batch_without_manifest_is_a_check_error(database_file):
    with pytest.raises(CheckError, match="manifest"):
        JsonDatabaseChecker(database_file).get_plugin_count()


def test_blank_fixed_in_means_unfixed(tmp_path):
    path = tmp_path / "db.json"
    path.write_text('{"themes": {"astra": {"vulnerabilities": [{"id": 5, "title": "t", "fixed_in": "", "created_at": "2017-04-20T00:00:00"}]}}}')

    v = JsonDatabaseChecker(path).check_package(Package.theme("astra", "1.0"))[0]

    assert v.fixed_in is None
    assert v.created_at.tzinfo is not None
