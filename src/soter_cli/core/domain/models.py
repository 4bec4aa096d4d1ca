from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Iterable, Iterator, Mapping, Optional, Sequence, TypeVar, overload

from packaging.version import InvalidVersion, Version

from .enums import PackageType
from .errors import CheckError

T = TypeVar("T")

_NON_DIGIT_RE = re.compile(r"\D")


@dataclass(frozen=True)
class Package:
    type: PackageType
    slug: str
    version: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.slug:
            raise ValueError(f"Package slug must not be empty ({self.type.value})")

    @staticmethod
    def plugin(slug: str, version: Optional[str] = None) -> "Package":
        return Package(PackageType.PLUGIN, slug, version)

    @staticmethod
    def theme(slug: str, version: Optional[str] = None) -> "Package":
        return Package(PackageType.THEME, slug, version)

    @staticmethod
    def wordpress(version: str) -> "Package":
        """Core packages are keyed by their version stripped of non-digits (4.7.4 -> 474)."""
        return Package(PackageType.WORDPRESS, wordpress_slug(version), version)

    def with_version(self, version: Optional[str]) -> "Package":
        return replace(self, version=version)


def wordpress_slug(version: str) -> str:
    return _NON_DIGIT_RE.sub("", version)


def _parse_version(value: str) -> Optional[Version]:
    try:
        return Version(value)
    except InvalidVersion:
        return None


@dataclass(frozen=True)
class Vulnerability:
    id: int
    title: str
    package: Package

    vuln_type: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_date: Optional[datetime] = None
    fixed_in: Optional[str] = None

    references: Mapping[str, tuple[str, ...]] = field(default_factory=dict, compare=False)

    @property
    def is_fixed(self) -> bool:
        return self.fixed_in is not None

    def affects_version(self, version: Optional[str]) -> bool:
        """Return True when `version` is not known to be patched.

        Unparseable versions on either side count as affected.
        """
        if version is None or self.fixed_in is None:
            return True
        current = _parse_version(version)
        fixed = _parse_version(self.fixed_in)
        if current is None or fixed is None:
            return True
        return current < fixed

    def get_data(self) -> dict[str, Any]:
        """Flatten into the allow-listed output keys."""
        return {
            "package_slug": self.package.slug,
            "package_type": self.package.type.value,
            "package_version": self.package.version,
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "published_date": self.published_date,
            "vuln_type": self.vuln_type,
            "fixed_in": self.fixed_in,
        }


class VulnerabilityCollection(Sequence[Vulnerability]):
    """Ordered, immutable list of vulnerabilities in discovery order."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Vulnerability] = ()) -> None:
        self._items: tuple[Vulnerability, ...] = tuple(items)

    @overload
    def __getitem__(self, index: int) -> Vulnerability: ...

    @overload
    def __getitem__(self, index: slice) -> "VulnerabilityCollection": ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return VulnerabilityCollection(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Vulnerability]:
        return iter(self._items)

    def __add__(self, other: Iterable[Vulnerability]) -> "VulnerabilityCollection":
        return VulnerabilityCollection((*self._items, *other))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, VulnerabilityCollection):
            return self._items == other._items
        return NotImplemented

    def __repr__(self) -> str:
        return f"VulnerabilityCollection({list(self._items)!r})"

    def is_empty(self) -> bool:
        return not self._items

    def map(self, fn: Callable[[Vulnerability], T]) -> list[T]:
        return [fn(v) for v in self._items]

    def for_version(self, version: Optional[str]) -> "VulnerabilityCollection":
        return VulnerabilityCollection(v for v in self._items if v.affects_version(version))


@dataclass(frozen=True)
class PackageCheckResult:
    """Outcome of one package check inside a batch, passed to post-check callbacks."""

    package: Package
    vulnerabilities: VulnerabilityCollection = field(default_factory=VulnerabilityCollection)
    error: Optional[CheckError] = None

    @property
    def ok(self) -> bool:
        return self.error is None
