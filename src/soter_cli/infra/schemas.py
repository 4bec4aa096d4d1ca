from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class DbVulnerability(BaseModel):
	"""One vulnerability entry as stored in the database file."""
	id: int
	title: str
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	published_date: Optional[datetime] = None
	vuln_type: Optional[str] = None
	fixed_in: Optional[str] = None
	references: dict[str, list[str]] = Field(default_factory=dict)

	@field_validator("created_at", "updated_at", "published_date")
	@classmethod
	def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
		if value is not None and value.tzinfo is None:
			return value.replace(tzinfo=timezone.utc)
		return value

	@field_validator("fixed_in", mode="before")
	@classmethod
	def _blank_is_unfixed(cls, value: Any) -> Any:
		if isinstance(value, str) and not value.strip():
			return None
		return value


class DbEntry(BaseModel):
	"""All known vulnerabilities for one slug."""
	vulnerabilities: list[DbVulnerability] = Field(default_factory=list)


class VulnerabilityDatabase(BaseModel):
	"""Top level of the database file.

	Entries stay raw until looked up so one malformed slug does not poison the
	whole file.
	"""
	plugins: dict[str, dict[str, Any]] = Field(default_factory=dict)
	themes: dict[str, dict[str, Any]] = Field(default_factory=dict)
	wordpresses: dict[str, dict[str, Any]] = Field(default_factory=dict)


class InstalledPackage(BaseModel):
	slug: str = Field(min_length=1)
	version: Optional[str] = None


class SiteManifest(BaseModel):
	"""Packages installed on the site being checked."""
	wordpress: Optional[str] = None
	plugins: list[InstalledPackage] = Field(default_factory=list)
	themes: list[InstalledPackage] = Field(default_factory=list)
