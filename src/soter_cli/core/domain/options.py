from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Union

from .enums import OutputFormat
from .errors import FieldValidationError

ALLOWED_FIELDS: tuple[str, ...] = (
    "package_slug",
    "package_type",
    "package_version",
    "id",
    "title",
    "created_at",
    "updated_at",
    "published_date",
    "vuln_type",
    "fixed_in",
)

DEFAULT_FIELDS: tuple[str, ...] = ("package_type", "package_slug", "title", "vuln_type", "fixed_in")

TIMESTAMP_FIELDS: tuple[str, ...] = ("created_at", "updated_at", "published_date")


def split_list(raw: Union[str, Iterable[str], None]) -> tuple[str, ...]:
    """Split a comma separated option into trimmed, non-empty values."""
    if raw is None:
        return ()
    parts = raw.split(",") if isinstance(raw, str) else raw
    return tuple(p.strip() for p in parts if p and p.strip())


def parse_fields(raw: Union[str, Sequence[str], None]) -> tuple[str, ...]:
    """Parse and validate a field selection.

    Blank input selects DEFAULT_FIELDS. Duplicates are dropped, first occurrence
    wins. Every unknown name is reported in a single FieldValidationError.
    """
    requested = tuple(dict.fromkeys(split_list(raw)))
    if not requested:
        return DEFAULT_FIELDS
    invalid = [f for f in requested if f not in ALLOWED_FIELDS]
    if invalid:
        raise FieldValidationError(invalid)
    return requested


@dataclass(frozen=True)
class CheckOptions:
    format: OutputFormat = OutputFormat.TABLE
    fields: tuple[str, ...] = DEFAULT_FIELDS
    ignore: tuple[str, ...] = ()

    @classmethod
    def parse(
        cls,
        format: Union[OutputFormat, str] = OutputFormat.TABLE,
        fields: Union[str, Sequence[str], None] = None,
        ignore: Union[str, Sequence[str], None] = None,
    ) -> "CheckOptions":
        """Build options from raw CLI values, raising FieldValidationError on bad fields.

        ids and count never emit fields, so their field list is not validated.
        """
        fmt = OutputFormat(format)
        selected = parse_fields(fields) if fmt.uses_fields else DEFAULT_FIELDS
        return cls(format=fmt, fields=selected, ignore=split_list(ignore))

    @property
    def show_progress(self) -> bool:
        return not self.format.is_machine_readable
