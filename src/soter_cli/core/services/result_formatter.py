from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Sequence

import yaml
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..domain.enums import OutputFormat
from ..domain.models import Vulnerability, VulnerabilityCollection
from ..domain.options import CheckOptions, TIMESTAMP_FIELDS

logger = logging.getLogger(__name__)

NO_VULNERABILITIES_MESSAGE = "Success: No vulnerabilities detected!"
UNKNOWN_DATE = "UNKNOWN"
NOT_FIXED = "NOT FIXED YET"
DATE_FORMAT = "%d %B %Y"

# Wide enough that rich never wraps or truncates a cell; tables keep their natural width.
_TABLE_CONSOLE_WIDTH = 1000


@dataclass(frozen=True)
class RenderedOutput:
    text: str
    is_message: bool = False


def _to_table_row(vuln: Vulnerability) -> dict[str, Any]:
    row = vuln.get_data()
    for key in TIMESTAMP_FIELDS:
        value = row[key]
        row[key] = value.strftime(DATE_FORMAT) if isinstance(value, datetime) else UNKNOWN_DATE
    if not vuln.is_fixed:
        row["fixed_in"] = NOT_FIXED
    return row


def _epoch(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def _to_machine_row(vuln: Vulnerability) -> dict[str, Any]:
    row = vuln.get_data()
    for key in TIMESTAMP_FIELDS:
        value = row[key]
        if isinstance(value, datetime):
            row[key] = _epoch(value)
    return row


def _to_id(vuln: Vulnerability) -> int:
    return vuln.id if vuln.id is not None else 0


def _select(rows: Sequence[dict[str, Any]], fields: Sequence[str]) -> list[dict[str, Any]]:
    return [{f: row.get(f) for f in fields} for row in rows]


class ResultFormatter:
    """Turn a VulnerabilityCollection into text for one output format."""

    def prepare(self, vulns: VulnerabilityCollection, options: CheckOptions) -> Any:
        """Return the normalized, format-specific data before serialization.

        - count: int
        - ids: list[int]
        - table: list of row dicts with display strings
        - csv/json/yaml: list of row dicts with epoch timestamps
        """
        fmt = options.format
        if fmt is OutputFormat.COUNT:
            return len(vulns)
        if fmt is OutputFormat.IDS:
            return vulns.map(_to_id)
        if fmt is OutputFormat.TABLE:
            return _select(vulns.map(_to_table_row), options.fields)
        return _select(vulns.map(_to_machine_row), options.fields)

    def render(self, vulns: VulnerabilityCollection, options: CheckOptions) -> RenderedOutput:
        fmt = options.format
        logger.debug(f"Rendering {len(vulns)} vulnerabilities as {fmt.value}, fields={','.join(options.fields)}")

        if fmt is OutputFormat.TABLE and vulns.is_empty():
            return RenderedOutput(NO_VULNERABILITIES_MESSAGE, is_message=True)

        data = self.prepare(vulns, options)
        if fmt is OutputFormat.COUNT:
            text = str(data)
        elif fmt is OutputFormat.IDS:
            text = " ".join(str(i) for i in data)
        elif fmt is OutputFormat.TABLE:
            text = self._render_table(data, options.fields)
        elif fmt is OutputFormat.CSV:
            text = self._render_csv(data, options.fields)
        elif fmt is OutputFormat.JSON:
            text = json.dumps(data, ensure_ascii=False)
        else:
            text = yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True).rstrip("\n")
        return RenderedOutput(text)

    @staticmethod
    def _render_table(rows: Sequence[dict[str, Any]], fields: Sequence[str]) -> str:
        table = Table(box=box.ASCII, show_lines=False)
        for name in fields:
            table.add_column(name, no_wrap=True)
        for row in rows:
            table.add_row(*(Text("" if row[f] is None else str(row[f])) for f in fields))

        buf = io.StringIO()
        console = Console(file=buf, width=_TABLE_CONSOLE_WIDTH, color_system=None, highlight=False)
        console.print(table)
        return buf.getvalue().rstrip("\n")

    @staticmethod
    def _render_csv(rows: Sequence[dict[str, Any]], fields: Sequence[str]) -> str:
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=list(fields), lineterminator="\n")
        writer.writeheader()
        writer.writerows(rows)
        return buf.getvalue().rstrip("\n")
