from __future__ import annotations

import csv
import io
import os
from typing import Dict, Iterable, Sequence

from .models import WaiverRecord
from .reporting import RECORD_HEADERS, record_row
from .roster import ROSTER_COLUMNS


def write_csv(path: str, rows: Iterable[Dict[str, str]], headers: Sequence[str]) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as handle:
        _write_rows(handle, rows, headers)


def csv_text(rows: Iterable[Dict[str, str]], headers: Sequence[str]) -> str:
    buffer = io.StringIO()
    _write_rows(buffer, rows, headers)
    return buffer.getvalue()


def records_csv(records: Iterable[WaiverRecord]) -> str:
    return csv_text((record_row(record) for record in records), RECORD_HEADERS)


def export_records(path: str, records: Iterable[WaiverRecord]) -> None:
    write_csv(path, (record_row(record) for record in records), RECORD_HEADERS)


def roster_template() -> str:
    return csv_text([], ROSTER_COLUMNS)


def _write_rows(handle, rows: Iterable[Dict[str, str]], headers: Sequence[str]) -> None:
    writer = csv.DictWriter(handle, fieldnames=list(headers))
    writer.writeheader()
    for row in rows:
        writer.writerow({k: row.get(k, "") for k in headers})
