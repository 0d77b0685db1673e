"""Render hits to the console, CSV files and JSON documents."""

from __future__ import annotations

import csv
import io
import json
import os
import sys
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import fields
from typing import Any, Optional, TextIO

from earlybird.models import Hit

OUTPUT_ARRAY_SEPARATOR = "/"
COLUMN_FINDING = "Finding #"
COLUMN_CODE = "Code #"
COLUMN_FILE_NAME = "Filename"
COLUMN_CAPTION = "Caption"
COLUMN_CATEGORY = "Category"
COLUMN_LINE = "Line #"
COLUMN_VALUE = "Value"
COLUMN_LINE_VALUE = "Line Value"
COLUMN_SEVERITY = "Severity"
COLUMN_CONFIDENCE = "Confidence"
COLUMN_LABELS = "Labels"
COLUMN_CWE = "Associated CWEs"
COLUMN_SOLUTION = "Solution"
OUTPUT_TOTAL_ISSUES_FOUND = "\t***** Total issues found *****"
OUTPUT_TOTAL_ISSUES = "\t{:5d} TOTAL ISSUES\n"
OUTPUT_BYTES_WRITTEN = " bytes written to "
OUTPUT_INDENT = "\n\t"
OUTPUT_NONE = "None"

CSV_HEADER = [
    "Code", "Filename", "Caption", "Category", "MatchValue", "LineValue", "Solution",
    "Line", "Severity", "SeverityID", "Confidence", "ConfidenceID", "Labels", "CWE", "Time",
]


def display_cwe(items: Iterable[str]) -> str:
    """Join items with ``/``, or return ``None`` when there are none."""
    items = list(items or [])
    return OUTPUT_ARRAY_SEPARATOR.join(items) if items else OUTPUT_NONE


def printable_ascii(text: str) -> str:
    """Drop control characters, DELETE and non-ASCII characters."""
    return "".join(ch for ch in text if " " <= ch <= "~")


def hit_to_console(hit: Hit, progress: int, show_full_line: bool) -> str:
    """Format one hit as a block of indented ``name: value`` lines."""
    parts = [
        f"{COLUMN_FINDING} {progress}:",
        f"{OUTPUT_INDENT}{COLUMN_CODE}: {hit.code}",
        f"{OUTPUT_INDENT}{COLUMN_FILE_NAME}: {hit.filename}",
        f"{OUTPUT_INDENT}{COLUMN_CAPTION}: {hit.caption}",
        f"{OUTPUT_INDENT}{COLUMN_CATEGORY}: {hit.category}",
        f"{OUTPUT_INDENT}{COLUMN_LINE}: {hit.line}",
        f"{OUTPUT_INDENT}{COLUMN_VALUE}: {printable_ascii(hit.match_value)}",
    ]
    if show_full_line:
        parts.append(f"{OUTPUT_INDENT}{COLUMN_LINE_VALUE}: {printable_ascii(hit.line_value)}")
    parts += [
        f"{OUTPUT_INDENT}{COLUMN_SEVERITY}: {hit.severity}",
        f"{OUTPUT_INDENT}{COLUMN_CONFIDENCE}: {hit.confidence}",
        f"{OUTPUT_INDENT}{COLUMN_LABELS}: {display_cwe(hit.labels)}",
        f"{OUTPUT_INDENT}{COLUMN_CWE}: {display_cwe(hit.cwe)}",
    ]
    if hit.solution:
        parts.append(f"{OUTPUT_INDENT}{COLUMN_SOLUTION}: {hit.solution}")
    parts.append("\n")
    return "".join(parts)


def summarize_issues(counts: Mapping[str, int]) -> str:
    """Summarise issue counts, most frequent first and alphabetical on ties."""
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    lines = [OUTPUT_TOTAL_ISSUES_FOUND + "\n"]
    lines += [f"\t{count:5d} {caption}\n" for caption, count in ordered]
    lines.append(OUTPUT_TOTAL_ISSUES.format(sum(counts.values())))
    return "".join(lines)


def write_console(hits: Iterable[Hit], file_name: str = "", show_full_line: bool = False) -> Counter:
    """Write hits to stdout or to ``file_name`` and print a summary; return the caption counts."""
    counts: Counter = Counter()
    if not file_name:
        for progress, hit in enumerate(hits, start=1):
            print(hit_to_console(hit, progress, show_full_line))
            counts[hit.caption] += 1
    else:
        with open(file_name, "w", encoding="utf-8") as handle:
            for progress, hit in enumerate(hits, start=1):
                handle.write(hit_to_console(hit, progress, show_full_line))
                counts[hit.caption] += 1
        print(os.path.getsize(file_name), OUTPUT_BYTES_WRITTEN, file_name)
    print(summarize_issues(counts), end="")
    return counts


def _csv_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "[" + " ".join(str(item) for item in value) + "]"
    return str(value)


def _csv_row(hit: Hit) -> list[str]:
    return [_csv_value(getattr(hit, f.name)) for f in fields(Hit)]


def _write_csv_rows(hits: Iterable[Hit], output: TextIO) -> None:
    writer = csv.writer(output, lineterminator="\n")
    header_written = False
    for hit in hits:
        if not header_written:
            writer.writerow(CSV_HEADER)
            header_written = True
        writer.writerow(_csv_row(hit))


def write_csv(hits: Iterable[Hit], file_name: str = "") -> None:
    """Write hits as CSV to stdout, or append them to ``file_name``."""
    if not file_name:
        _write_csv_rows(hits, sys.stdout)
        return
    with open(file_name, "a", encoding="utf-8", newline="") as handle:
        _write_csv_rows(hits, handle)
    print(os.path.getsize(file_name), " bytes written to ", file_name)


def _to_jsonable(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(value: Any, file_name: Optional[str] = "") -> str:
    """Serialise ``value`` as tab-indented JSON to stdout or ``file_name``; return the text."""
    text = json.dumps(value, indent="\t", ensure_ascii=False, default=_to_jsonable)
    text = (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )
    if not file_name:
        sys.stdout.write(text)
        sys.stdout.flush()
    else:
        with io.open(file_name, "w", encoding="utf-8") as handle:
            handle.write(text)
    return text