"""Data types shared by the rule loader, the scanner and the writers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional

RULE_SUFFIX = ".json"
ENTROPY_THRESHOLD = 4.7
COMPRESS_REGEX = ".(war|jar|zip|ear)$"
CONVERT_REGEX = ".(docx|odt|pdf|rtf)$"
TEMP_REGEX = r"(?:ebgit|ebzip|ebconv)\d+[/\\](.+$)"
MASK_CHARACTER = "*"
OVERLAP_LENGTH = 25
INFO_LEVEL_SEVERITY = "info"

COMPRESS_PATTERN = re.compile(COMPRESS_REGEX)
"""Identifies compressed archives by file name."""
CONVERT_PATTERN = re.compile(CONVERT_REGEX)
"""Identifies documents that must be converted to plain text before scanning."""
TEMP_PATTERN = re.compile(TEMP_REGEX)
"""Extracts the original path from a temporary extraction path."""


@dataclass
class Rule:
    """A single detection rule from a rule module."""

    code: int = 0
    severity: int = 0
    confidence: int = 0
    solution_id: int = 0
    pattern: str = ""
    caption: str = ""
    category: str = ""
    solution: str = ""
    postprocess: str = ""
    compiled_pattern: Optional[re.Pattern] = None
    searcharea: str = ""
    cwe: list[str] = field(default_factory=list)
    example: str = ""


@dataclass
class Hit:
    """A match in a file against a specific rule."""

    code: int = 0
    filename: str = ""
    caption: str = ""
    category: str = ""
    match_value: str = ""
    line_value: str = ""
    solution: str = ""
    line: int = 0
    severity: str = ""
    severity_id: int = 0
    confidence: str = ""
    confidence_id: int = 0
    labels: list[str] = field(default_factory=list)
    cwe: list[str] = field(default_factory=list)
    time: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the hit keyed by its report field names."""
        return {
            "code": self.code,
            "filename": self.filename,
            "caption": self.caption,
            "category": self.category,
            "match_value": self.match_value,
            "line_value": self.line_value,
            "solution": self.solution,
            "line": self.line,
            "severity": self.severity,
            "severity_id": self.severity_id,
            "confidence": self.confidence,
            "confidence_id": self.confidence_id,
            "labels": list(self.labels),
            "cwe": list(self.cwe),
            "time": self.time,
        }


@dataclass
class Line:
    """One line of a file to scan."""

    line_num: int = 0
    line_value: str = ""
    file_path: str = ""
    file_name: str = ""


@dataclass
class File:
    """A file to scan; ``lines`` holds content supplied directly (e.g. a buffer)."""

    name: str = ""
    path: str = ""
    lines: list[Line] = field(default_factory=list)


@dataclass
class Report:
    """The final output of a scan."""

    version: str = ""
    skipped: list[str] = field(default_factory=list)
    ignore: list[str] = field(default_factory=list)
    threshold: int = 0
    modules: list[str] = field(default_factory=list)
    hits: list[Hit] = field(default_factory=list)
    hit_count: int = 0
    files_scanned: int = 0
    rules_observed: int = 0
    start_time: str = ""
    end_time: str = ""
    duration: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the report keyed by its output field names."""
        return {
            "version": self.version,
            "skipped": list(self.skipped),
            "ignore": list(self.ignore),
            "threshold": self.threshold,
            "modules": list(self.modules),
            "hits": [hit.to_dict() for hit in self.hits],
            "hit_count": self.hit_count,
            "files_scanned": self.files_scanned,
            "rules_observed": self.rules_observed,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
        }


@dataclass
class WorkJob:
    """A line to scan together with the content of the file it belongs to."""

    work_line: Line = field(default_factory=Line)
    file_lines: list[Line] = field(default_factory=list)


@dataclass
class FalsePositive:
    """A rule that marks matching hits as false positives."""

    codes: list[int] = field(default_factory=list)
    pattern: str = ""
    compiled_pattern: Optional[re.Pattern] = None
    file_extensions: list[str] = field(default_factory=list)
    use_full_line: bool = False

    def __post_init__(self) -> None:
        if self.compiled_pattern is None:
            self.compiled_pattern = re.compile(self.pattern)


@dataclass
class Solution:
    """Display text for the solution to a finding."""

    id: int = 0
    text: str = ""


@dataclass
class LabelConfig:
    """A rule for applying a label to hits based on context."""

    label: str = ""
    keys: list[str] = field(default_factory=list)
    multiline: bool = False
    category: str = ""
    codes: list[int] = field(default_factory=list)


@dataclass
class ModuleConfig:
    """Per-module display thresholds overriding the global ones."""

    display_severity_level: int = 0
    display_confidence_level: int = 0


@dataclass
class AdjustedSeverityCategory:
    """Overrides the severity of hits in a category whose value matches a pattern."""

    category: str = ""
    patterns: Optional[list[str]] = None
    adjusted_display_severity: str = ""
    use_filename: bool = False
    use_line_value: bool = False
    compiled_patterns: list[re.Pattern] = field(default_factory=list)


@dataclass
class ScanConfig:
    """Settings that drive rule loading, scanning and reporting."""

    version: str = ""
    output_format: str = ""
    hide_meta: bool = False
    config_dir: str = ""
    rules_config_dir: str = ""
    labels_config_dir: str = ""
    false_positives_config_dir: str = ""
    solutions_config_dir: str = ""
    severity_fail_level: int = 0
    confidence_fail_level: int = 0
    severity_display_level: int = 0
    confidence_display_level: int = 0
    max_file_size: int = 0
    enabled_modules_map: dict[str, str] = field(default_factory=dict)
    module_configs: dict[str, ModuleConfig] = field(default_factory=dict)
    level_map: dict[str, int] = field(default_factory=dict)
    show_solutions: bool = False
    rules_only: bool = False
    adjusted_severity_categories: list[AdjustedSeverityCategory] = field(default_factory=list)
    suppress: bool = False
    skip_comments: bool = False
    ignore_fp_rules: bool = False
    extensions_to_skip_scan: list[str] = field(default_factory=list)
    annotations_to_skip_line: list[str] = field(default_factory=list)
    gitrepo: str = ""
    work_length: int = 0
    fail_scan: bool = False