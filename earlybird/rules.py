"""Load rule modules, labels, false positive rules and solutions from disk."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from earlybird.matching import get_level_name_from_id
from earlybird.models import FalsePositive, LabelConfig, Rule, ScanConfig, Solution

log = logging.getLogger(__name__)


@dataclass
class RuleSet:
    """Everything a scan needs: compiled rules plus their labels, false positives and solutions."""

    rules: list[Rule] = field(default_factory=list)
    labels: dict[int, list[LabelConfig]] = field(default_factory=dict)
    false_positives: dict[int, list[FalsePositive]] = field(default_factory=dict)
    solutions: dict[int, Solution] = field(default_factory=dict)


def _normalise(key: Any) -> str:
    return str(key).replace("_", "").lower()


def _field(data: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """Look up ``name`` in ``data`` ignoring case and underscores, exact keys first."""
    if name in data:
        return data[name]
    wanted = _normalise(name)
    for key, value in data.items():
        if _normalise(key) == wanted:
            return value
    return default


def load_config(path: str | os.PathLike) -> dict[str, Any]:
    """Read a JSON or YAML configuration file into a dictionary."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as handle:
        if path.suffix.lower() == ".json":
            data = json.load(handle)
        else:
            data = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"configuration file {path} does not hold a mapping")
    return data


def _walk_files(dir_path: str | os.PathLike) -> Iterator[Path]:
    root = Path(dir_path)
    if not root.exists():
        raise FileNotFoundError(f"configuration directory not found: {root}")
    if root.is_file():
        yield root
        return
    for current, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(current) / name


def _parse_rule(data: Mapping[str, Any], searcharea: str) -> Rule:
    pattern = str(_field(data, "Pattern", "") or "")
    return Rule(
        code=int(_field(data, "Code", 0) or 0),
        severity=int(_field(data, "Severity", 0) or 0),
        confidence=int(_field(data, "Confidence", 0) or 0),
        solution_id=int(_field(data, "SolutionID", 0) or 0),
        pattern=pattern,
        caption=str(_field(data, "Caption", "") or ""),
        category=str(_field(data, "Category", "") or ""),
        solution=str(_field(data, "Solution", "") or ""),
        postprocess=str(_field(data, "Postprocess", "") or ""),
        compiled_pattern=re.compile(pattern),
        searcharea=searcharea,
        cwe=[str(item) for item in (_field(data, "CWE") or [])],
        example=str(_field(data, "Example", "") or ""),
    )


def load_rule_configs(cfg: ScanConfig, module_name: str, file_name: str) -> list[Rule]:
    """Load and compile the rules of one module that pass the display thresholds."""
    rule_path = os.path.join(cfg.rules_config_dir, file_name)
    try:
        data = load_config(rule_path)
    except (OSError, ValueError, yaml.YAMLError) as err:
        log.warning("Failed to load rules file %s", err)
        return []

    searcharea = str(_field(data, "Searcharea", "") or "")
    custom = cfg.module_configs.get(module_name)
    rules = []
    for raw in _field(data, "rules") or []:
        severity = int(_field(raw, "Severity", 0) or 0)
        confidence = int(_field(raw, "Confidence", 0) or 0)
        by_module = (
            custom is not None
            and severity <= custom.display_severity_level
            and confidence <= custom.display_confidence_level
        )
        by_global = (
            severity <= cfg.severity_display_level
            and confidence <= cfg.confidence_display_level
        )
        if by_module or by_global:
            rules.append(_parse_rule(raw, searcharea))
    return rules


def load_label_configs(dir_path: str | os.PathLike) -> dict[int, list[LabelConfig]]:
    """Load every label file under ``dir_path``, indexed by rule code."""
    labels: dict[int, list[LabelConfig]] = {}
    for path in _walk_files(dir_path):
        data = load_config(path)
        for raw in _field(data, "Labels") or []:
            label = LabelConfig(
                label=str(_field(raw, "label", "") or ""),
                keys=[str(key) for key in (_field(raw, "keys") or [])],
                multiline=bool(_field(raw, "multiline", False)),
                category=str(_field(raw, "category", "") or ""),
                codes=[int(code) for code in (_field(raw, "codes") or [])],
            )
            for code in label.codes:
                labels.setdefault(code, []).append(label)
    return labels


def load_false_positives(dir_path: str | os.PathLike) -> dict[int, list[FalsePositive]]:
    """Load and compile every false positive rule under ``dir_path``, indexed by rule code."""
    rules: dict[int, list[FalsePositive]] = {}
    for path in _walk_files(dir_path):
        data = load_config(path)
        for raw in _field(data, "rules") or []:
            rule = FalsePositive(
                codes=[int(code) for code in (_field(raw, "Codes") or [])],
                pattern=str(_field(raw, "Pattern", "") or ""),
                file_extensions=[str(ext) for ext in (_field(raw, "FileExtensions") or [])],
                use_full_line=bool(_field(raw, "UseFullLine", False)),
            )
            for code in rule.codes:
                rules.setdefault(code, []).append(rule)
    return rules


def load_solutions(dir_path: str | os.PathLike) -> dict[int, Solution]:
    """Load every solution under ``dir_path``, indexed by solution id."""
    solutions: dict[int, Solution] = {}
    for path in _walk_files(dir_path):
        data = load_config(path)
        for raw in _field(data, "solutions") or []:
            solution = Solution(
                id=int(_field(raw, "id", 0) or 0),
                text=str(_field(raw, "text", "") or ""),
            )
            solutions[solution.id] = solution
    return solutions


def compile_adjusted_severity(cfg: ScanConfig) -> None:
    """Validate the adjusted severity categories of ``cfg`` and compile their patterns."""
    for category in cfg.adjusted_severity_categories:
        if not category.category:
            raise ValueError("Missing required field category")
        if category.patterns is None:
            raise ValueError("Missing required field patterns")
        if not category.adjusted_display_severity:
            raise ValueError("Missing required field adjusted_display_severity")
        category.compiled_patterns = [re.compile(pattern) for pattern in category.patterns]


def describe_rules(rule_set: RuleSet, cfg: ScanConfig) -> str:
    """Describe the rules a scan would fail on, for a rules-only listing."""
    parts = ["\nShowing Rules Only (no scan to be executed)\n\n"]
    for rule in rule_set.rules:
        if rule.severity <= cfg.severity_fail_level and rule.confidence <= cfg.confidence_fail_level:
            parts.append(
                f"Code:  {rule.code}\n"
                f"Caption:  {rule.caption}\n"
                f"Pattern:  {rule.pattern}\n"
                f"Severity:  {get_level_name_from_id(rule.severity, cfg.level_map)}\n"
                f"Confidence:  {get_level_name_from_id(rule.confidence, cfg.level_map)}\n"
                f"Solution:  {rule.solution}\n"
                f"Example:  {rule.example}\n\n"
            )
    return "".join(parts)


def _print_meta(cfg: ScanConfig) -> None:
    log.info("Go-EarlyBird version: %s", cfg.version)
    levels = cfg.level_map
    print("Severity Fail threshold (at or above): ", get_level_name_from_id(cfg.severity_fail_level, levels))
    print("Confidence Fail threshold (at or above): ", get_level_name_from_id(cfg.confidence_fail_level, levels))
    print("Severity Display threshold (at or above): ", get_level_name_from_id(cfg.severity_display_level, levels))
    print("Confidence Display threshold (at or above): ", get_level_name_from_id(cfg.confidence_display_level, levels))
    print("Max file size to scan: ", cfg.max_file_size, " bytes")


def load_rule_set(cfg: ScanConfig) -> RuleSet:
    """Load rules for every enabled module along with labels, false positives and solutions."""
    if cfg.output_format != "json" and not cfg.hide_meta:
        _print_meta(cfg)

    rules: list[Rule] = []
    for module_name, file_name in cfg.enabled_modules_map.items():
        log.info("loading module: %s", module_name)
        rules.extend(load_rule_configs(cfg, module_name, file_name))

    solutions = load_solutions(cfg.solutions_config_dir) if cfg.show_solutions else {}
    labels = load_label_configs(cfg.labels_config_dir)
    false_positives = load_false_positives(cfg.false_positives_config_dir)
    compile_adjusted_severity(cfg)

    return RuleSet(rules=rules, labels=labels, false_positives=false_positives, solutions=solutions)