"""Scan files and buffers for secrets using a loaded rule set."""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import replace
from datetime import datetime, timezone
from typing import BinaryIO, Optional

from earlybird.matching import (
    find_false_positive,
    find_hit,
    get_file_url,
    get_id_from_level_name,
    get_level_name_from_id,
    substring_exists_in_lines,
    substring_exists_in_string,
)
from earlybird.models import (
    COMPRESS_PATTERN,
    INFO_LEVEL_SEVERITY,
    MASK_CHARACTER,
    OVERLAP_LENGTH,
    TEMP_PATTERN,
    File,
    Hit,
    Line,
    Rule,
    ScanConfig,
    WorkJob,
)
from earlybird.rules import RuleSet

log = logging.getLogger(__name__)

BUFFER = "buffer"
_TEMP_MARKERS = ("ebzip", "ebgit", "ebconv")
_SEPARATORS = "/\\" if os.sep == "\\" else "/"

Postprocessor = Callable[[Hit], bool]


def _last_separator(path: str) -> int:
    return max(path.rfind(sep) for sep in _SEPARATORS)


def _extension(path: str) -> str:
    dot = path.rfind(".")
    if dot < 0 or dot < _last_separator(path):
        return ""
    return path[dot:]


def _base_name(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip(_SEPARATORS)
    if not stripped:
        return os.sep
    return stripped[_last_separator(stripped) + 1:]


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _read_lines(handle: BinaryIO) -> Iterator[str]:
    for raw in handle:
        if raw.endswith(b"\n"):
            raw = raw[:-1]
            if raw.endswith(b"\r"):
                raw = raw[:-1]
        yield raw.decode("utf-8", errors="replace")


def determine_scan_fail(cfg: ScanConfig, hit: Hit) -> bool:
    """Return True if the hit is at or above both fail thresholds."""
    if hit.severity == INFO_LEVEL_SEVERITY:
        return False
    return hit.severity_id <= cfg.severity_fail_level and hit.confidence_id <= cfg.confidence_fail_level


def is_ignore_annotation(cfg: ScanConfig, line: str) -> bool:
    """Return True if the line carries one of the skip annotations."""
    return any(annotation in line for annotation in cfg.annotations_to_skip_line)


def mask_value(text: str) -> str:
    """Replace every byte of ``text`` with the mask character."""
    return MASK_CHARACTER * len(text.encode("utf-8"))


def job_file_name(git_repo: str, file_name: str) -> str:
    """Return the reported file name, as a browse URL when scanning a repository."""
    if git_repo:
        return get_file_url(git_repo, _base_name(file_name))
    return file_name


def split_sub_n(text: str, n: int) -> list[str]:
    """Split ``text`` into chunks of ``n`` characters with overlap pieces between pairs."""
    if n <= 0:
        raise ValueError("chunk length must be positive")
    chunks = [text[start:start + n] for start in range(0, len(text), n)]

    results: list[str] = []
    first_of_pair = True
    for sub in chunks:
        if first_of_pair:
            first_of_pair = False
            results.append(sub)
            continue
        first_of_pair = True
        if len(sub) > OVERLAP_LENGTH:
            results.append(sub[:OVERLAP_LENGTH - 1])
            results.append(sub)
        else:
            results.append(sub)
            break
    return results


def split_job(job: WorkJob, work_length: int) -> list[WorkJob]:
    """Split a job whose line is longer than ``work_length`` into several jobs."""
    line = job.work_line
    if len(line.line_value.encode("utf-8")) <= work_length:
        return [job]
    return [
        WorkJob(work_line=replace(line, line_value=value), file_lines=job.file_lines)
        for value in split_sub_n(line.line_value, work_length)
    ]


def remove_temp_prefix(path: str) -> str:
    """Strip a temporary extraction directory from the front of ``path``."""
    if any(marker in path for marker in _TEMP_MARKERS):
        match = TEMP_PATTERN.search(path)
        if match:
            return match.group(1)
    return path


def is_excluded_file_type(cfg: ScanConfig, filename: str) -> bool:
    """Return True if the file's extension is one whose content is not scanned."""
    file_ext = _extension(filename).casefold()
    for ext in cfg.extensions_to_skip_scan:
        if not ext:
            continue
        if file_ext == ext.casefold():
            return True
        if filename.endswith(ext[1:]):
            return True
    return False


def hit_unique(seen: set, hit: Hit) -> bool:
    """Record the hit in ``seen``; return False if an identical hit was already seen."""
    digest = hashlib.sha1((hit.filename + str(hit.line) + hit.match_value).encode("utf-8")).digest()
    if digest in seen:
        return False
    seen.add(digest)
    return True


def delete_files(paths: Iterable[str]) -> None:
    """Remove every file or directory tree in ``paths``; missing ones are ignored."""
    for path in paths:
        try:
            if os.path.isdir(path) and not os.path.islink(path):
                shutil.rmtree(path)
            else:
                os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as err:
            log.warning("Failed to delete temporary file %s", err)


class Scanner:
    """Runs a rule set over file names and file contents.

    ``postprocessors`` maps a rule's ``postprocess`` name to a validator that
    receives the hit, may adjust it, and returns whether it still stands.
    Rules whose postprocess name has no validator are always reported.
    """

    def __init__(
        self,
        cfg: ScanConfig,
        rule_set: RuleSet,
        postprocessors: Optional[Mapping[str, Postprocessor]] = None,
    ) -> None:
        self.cfg = cfg
        self.rule_set = rule_set
        self.postprocessors = dict(postprocessors or {})

    def search_files(
        self,
        files: Iterable[File],
        compress_paths: Iterable[str] = (),
        convert_paths: Iterable[str] = (),
    ) -> list[Hit]:
        """Scan names and contents of ``files``, then remove the temporary paths."""
        files = list(files)
        try:
            hits = list(self._scan_names(files))
            seen: set = set()
            for job in self._content_jobs(files):
                hits.extend(self._process_job(job, seen))
            return hits
        finally:
            delete_files(list(convert_paths))
            delete_files(list(compress_paths))

    def _scan_names(self, files: Iterable[File]) -> Iterator[Hit]:
        cfg = self.cfg
        for file in files:
            hit = self.scan_name(file)
            if hit is None:
                continue
            if cfg.level_map.get(hit.severity, 0) <= cfg.severity_display_level:
                yield hit
            if cfg.level_map.get(hit.severity, 0) <= cfg.severity_fail_level:
                cfg.fail_scan = True
            if cfg.level_map.get(hit.confidence, 0) <= cfg.confidence_fail_level:
                cfg.fail_scan = True

    def _content_jobs(self, files: Iterable[File]) -> Iterator[WorkJob]:
        cfg = self.cfg
        for file in files:
            if file.path == BUFFER or file.name == BUFFER:
                for line in file.lines:
                    yield WorkJob(work_line=line, file_lines=file.lines)
                continue
            if is_excluded_file_type(cfg, file.name) or COMPRESS_PATTERN.search(file.name):
                continue
            try:
                handle = open(file.path, "rb")
            except OSError:
                handle = open(file.name, "rb")
            with handle:
                # Lines accumulate as they are read, so each job sees the file up to its line.
                file_lines = list(file.lines)
                reported_name = job_file_name(cfg.gitrepo, file.name)
                for number, value in enumerate(_read_lines(handle), start=1):
                    line = Line(line_num=number, line_value=value, file_path=file.path, file_name=reported_name)
                    file_lines.append(line)
                    yield from split_job(WorkJob(work_line=line, file_lines=file_lines), cfg.work_length)

    def _process_job(self, job: WorkJob, seen: set) -> Iterator[Hit]:
        cfg = self.cfg
        line = job.work_line
        if is_ignore_annotation(cfg, line.line_value):
            line = replace(line, line_value="")
        for hit in self.scan_line(line, job.file_lines):
            if cfg.suppress:
                hit.match_value = mask_value(hit.match_value)
                hit.line_value = mask_value(hit.line_value)
            if not hit_unique(seen, hit):
                continue
            yield hit
            cfg.fail_scan = determine_scan_fail(cfg, hit)

    def _solution_text(self, rule: Rule) -> str:
        if not self.cfg.show_solutions:
            return ""
        solution = self.rule_set.solutions.get(rule.solution_id)
        return solution.text if solution else ""

    def scan_line(self, line: Line, file_lines: list[Line]) -> list[Hit]:
        """Run every content rule over one line and return the hits that stand."""
        cfg = self.cfg
        hits = []
        for rule in self.rule_set.rules:
            if rule.searcharea == "filename" or (cfg.skip_comments and rule.category == "comment"):
                continue
            match_value = find_hit(line.line_value, rule.compiled_pattern)
            if match_value is None:
                continue

            if line.file_path != BUFFER and "ebconv" not in line.file_path:
                filename = remove_temp_prefix(line.file_path)
            else:
                filename = line.file_name
            hit = Hit(
                code=rule.code,
                confidence=get_level_name_from_id(rule.confidence, cfg.level_map),
                confidence_id=rule.confidence,
                caption=rule.caption,
                category=rule.category,
                solution=self._solution_text(rule),
                cwe=list(rule.cwe),
                line=line.line_num,
                line_value=line.line_value.strip(),
                match_value=match_value,
                filename=filename,
                time=_utc_timestamp(),
            )
            self.determine_severity(hit, rule)
            self.label_hit(hit, file_lines)
            if self.post_process(hit, rule):
                hits.append(hit)
        return hits

    def scan_name(self, file: File) -> Optional[Hit]:
        """Return a hit for the first file name rule matching the file's path, or None."""
        cfg = self.cfg
        path = file.name if file.path == BUFFER else file.path
        for rule in self.rule_set.rules:
            if rule.searcharea == "body":
                continue
            if find_hit(path, rule.compiled_pattern) is None:
                continue
            hit = Hit(
                code=rule.code,
                severity=get_level_name_from_id(rule.severity, cfg.level_map),
                severity_id=rule.severity,
                caption=rule.caption,
                category=rule.category,
                cwe=list(rule.cwe),
                confidence=get_level_name_from_id(rule.confidence, cfg.level_map),
                confidence_id=rule.confidence,
                solution=self._solution_text(rule),
                line=0,
                filename=path,
                match_value=file.name,
                line_value=file.name,
                time=_utc_timestamp(),
            )
            self.determine_severity(hit, rule)
            return hit
        return None

    def determine_severity(self, hit: Hit, rule: Rule) -> None:
        """Set the hit's severity, applying any configured category adjustment."""
        level_map = self.cfg.level_map
        for adjusted in self.cfg.adjusted_severity_categories:
            if adjusted.category != rule.category:
                continue
            if adjusted.use_filename:
                value = hit.filename
            elif adjusted.use_line_value:
                value = hit.line_value
            else:
                value = hit.match_value
            for pattern in adjusted.compiled_patterns:
                if pattern.search(value):
                    severity_id = get_id_from_level_name(adjusted.adjusted_display_severity, level_map)
                    hit.severity = get_level_name_from_id(severity_id, level_map)
                    hit.severity_id = severity_id
                    return
        hit.severity = get_level_name_from_id(rule.severity, level_map)
        hit.severity_id = rule.severity

    def post_process(self, hit: Hit, rule: Rule) -> bool:
        """Return False for false positives or hits rejected by the rule's validator."""
        if not self.cfg.ignore_fp_rules and find_false_positive(hit, self.rule_set.false_positives):
            return False
        validator = self.postprocessors.get(rule.postprocess)
        if validator is None:
            return True
        return bool(validator(hit))

    def label_hit(self, hit: Hit, file_lines: list[Line]) -> None:
        """Attach the configured labels whose keys match the hit or its file."""
        for rule in self.rule_set.labels.get(hit.code, []):
            if not rule.multiline:
                if not rule.keys or any(substring_exists_in_string(hit.line_value, key) for key in rule.keys):
                    hit.labels.append(rule.label)
                continue
            if all(substring_exists_in_lines(file_lines, key) for key in rule.keys):
                hit.labels.append(rule.label)