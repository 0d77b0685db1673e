"""Helpers for matching rule patterns and shaping the matched values."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Optional

from earlybird.models import FalsePositive, Hit, Line

_STRIPPABLE = frozenset("\"'\\/=,|")


def find_hit(target: str, pattern: re.Pattern) -> Optional[str]:
    """Return the cleaned-up first match of ``pattern`` in ``target``, or None."""
    if not target:
        return None
    match = pattern.search(target)
    if match is None or not match.group(0):
        return None
    return prepare_match_value(match.group(0))


def substring_exists_in_lines(file_lines: Iterable[Line], text: str) -> bool:
    """Return True if the regular expression ``text`` matches any line, ignoring case."""
    regex = re.compile("(?i)" + text)
    return any(regex.search(line.line_value) for line in file_lines)


def substring_exists_in_string(text: str, substr: str) -> bool:
    """Return True if ``substr`` occurs in ``text``, ignoring case."""
    return substr.casefold() in text.casefold()


def prepare_match_value(match_value: str) -> str:
    """Strip one leading and one trailing delimiter character for readability.

    The original value is kept when quotes or ticks would remain inside.
    """
    value = match_value
    if value and should_strip(value[0]):
        value = value[1:]
    if value and should_strip(value[-1]):
        value = value[:-1]
    if string_contains_quotes_ticks(value):
        return match_value
    return value


def string_contains_quotes_ticks(text: str) -> bool:
    """Return True if ``text`` holds a double quote or a single quote."""
    return '"' in text or "'" in text


def should_strip(char: str) -> bool:
    """Return True if ``char`` is a delimiter worth stripping from a match."""
    return char in _STRIPPABLE


def find_false_positive(hit: Hit, false_positive_rules: Mapping[int, Iterable[FalsePositive]]) -> bool:
    """Return True if a false positive rule for the hit's code matches it."""
    for rule in false_positive_rules.get(hit.code, ()):
        if rule.file_extensions and not any(ext in hit.filename for ext in rule.file_extensions):
            continue
        value = hit.line_value if rule.use_full_line else hit.match_value
        if rule.compiled_pattern.search(value):
            return True
    return False


def get_level_name_from_id(level: int, level_map: Mapping[str, int]) -> str:
    """Translate a level id to its name; unknown ids are reported as ``low``."""
    name = "low"
    for key, value in level_map.items():
        if value == level:
            name = key
    return name


def get_id_from_level_name(name: str, level_map: Mapping[str, int]) -> int:
    """Translate a level name to its id; unknown names give 1."""
    return level_map.get(name, 1)


def get_zip_url(url: str) -> str:
    """Cut a URL after ``.zip`` when it occurs exactly once."""
    if url.count(".zip") > 1:
        return url
    index = url.find(".zip")
    if index < 0:
        return url
    return url[: index + len(".zip")]


def get_file_url(git_url: str, file_path: str) -> str:
    """Build ``<file_path>:<browse URL>`` for a file in a GitHub or Bitbucket repository."""
    file_url = git_url.replace(".git", "", 1)

    if "github.com/" in git_url:
        file_url = file_url + "/blob/master/" + file_path
    else:
        if "~" in file_url:
            file_url = file_url.replace("/scm/~", "/users/", 1)
        else:
            file_url = file_url.replace("/scm/", "/projects/", 1)
        parts = file_url.split("/")
        if len(parts) > 5:
            owner = parts[5]
            file_url = file_url.replace(owner + "/", owner + "/repos/", 1)
        file_url = file_url + "/browse/" + file_path

    if ".zip" in file_url:
        file_url = get_zip_url(file_url)

    return file_path + ":" + file_url