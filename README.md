# earlybird

A rule-driven library that looks through file names and file contents for
passwords, keys, tokens and other sensitive values.

Rules are read from JSON or YAML configuration files. Each rule carries a
regular expression, a severity, a confidence and the area it applies to
(`filename`, `body`, or both when left empty). Hits are filtered through
false-positive rules, labelled from context, optionally checked by
validators you supply, and written to the console, to CSV or to JSON.

## Installing

Install with your usual Python package installer. It needs Python 3.10 or
later and depends only on PyYAML (`pytest` is available as the `test` extra).

## Modules

- `earlybird.models` – data types: `Rule`, `Hit`, `File`, `Line`, `Report`,
  `WorkJob`, `FalsePositive`, `Solution`, `LabelConfig`, `ModuleConfig`,
  `AdjustedSeverityCategory` and `ScanConfig`. `Hit.to_dict()` and
  `Report.to_dict()` give the report field names (`match_value`,
  `severity_id`, `hit_count`, ...).
- `earlybird.rules` – `load_config` reads one JSON or YAML file;
  `load_rule_configs`, `load_label_configs`, `load_false_positives` and
  `load_solutions` load a module's rules or a directory of labels, false
  positive rules or solutions; `compile_adjusted_severity` validates and
  compiles severity adjustments; `load_rule_set` puts everything for a
  `ScanConfig` into a `RuleSet`; `describe_rules` returns a text listing of
  the rules a scan would fail on.
- `earlybird.scanner` – `Scanner` with `search_files`, `scan_line`,
  `scan_name`, `determine_severity`, `post_process` and `label_hit`, plus
  helpers such as `split_job`, `split_sub_n`, `mask_value`,
  `remove_temp_prefix`, `is_excluded_file_type`, `is_ignore_annotation`,
  `determine_scan_fail`, `hit_unique` and `delete_files`.
- `earlybird.matching` – `find_hit`, `prepare_match_value`,
  `find_false_positive`, `substring_exists_in_lines`,
  `substring_exists_in_string`, level name/id translation
  (`get_level_name_from_id`, `get_id_from_level_name`) and repository file
  links (`get_file_url`, `get_zip_url`).
- `earlybird.writers` – `write_console`, `hit_to_console`,
  `summarize_issues`, `write_csv`, `write_json`, `display_cwe` and
  `printable_ascii`.
- `earlybird.wildcard` – case-insensitive `*` / `?` matching with
  `pattern_match`.
- `earlybird.utils` – helpers for paths, repository and Bitbucket URLs and
  enabled-module selection.
- `earlybird.update` – `update_config_files` and `download_file` fetch rule
  files and the application config over HTTP; failures raise `UpdateError`.

## Scanning a buffer

```python
import re

from earlybird.models import File, Line, Rule, ScanConfig
from earlybird.rules import RuleSet
from earlybird.scanner import Scanner

rule = Rule(
    code=1,
    severity=2,
    confidence=2,
    caption="Token assignment",
    pattern=r"token\s*=\s*\S+",
    compiled_pattern=re.compile(r"token\s*=\s*\S+"),
    searcharea="body",
)
cfg = ScanConfig(
    level_map={"critical": 1, "high": 2, "medium": 3, "low": 4},
    severity_display_level=4,
    confidence_display_level=4,
    severity_fail_level=2,
    confidence_fail_level=2,
)
lines = [Line(line_num=1, line_value="token = placeholder",
              file_path="buffer", file_name="notes.txt")]
scanner = Scanner(cfg, RuleSet(rules=[rule]))
hits = scanner.search_files([File(name="buffer", path="buffer", lines=lines)])
# hits[0].filename == "notes.txt", hits[0].severity == "high", cfg.fail_scan is True
```

A `File` whose name or path is `"buffer"` is scanned from its `lines`;
any other file is opened and read line by line. `search_files` returns a
list of hits: file name hits first, then content hits, with duplicates
(same file, line and value) dropped. Paths given as `compress_paths` and
`convert_paths` are deleted when the scan finishes.

## Validators

A rule's `postprocess` name is looked up in the `postprocessors` mapping
given to `Scanner`. The validator receives the `Hit`, may change it (for
example its confidence or labels) and returns whether it still stands.
Rules whose `postprocess` name has no validator are always reported.

```python
scanner = Scanner(cfg, rule_set, postprocessors={"key": lambda hit: len(hit.match_value) > 8})
```

## Output

```python
from earlybird.models import Hit, Report
from earlybird.writers import write_console, write_csv, write_json

hits = [Hit(code=3003, line=1, filename="sample.py", caption="Password")]
write_console(hits)                    # prints each finding and a summary; returns caption counts
write_csv(hits, "report.csv")          # appends rows, header first
text = write_json(Report(hits=hits, hit_count=1), "report.json")
```

An empty file name writes to standard output.

## Other helpers

```python
from earlybird.matching import get_file_url
from earlybird.wildcard import pattern_match

pattern_match("bundle.min.js", "*.min.js")   # True
get_file_url("https://github.com/test", "test_data/sample.zip")
# 'test_data/sample.zip:https://github.com/test/blob/master/test_data/sample.zip'
```

## Severity and confidence

Lower numbers are more serious. A hit fails the scan when both its
severity and confidence ids are at or below the fail levels; hits with
severity `info` never fail a scan. `AdjustedSeverityCategory` entries
override the severity of a category when the file name, line or matched
value matches one of their patterns. With `suppress` set, matched values
and lines are masked with `*`; lines carrying one of
`annotations_to_skip_line` are not scanned; files with an extension in
`extensions_to_skip_scan` are only checked by name.

## What this package does not do

- There is no command-line program; everything is used from Python.
- It does not clone repositories, extract archives or convert documents
  to text; archives matched by name are not opened.
- It ships no rule, label, false-positive or solution files, and no
  built-in password, card-number, SSN or entropy validators; supply rule
  files and validators yourself.