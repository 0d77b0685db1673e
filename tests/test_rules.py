import json

import pytest

from earlybird.models import AdjustedSeverityCategory, ModuleConfig, Rule, ScanConfig
from earlybird.rules import (
    RuleSet,
    compile_adjusted_severity,
    describe_rules,
    load_config,
    load_false_positives,
    load_label_configs,
    load_rule_configs,
    load_rule_set,
    load_solutions,
)

CONTENT_YAML = """\
Searcharea: body
rules:
  - Code: 3001
    Pattern: "secret_[a-z]+"
    Caption: Possible secret
    Category: password
    Severity: 1
    Confidence: 2
    SolutionID: 7
    CWE: [CWE-798]
    Example: secret_value
  - Code: 3002
    Pattern: "token"
    Caption: Low rule
    Category: key
    Severity: 4
    Confidence: 4
"""


@pytest.fixture
def config_dir(tmp_path):
    rules = tmp_path / "rules"
    rules.mkdir()
    (rules / "content.yaml").write_text(CONTENT_YAML)

    labels = tmp_path / "labels"
    labels.mkdir()
    (labels / "labels.json").write_text(json.dumps({
        "Labels": [
            {"label": "database", "keys": ["db"], "multiline": False, "codes": [3001, 3002]},
            {"label": "aws", "keys": [], "multiline": True, "codes": [3001]},
        ]
    }))

    fps = tmp_path / "falsepositives"
    fps.mkdir()
    (fps / "fp.json").write_text(json.dumps({
        "rules": [
            {"Codes": [3001], "Pattern": "example", "FileExtensions": [".py"], "UseFullLine": True}
        ]
    }))

    solutions = tmp_path / "solutions"
    solutions.mkdir()
    (solutions / "solutions.json").write_text(json.dumps({
        "solutions": [{"id": 7, "text": "Rotate the value"}]
    }))
    return tmp_path


def make_cfg(config_dir, **kwargs):
    defaults = dict(
        config_dir=str(config_dir),
        rules_config_dir=str(config_dir / "rules"),
        labels_config_dir=str(config_dir / "labels"),
        false_positives_config_dir=str(config_dir / "falsepositives"),
        solutions_config_dir=str(config_dir / "solutions"),
        severity_display_level=4,
        confidence_display_level=4,
        severity_fail_level=2,
        confidence_fail_level=2,
        level_map={"critical": 1, "high": 2, "medium": 3, "low": 4},
        enabled_modules_map={"content": "content.yaml"},
        output_format="json",
    )
    defaults.update(kwargs)
    return ScanConfig(**defaults)


def test_load_config_yaml(config_dir):
    data = load_config(config_dir / "rules" / "content.yaml")
    assert data["Searcharea"] == "body"
    assert len(data["rules"]) == 2


def test_load_config_non_mapping(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError):
        load_config(path)


def test_load_rule_configs(config_dir):
    rules = load_rule_configs(make_cfg(config_dir), "content", "content.yaml")
    assert [rule.code for rule in rules] == [3001, 3002]
    first = rules[0]
    assert first.searcharea == "body"
    assert first.solution_id == 7
    assert first.cwe == ["CWE-798"]
    assert first.compiled_pattern.search("x secret_abc").group(0) == "secret_abc"


def test_load_rule_configs_display_threshold(config_dir):
    cfg = make_cfg(config_dir, severity_display_level=2, confidence_display_level=2)
    rules = load_rule_configs(cfg, "content", "content.yaml")
    assert [rule.code for rule in rules] == [3001]


def test_load_rule_configs_module_override(config_dir):
    cfg = make_cfg(
        config_dir,
        severity_display_level=1,
        confidence_display_level=1,
        module_configs={"content": ModuleConfig(display_severity_level=4, display_confidence_level=4)},
    )
    rules = load_rule_configs(cfg, "content", "content.yaml")
    assert [rule.code for rule in rules] == [3001, 3002]


def test_load_rule_configs_missing_file(config_dir):
    assert load_rule_configs(make_cfg(config_dir), "content", "missing.yaml") == []


def test_load_label_configs(config_dir):
    labels = load_label_configs(config_dir / "labels")
    assert sorted(labels) == [3001, 3002]
    assert [label.label for label in labels[3001]] == ["database", "aws"]
    assert labels[3001][1].multiline is True
    assert labels[3002][0].keys == ["db"]


def test_load_label_configs_missing_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_label_configs(tmp_path / "nope")


def test_load_false_positives(config_dir):
    rules = load_false_positives(config_dir / "falsepositives")
    assert list(rules) == [3001]
    rule = rules[3001][0]
    assert rule.file_extensions == [".py"]
    assert rule.use_full_line is True
    assert rule.compiled_pattern.search("an example line")


def test_load_solutions(config_dir):
    solutions = load_solutions(config_dir / "solutions")
    assert solutions[7].text == "Rotate the value"


def test_compile_adjusted_severity():
    cfg = ScanConfig(adjusted_severity_categories=[
        AdjustedSeverityCategory(category="password", patterns=["test", "^dev"], adjusted_display_severity="low")
    ])
    compile_adjusted_severity(cfg)
    compiled = cfg.adjusted_severity_categories[0].compiled_patterns
    assert [p.pattern for p in compiled] == ["test", "^dev"]


@pytest.mark.parametrize(
    "category, message",
    [
        (AdjustedSeverityCategory(category="", patterns=["a"], adjusted_display_severity="low"), "category"),
        (AdjustedSeverityCategory(category="c", patterns=None, adjusted_display_severity="low"), "patterns"),
        (AdjustedSeverityCategory(category="c", patterns=["a"], adjusted_display_severity=""), "adjusted_display_severity"),
    ],
)
def test_compile_adjusted_severity_missing_fields(category, message):
    cfg = ScanConfig(adjusted_severity_categories=[category])
    with pytest.raises(ValueError, match=message):
        compile_adjusted_severity(cfg)


def test_describe_rules(config_dir):
    cfg = make_cfg(config_dir)
    rule_set = RuleSet(rules=load_rule_configs(cfg, "content", "content.yaml"))
    text = describe_rules(rule_set, cfg)
    assert text.startswith("\nShowing Rules Only (no scan to be executed)\n\n")
    assert "Code:  3001\n" in text
    assert "Severity:  critical\n" in text
    assert "Confidence:  high\n" in text
    assert "3002" not in text


def test_describe_rules_empty():
    text = describe_rules(RuleSet(rules=[Rule(code=1, severity=4, confidence=4)]), ScanConfig(severity_fail_level=1))
    assert "Code:" not in text


def test_load_rule_set(config_dir):
    cfg = make_cfg(
        config_dir,
        show_solutions=True,
        adjusted_severity_categories=[
            AdjustedSeverityCategory(category="password", patterns=["x"], adjusted_display_severity="low")
        ],
    )
    rule_set = load_rule_set(cfg)
    assert [rule.code for rule in rule_set.rules] == [3001, 3002]
    assert rule_set.solutions[7].text == "Rotate the value"
    assert 3001 in rule_set.labels
    assert 3001 in rule_set.false_positives
    assert len(cfg.adjusted_severity_categories[0].compiled_patterns) == 1


def test_load_rule_set_without_solutions_prints_meta(config_dir, capsys):
    cfg = make_cfg(config_dir, output_format="console", max_file_size=100)
    rule_set = load_rule_set(cfg)
    out = capsys.readouterr().out
    assert rule_set.solutions == {}
    assert "Severity Fail threshold (at or above):  high" in out
    assert "Max file size to scan:  100  bytes" in out