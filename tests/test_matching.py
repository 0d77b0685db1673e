import re

import pytest

from earlybird.matching import (
    find_false_positive,
    find_hit,
    get_file_url,
    get_id_from_level_name,
    get_level_name_from_id,
    get_zip_url,
    prepare_match_value,
    should_strip,
    string_contains_quotes_ticks,
    substring_exists_in_lines,
    substring_exists_in_string,
)
from earlybird.models import COMPRESS_PATTERN, FalsePositive, Hit, Line


def test_find_hit_in_compressed_file_name():
    assert find_hit("compressed.zip", COMPRESS_PATTERN) == ".zip"


def test_find_hit_empty_target():
    assert find_hit("", COMPRESS_PATTERN) is None


def test_find_hit_no_match():
    assert find_hit("plain.txt", COMPRESS_PATTERN) is None


def test_find_hit_strips_delimiters():
    assert find_hit("key='abc'", re.compile(r"'\w+'")) == "abc"


def _lines():
    return [
        Line(line_value="Nothing to see here"),
        Line(line_value="Not sure what you're looking hideme for"),
        Line(line_value="This line shouldn't be searched"),
    ]


def test_substring_exists_in_lines():
    assert substring_exists_in_lines(_lines(), "hideme") is True


def test_substring_exists_in_lines_ignores_case():
    assert substring_exists_in_lines(_lines(), "HIDEME") is True


def test_substring_exists_in_lines_absent():
    assert substring_exists_in_lines(_lines(), "missing") is False


def test_substring_exists_in_string():
    assert substring_exists_in_string("foo bar", "foo") is True
    assert substring_exists_in_string("foo bar", "FOO") is True
    assert substring_exists_in_string("foo bar", "baz") is False


def test_prepare_match_value():
    assert prepare_match_value('"test"') == "test"


def test_prepare_match_value_keeps_original_when_quotes_remain():
    assert prepare_match_value('"te"st"') == '"te"st"'


def test_prepare_match_value_other_delimiters():
    assert prepare_match_value("=abc,") == "abc"
    assert prepare_match_value("") == ""


@pytest.mark.parametrize(
    "text, expected",
    [('"this is quoted"', True), ("this is NOT quoted", False), ("it's", True)],
)
def test_string_contains_quotes_ticks(text, expected):
    assert string_contains_quotes_ticks(text) is expected


@pytest.mark.parametrize("char", [",", '"', "'", "\\", "/", "=", "|"])
def test_should_strip_delimiters(char):
    assert should_strip(char) is True


def test_should_strip_regular_character():
    assert should_strip("a") is False


def test_get_level_name_from_id():
    level_map = {"one": 1, "two": 2, "three": 3}
    assert get_level_name_from_id(3, level_map) == "three"
    assert get_level_name_from_id(9, level_map) == "low"


def test_get_id_from_level_name():
    level_map = {"one": 1, "two": 2, "three": 3}
    assert get_id_from_level_name("two", level_map) == 2
    assert get_id_from_level_name("unknown", level_map) == 1


def test_get_zip_url():
    assert get_zip_url("https://github.com/test/sample.zip/ignorethis") == "https://github.com/test/sample.zip"


def test_get_zip_url_without_zip_is_unchanged():
    url = "https://github.com/test/sample"
    assert get_zip_url(url) == url


def test_get_zip_url_with_two_zips_is_unchanged():
    url = "https://github.com/a.zip/b.zip/c"
    assert get_zip_url(url) == url


def test_get_file_url_github():
    assert (
        get_file_url("https://github.com/test", "test_data/sample.zip")
        == "test_data/sample.zip:https://github.com/test/blob/master/test_data/sample.zip"
    )


def test_get_file_url_bitbucket():
    assert (
        get_file_url("https://bitbucket.com/stash/scm/project/test", "test_data/sample.zip")
        == "test_data/sample.zip:https://bitbucket.com/stash/projects/project/repos/test/browse/test_data/sample.zip"
    )


def test_get_file_url_bitbucket_user_repository():
    assert (
        get_file_url("https://bitbucket.com/stash/scm/~user/test", "a.txt")
        == "a.txt:https://bitbucket.com/stash/users/user/repos/test/browse/a.txt"
    )


def _fp_rules(**kwargs):
    return {1: [FalsePositive(codes=[1], pattern="^example", **kwargs)]}


def test_find_false_positive_matches_value():
    hit = Hit(code=1, filename="a.py", match_value="example123")
    assert find_false_positive(hit, _fp_rules()) is True


def test_find_false_positive_other_code():
    hit = Hit(code=2, filename="a.py", match_value="example123")
    assert find_false_positive(hit, _fp_rules()) is False


def test_find_false_positive_respects_file_extensions():
    hit = Hit(code=1, filename="a.py", match_value="example123")
    assert find_false_positive(hit, _fp_rules(file_extensions=[".md"])) is False
    assert find_false_positive(hit, _fp_rules(file_extensions=[".py"])) is True


def test_find_false_positive_full_line():
    hit = Hit(code=1, filename="a.py", match_value="value", line_value="example line")
    assert find_false_positive(hit, _fp_rules()) is False
    assert find_false_positive(hit, _fp_rules(use_full_line=True)) is True