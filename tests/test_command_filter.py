import pytest

from toolkit_core.commands.filter import first_token, parse


@pytest.mark.parametrize(
    "text,expected",
    [
        ("hello world", ["hello", "world"]),
        ('say "hello world"', ["say", "hello world"]),
        ('say \\"quoted\\"', ["say", '"quoted"']),
        ("buy  item   3", ["buy", "item", "3"]),
        ("", []),
        ("   ", []),
    ],
)
def test_parse_basic_cases(text, expected):
    assert parse(text) == expected


def test_backslash_before_other_character_is_literal():
    assert parse("path C:\\temp") == ["path", "C:\\temp"]


def test_trailing_backslash_is_kept():
    assert parse("end\\") == ["end\\"]


def test_quoted_span_keeps_inner_spaces_and_joins_adjacent_text():
    assert parse('give "big sword"now x') == ["give", "big swordnow", "x"]


def test_escaped_quote_inside_quotes():
    assert parse('say "a \\"b\\" c"') == ["say", 'a "b" c']


def test_unterminated_quote_swallows_rest():
    assert parse('say "hello world') == ["say", "hello world"]


def test_first_token():
    assert first_token("!bal me") == "!bal"
    assert first_token("   ") is None
