"""Quote-aware tokenizer for chat command text."""

from __future__ import annotations

QUOTE = '"'
ESCAPE = "\\"


def parse(text: str) -> list[str]:
    """Split command text into tokens.

    Spaces separate tokens except inside double quotes. A double quote
    toggles quoting and is not emitted. A backslash escapes a following
    double quote, which is then emitted literally; a backslash followed by
    any other character (or ending the text) is emitted as a backslash.
    Runs of spaces never produce empty tokens.

    >>> parse('say "hello world"')
    ['say', 'hello world']
    >>> parse('say \\\\"quoted\\\\"')
    ['say', '"quoted"']
    """
    tokens: list[str] = []
    current: list[str] = []
    in_quotes = False
    escaped = False

    for ch in text:
        if escaped and ch != QUOTE:
            current.append(ESCAPE)
            escaped = False
        if ch == " " and not in_quotes:
            if current:
                tokens.append("".join(current))
                current = []
        elif ch == QUOTE:
            if escaped:
                current.append(QUOTE)
                escaped = False
            else:
                in_quotes = not in_quotes
        elif ch == ESCAPE:
            escaped = True
        else:
            current.append(ch)

    if escaped:
        current.append(ESCAPE)
    if current:
        tokens.append("".join(current))
    return tokens


def first_token(text: str) -> str | None:
    tokens = parse(text)
    return tokens[0] if tokens else None
