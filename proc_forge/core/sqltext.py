"""SQL text utilities.

A small tokenizer that keeps quoted literals, quoted identifiers and comments
apart from the surrounding code. It is used to split emulated procedure bodies
into statements and to render ``@name`` parameter markers into a driver's
paramstyle.
"""

from __future__ import annotations

import re

from proc_forge.core.exceptions import SqlTextError

# @name, but not @@system_variable and not mid-word (e.g. user@host)
_MARKER_PATTERN = re.compile(r"(?<![@\w])@([A-Za-z_]\w*)")

_QUOTES = {"'": "string", '"': "identifier", "`": "identifier"}


def _scan_quoted(sql: str, start: int) -> int:
    """Return the offset just past the quoted run opening at *start*."""
    quote = sql[start]
    n = len(sql)
    j = start + 1
    while j < n:
        if sql[j] == quote:
            j += 1
            if j >= n or sql[j] != quote:
                return j
        j += 1
    raise SqlTextError(f"Unterminated {_QUOTES[quote]} starting at offset {start}")


def tokenize(sql: str) -> list[tuple[str, str]]:
    """Split *sql* into ``string``, ``identifier``, ``comment`` and ``code`` tokens.

    Single-quoted literals, double-quoted and backtick-quoted identifiers are
    preserved verbatim, a doubled quote character being the escape. ``--``
    and ``/* */`` comments become ``comment`` tokens.

    Raises:
        SqlTextError: If a literal or identifier is left unterminated.
    """
    tokens: list[tuple[str, str]] = []
    i = 0
    n = len(sql)
    last = 0

    while i < n:
        two = sql[i : i + 2]
        if sql[i] in _QUOTES:
            end = _scan_quoted(sql, i)
            kind = _QUOTES[sql[i]]
        elif two == "--":
            newline = sql.find("\n", i)
            end = n if newline == -1 else newline
            kind = "comment"
        elif two == "/*":
            close = sql.find("*/", i + 2)
            end = n if close == -1 else close + 2
            kind = "comment"
        else:
            i += 1
            continue

        if i > last:
            tokens.append(("code", sql[last:i]))
        tokens.append((kind, sql[i:end]))
        last = i = end

    if last < n:
        tokens.append(("code", sql[last:]))
    return tokens


def strip_comments(sql: str) -> str:
    """Remove SQL comments while preserving literals and quoted identifiers."""
    return "".join(content if kind != "comment" else " " for kind, content in tokenize(sql))


def split_statements(sql: str) -> list[str]:
    """Split a script into its statements.

    Comments are dropped, ``;`` inside literals is ignored and empty
    statements are skipped.
    """
    statements: list[str] = []
    current: list[str] = []
    for kind, content in tokenize(sql):
        if kind == "comment":
            current.append(" ")
            continue
        if kind != "code":
            current.append(content)
            continue
        pieces = content.split(";")
        current.append(pieces[0])
        for piece in pieces[1:]:
            statements.append("".join(current))
            current = [piece]
    statements.append("".join(current))
    return [s.strip() for s in statements if s.strip()]


def render_markers(sql: str, paramstyle: str) -> str:
    """Convert ``@name`` markers to the target paramstyle.

    Literal ``%`` characters are doubled for ``pyformat``.

    Args:
        sql: SQL text using ``@name`` markers.
        paramstyle: ``'named'`` (``:name``) or ``'pyformat'`` (``%(name)s``).
    """
    if paramstyle == "named":
        replacement = r":\1"
    elif paramstyle == "pyformat":
        replacement = r"%(\1)s"
    else:
        raise ValueError(f"Unsupported paramstyle: {paramstyle}")

    escape = paramstyle == "pyformat"
    parts: list[str] = []
    for kind, content in tokenize(sql):
        if escape:
            content = content.replace("%", "%%")
        if kind == "code":
            parts.append(_MARKER_PATTERN.sub(replacement, content))
        else:
            parts.append(content)
    return "".join(parts)
