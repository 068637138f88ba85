"""
Recover table rows from a MySQL dump without a SQL engine.

Only the parts of the dialect that mysqldump (and the MODX backup tools)
actually emit are understood:
  - extended INSERTs:  INSERT INTO `t` (`a`,`b`) VALUES (1,'x'),(2,'y');
  - INSERTs without a column list, resolved against the CREATE TABLE that
    precedes them in the dump
  - `-- `, `#` and /* */ comments between statements

Everything happens in two stages so quoting can be tested on its own:
tokenize() turns the VALUES part into a flat token stream, and the row
builder groups tokens into tuples and decodes each field with decode_value().
"""

import html
import logging
import re
from collections import namedtuple

from .report import Report

log = logging.getLogger("modx-export")

OPEN, CLOSE, COMMA, STRING, LITERAL, ERROR = "open", "close", "comma", "string", "literal", "error"

Token = namedtuple("Token", "kind text")


class MalformedValue(ValueError):
    pass


class MalformedTuple(ValueError):
    pass


# MySQL backslash escapes; anything else after a backslash is taken literally
_ESCAPES = {"0": "\0", "b": "\b", "n": "\n", "r": "\r", "t": "\t", "Z": "\x1a"}

_UNESCAPE = {
    "'": re.compile(r"\\(.)|''", re.S),
    '"': re.compile(r'\\(.)|""', re.S),
}

# Next character that can end (or escape inside) a quoted run
_STRING_STOP = {
    "'": re.compile(r"['\\]"),
    '"': re.compile(r'["\\]'),
    "`": re.compile(r"`"),
}

_STATEMENT_STOP = re.compile(r"['\"`;#]|--|/\*")

_INSERT = re.compile(
    r"""INSERT\s+(?:(?:LOW_PRIORITY|DELAYED|HIGH_PRIORITY)\s+)?(?:IGNORE\s+)?INTO\s+
        (?:[`"]?\w+[`"]?\.)?            # optional database qualifier
        [`"]?(\w+)[`"]?\s*
        (?:\(([^)]*)\)\s*)?
        VALUES?\s*""",
    re.I | re.S | re.X,
)
_CREATE = re.compile(
    r"""CREATE\s+(?:TEMPORARY\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?
        (?:[`"]?\w+[`"]?\.)?[`"]?(\w+)[`"]?\s*\((.*)\)""",
    re.I | re.S | re.X,
)
_CREATE_COLUMN = re.compile(r"^\s*[`\"](\w+)[`\"]\s", re.M)


def _string_end(text, start):
    """Index of the quote that closes the string opened at text[start], or -1."""
    quote = text[start]
    stop = _STRING_STOP[quote]
    i = start + 1
    while True:
        m = stop.search(text, i)
        if not m:
            return -1
        i = m.start()
        if text[i] == "\\":
            i += 2
        elif text.startswith(quote, i + 1):
            i += 2  # doubled quote is an escaped quote, not the end
        else:
            return i


def decode_value(token):
    """
    Turn one field token from a VALUES tuple into a Python value.

    'quoted' -> str, unescaped and with HTML entities decoded (MODX stores
                markup HTML-escaped in several fields)
    NULL     -> None
    other    -> the raw text; numeric typing is left to whoever knows the field
    """
    token = token.strip()
    if token[:1] in ("'", '"'):
        quote = token[0]
        if len(token) < 2 or _string_end(token, 0) != len(token) - 1:
            raise MalformedValue(f"unterminated or malformed string: {token[:40]!r}")
        inner = _UNESCAPE[quote].sub(
            lambda m: _ESCAPES.get(m.group(1), m.group(1)) if m.group(1) is not None else quote,
            token[1:-1],
        )
        return html.unescape(inner)
    if token.upper() == "NULL":
        return None
    return token


def tokenize(text):
    """
    Yield Tokens for the VALUES part of an INSERT.

    Quote state is tracked across the whole stream, so a ',' or ')' inside a
    string is part of the string. Bare literals may carry balanced
    parentheses (NOW(), CONCAT(...)). An unterminated string yields a single
    ERROR token holding the rest of the text and ends the stream.
    """
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
        elif ch == "(":
            yield Token(OPEN, ch)
            i += 1
        elif ch == ")":
            yield Token(CLOSE, ch)
            i += 1
        elif ch == ",":
            yield Token(COMMA, ch)
            i += 1
        elif ch in ("'", '"'):
            end = _string_end(text, i)
            if end < 0:
                yield Token(ERROR, text[i:])
                return
            yield Token(STRING, text[i:end + 1])
            i = end + 1
        else:
            j, depth = i, 0
            while j < n:
                c = text[j]
                if c == "(":
                    depth += 1
                elif c == ")":
                    if depth == 0:
                        break
                    depth -= 1
                elif c == "," and depth == 0:
                    break
                elif c in ("'", '"'):
                    break
                j += 1
            yield Token(LITERAL, text[i:j].strip())
            i = j


def split_tuples(tokens):
    """
    Group a token stream into the token lists of each top-level (...) tuple.

    Stops at the first top-level token that is neither a tuple nor a
    separator, which is where trailing clauses like ON DUPLICATE KEY UPDATE
    begin. A tuple left open at the end of the stream is yielded with an
    ERROR token appended so the caller can drop it.
    """
    group, depth = None, 0
    for tok in tokens:
        if group is None:
            if tok.kind == OPEN:
                group, depth = [], 0
            elif tok.kind != COMMA:
                if tok.kind == ERROR:
                    yield [tok]
                return
            continue
        if tok.kind == OPEN:
            depth += 1
            group.append(tok)
        elif tok.kind == CLOSE and depth:
            depth -= 1
            group.append(tok)
        elif tok.kind == CLOSE:
            yield group
            group = None
        else:
            group.append(tok)
    if group is not None:
        yield group + [Token(ERROR, "")]


def tuple_values(group):
    """Decode the fields of one tuple's tokens. Raises MalformedTuple."""
    if not group:
        return []
    fields, current = [], []
    for tok in group + [Token(COMMA, ",")]:
        if tok.kind == COMMA:
            if len(current) != 1:
                raise MalformedTuple("empty field" if not current else "field with several values")
            fields.append(current[0])
            current = []
        elif tok.kind in (STRING, LITERAL):
            current.append(tok.text)
        elif tok.kind == ERROR:
            raise MalformedTuple("unterminated string")
        else:
            raise MalformedTuple(f"unexpected {tok.text!r} inside tuple")
    try:
        return [decode_value(f) for f in fields]
    except MalformedValue as e:
        raise MalformedTuple(str(e)) from e


def split_statements(text):
    """
    Yield the top-level statements of a dump, comments removed.

    ';' only ends a statement outside quotes and backticks. Comment markers
    inside strings are left alone. A string left open at the end of the text
    runs to the end of the last statement, where tokenize() reports it.
    """
    pieces, i, n = [], 0, len(text)
    start = 0
    while i < n:
        m = _STATEMENT_STOP.search(text, i)
        if not m:
            break
        i, mark = m.start(), m.group(0)
        if mark in ("'", '"', "`"):
            end = _string_end(text, i)
            if end < 0:
                i = n
                break
            i = end + 1
        elif mark == ";":
            pieces.append(text[start:i])
            stmt = "".join(pieces).strip()
            if stmt:
                yield stmt
            pieces, i = [], i + 1
            start = i
        elif mark == "/*":
            pieces.append(text[start:i] + " ")
            close = text.find("*/", i + 2)
            i = n if close < 0 else close + 2
            start = i
        else:
            # '--' only opens a comment when followed by whitespace
            if mark == "--" and i + 2 < n and not text[i + 2].isspace():
                i += 2
                continue
            pieces.append(text[start:i] + " ")
            eol = text.find("\n", i)
            i = n if eol < 0 else eol + 1
            start = i
    pieces.append(text[start:])
    stmt = "".join(pieces).strip()
    if stmt:
        yield stmt


def _columns(text):
    return [c.strip().strip('`"') for c in text.split(",") if c.strip()]


def parse_dump(text, report=None):
    """
    Parse every INSERT in a dump into {table: [row dict, ...]}.

    Rows are dicts of column -> decoded value, in source order. Several
    INSERTs into one table accumulate into the same list. Bad tuples are
    dropped with a warning on the report; they never abort the parse.
    """
    report = report or Report()
    tables: dict[str, list[dict]] = {}
    created: dict[str, list[str]] = {}  # table -> column order from CREATE TABLE

    for stmt in split_statements(text):
        head = stmt[:32].lstrip().upper()

        if head.startswith("CREATE"):
            m = _CREATE.match(stmt)
            if m:
                created[m.group(1)] = _CREATE_COLUMN.findall(m.group(2))
            continue
        if not head.startswith("INSERT"):
            continue

        m = _INSERT.match(stmt)
        if not m:
            report.warn("Skipping unrecognised INSERT: %s", stmt[:80])
            continue

        table = m.group(1)
        columns = _columns(m.group(2)) if m.group(2) is not None else created.get(table)
        if not columns:
            report.warn("Skipping INSERT into %s: no column list and no CREATE TABLE seen", table)
            continue

        rows = tables.setdefault(table, [])
        for n, group in enumerate(split_tuples(tokenize(stmt[m.end():])), 1):
            try:
                values = tuple_values(group)
            except MalformedTuple as e:
                report.warn("Dropping row %d of INSERT into %s: %s", n, table, e)
                continue
            if len(values) != len(columns):
                report.warn("Dropping row %d of INSERT into %s: %d values for %d columns",
                            n, table, len(values), len(columns))
                continue
            rows.append(dict(zip(columns, values)))

    log.info("Parsed %d tables, %d rows", len(tables), sum(len(r) for r in tables.values()))
    return tables
