"""Translation of SQLite-flavoured statements into PostgreSQL syntax.

Call sites were written against SQLite: positional ``?`` markers and the
``datetime('now')`` family of helpers. PostgreSQL wants numbered ``$N``
parameters and its own current-time expressions. Rewriting happens in a single
left-to-right scan that copies quoted literals, quoted identifiers, comments
and dollar-quoted bodies verbatim, so a ``?`` or a helper call inside a string
is never touched.

Translating already-translated text is a no-op: native ``$N`` tokens are kept
as they are, and the rewritten helpers no longer match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

from erp_dal.errors import TranslationError

LOCALTIME_LEGACY = "legacy"
LOCALTIME_LOCAL = "local"

# datetime('now','localtime') historically mapped to the same expression as
# datetime('now'); "local" opts into the server's local wall-clock time.
_LOCALTIME_EXPRESSIONS = {
    LOCALTIME_LEGACY: "NOW()",
    LOCALTIME_LOCAL: "LOCALTIMESTAMP",
}
LOCALTIME_MODES = frozenset(_LOCALTIME_EXPRESSIONS)

CURRENT_TIMESTAMP_SQL = "NOW()"
CURRENT_DATE_SQL = "CURRENT_DATE"

_HELPER_CALL_RE = re.compile(
    r"(?:(?P<datetime>datetime)\s*\(\s*'now'\s*(?P<localtime>,\s*'localtime'\s*)?\)"
    r"|(?P<date>date)\s*\(\s*'now'\s*\))",
    re.IGNORECASE,
)
_NATIVE_PARAM_RE = re.compile(r"\$(\d+)")
_DOLLAR_TAG_RE = re.compile(r"\$(?:[A-Za-z_][A-Za-z0-9_]*)?\$")

_CACHE_SIZE = 1024


@dataclass(frozen=True)
class TranslatedStatement:
    """A template together with its PostgreSQL rendering."""

    template: str
    sql: str
    placeholder_count: int
    helper_calls: int = 0


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$"


def _line_and_column(sql: str, index: int) -> str:
    line = sql.count("\n", 0, index) + 1
    column = index - (sql.rfind("\n", 0, index) + 1) + 1
    return f"line {line}, column {column}"


def _skip_single_quoted(sql: str, start: int) -> int:
    """Return the index just past the literal opening at ``start``."""
    backslash_escapes = (
        start > 0
        and sql[start - 1] in "eE"
        and (start < 2 or not _is_ident_char(sql[start - 2]))
    )
    i = start + 1
    while i < len(sql):
        ch = sql[i]
        if backslash_escapes and ch == "\\":
            i += 2
            continue
        if ch == "'":
            if i + 1 < len(sql) and sql[i + 1] == "'":
                i += 2
                continue
            return i + 1
        i += 1
    raise TranslationError(
        f"Unterminated string literal starting at {_line_and_column(sql, start)}.",
        template=sql,
    )


def _skip_double_quoted(sql: str, start: int) -> int:
    i = start + 1
    while i < len(sql):
        if sql[i] == '"':
            if i + 1 < len(sql) and sql[i + 1] == '"':
                i += 2
                continue
            return i + 1
        i += 1
    raise TranslationError(
        f"Unterminated quoted identifier starting at {_line_and_column(sql, start)}.",
        template=sql,
    )


def _skip_block_comment(sql: str, start: int) -> int:
    depth = 0
    i = start
    while i < len(sql):
        pair = sql[i : i + 2]
        if pair == "/*":
            depth += 1
            i += 2
            continue
        if pair == "*/":
            depth -= 1
            i += 2
            if depth == 0:
                return i
            continue
        i += 1
    raise TranslationError(
        f"Unterminated block comment starting at {_line_and_column(sql, start)}.",
        template=sql,
    )


def _skip_line_comment(sql: str, start: int) -> int:
    end = sql.find("\n", start)
    return len(sql) if end == -1 else end


def _skip_dollar_quoted(sql: str, start: int, tag: str) -> int:
    end = sql.find(tag, start + len(tag))
    if end == -1:
        raise TranslationError(
            f"Unterminated dollar-quoted string starting at {_line_and_column(sql, start)}.",
            template=sql,
        )
    return end + len(tag)


def _scan(template: str, localtime_sql: str, placeholders: bool) -> TranslatedStatement:
    out: list[str] = []
    qmark_count = 0
    native_indices: list[int] = []
    helper_calls = 0
    i = 0
    n = len(template)

    while i < n:
        ch = template[i]
        nxt = template[i + 1] if i + 1 < n else ""
        prev = template[i - 1] if i > 0 else ""

        if ch == "'":
            end = _skip_single_quoted(template, i)
            out.append(template[i:end])
            i = end
            continue

        if ch == '"':
            end = _skip_double_quoted(template, i)
            out.append(template[i:end])
            i = end
            continue

        if ch == "-" and nxt == "-":
            end = _skip_line_comment(template, i)
            out.append(template[i:end])
            i = end
            continue

        if ch == "/" and nxt == "*":
            end = _skip_block_comment(template, i)
            out.append(template[i:end])
            i = end
            continue

        if ch == "$" and not _is_ident_char(prev):
            param = _NATIVE_PARAM_RE.match(template, i)
            if param:
                index = int(param.group(1))
                if index == 0:
                    raise TranslationError(
                        "Invalid placeholder index $0; placeholders must start at $1.",
                        template=template,
                    )
                native_indices.append(index)
                out.append(param.group(0))
                i = param.end()
                continue
            tag = _DOLLAR_TAG_RE.match(template, i)
            if tag:
                end = _skip_dollar_quoted(template, i, tag.group(0))
                out.append(template[i:end])
                i = end
                continue

        if ch in "dD" and not _is_ident_char(prev):
            helper = _HELPER_CALL_RE.match(template, i)
            if helper:
                if helper.group("date"):
                    out.append(CURRENT_DATE_SQL)
                elif helper.group("localtime"):
                    out.append(localtime_sql)
                else:
                    out.append(CURRENT_TIMESTAMP_SQL)
                helper_calls += 1
                i = helper.end()
                continue

        if ch == "?" and placeholders:
            qmark_count += 1
            out.append(f"${qmark_count}")
            i += 1
            continue

        out.append(ch)
        i += 1

    if not placeholders:
        return TranslatedStatement(template, "".join(out), 0, helper_calls)

    if native_indices and qmark_count:
        raise TranslationError(
            "Statement mixes '?' markers with native $N parameters; use one style.",
            template=template,
        )

    placeholder_count = qmark_count
    if native_indices:
        placeholder_count = max(native_indices)
        missing = set(range(1, placeholder_count + 1)) - set(native_indices)
        if missing:
            raise TranslationError(
                f"Invalid placeholder sequence: expected $1..${placeholder_count} "
                f"without gaps, missing {sorted(missing)}.",
                template=template,
            )

    return TranslatedStatement(template, "".join(out), placeholder_count, helper_calls)


@lru_cache(maxsize=_CACHE_SIZE)
def _translate_cached(template: str, localtime_mode: str, placeholders: bool):
    return _scan(template, _LOCALTIME_EXPRESSIONS[localtime_mode], placeholders)


def translate_sqlite_to_postgres(
    template: str,
    *,
    localtime_mode: str = LOCALTIME_LEGACY,
    placeholders: bool = True,
) -> TranslatedStatement:
    """Translate a SQLite-flavoured statement into PostgreSQL syntax.

    Args:
        template: SQL text using ``?`` markers and SQLite time helpers.
        localtime_mode: ``"legacy"`` renders ``datetime('now','localtime')`` as
            ``NOW()``; ``"local"`` renders it as ``LOCALTIMESTAMP``.
        placeholders: When False only helper calls are rewritten and ``?`` is
            left alone (used for parameterless DDL scripts).

    Returns:
        TranslatedStatement with the rewritten SQL and its parameter arity.

    Raises:
        TranslationError: When the template cannot be scanned safely.
    """
    if not isinstance(template, str):
        raise TypeError(f"SQL template must be a string, got {type(template).__name__}.")
    if localtime_mode not in LOCALTIME_MODES:
        allowed = ", ".join(sorted(LOCALTIME_MODES))
        raise ValueError(f"Unknown localtime mode '{localtime_mode}'. Allowed: {allowed}")
    return _translate_cached(template, localtime_mode, bool(placeholders))


def clear_translation_cache() -> None:
    """Drop cached translations."""
    _translate_cached.cache_clear()
