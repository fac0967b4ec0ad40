"""
Parsing (pasted text -> raw rows).

Supported inputs:
- SQL INSERT statements (one or many, single- or multi-row VALUES)
- CSV with a header line
- JSON (array of objects, or a single object)

Every parser returns untyped rows; column names are reconciled later by
curriculum_ingest.mapping.

Rules:
- No type coercion for CSV/JSON (left to the mapper)
- SQL literals are coerced by their syntax only ('x' -> str, 3 -> int, NULL -> None)
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from curriculum_ingest.errors import InvalidJson, MalformedCsv, NoStatementsFound, ParseError
from curriculum_ingest.model import InputFormat, RawRecord
from curriculum_ingest.tokens import Token, scan_tokens, split_top_level, split_tuples, tokenize

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_INSERT_RE = re.compile(
    r"INSERT\s+INTO\s+([^\s(]+)\s*\(([^)]*)\)\s*VALUES\s*(\(.*\))",
    re.IGNORECASE | re.DOTALL,
)
_NUMBER_RE = re.compile(r"\d+(\.\d+)?")
_IDENT_JUNK = str.maketrans("", "", "`[]\"")


def _clean_identifier(name: str) -> str:
    return name.translate(_IDENT_JUNK).strip()


def _coerce_sql_value(token: Token) -> Any:
    """
    Turn one VALUES token into a Python value based on its literal form.
    """
    if token.quoted:
        # MySQL-style \" inside a single-quoted string
        return token.text.replace('\\"', '"')

    text = token.text
    if text.lower() == "null":
        return None
    if _NUMBER_RE.fullmatch(text):
        try:
            return float(text) if "." in text else int(text)
        except ValueError:
            # int() refuses absurdly long digit strings
            return text

    # bare words (TRUE, -1, CURRENT_DATE, ...) are kept verbatim
    return text


def split_statements(text: str) -> List[str]:
    """
    Split SQL text into statements on ';' outside quoted strings.
    """
    return split_top_level(text, ";")


def parse_inserts(text: str, diagnostics: Optional[List[str]] = None) -> List[RawRecord]:
    """
    Extract one RawRecord per VALUES tuple of every INSERT statement.

    Statements that are not a recognizable INSERT are skipped. If a list is
    passed as ``diagnostics``, the text of each skipped statement is appended
    to it so a caller can show what was ignored.
    """
    records: List[RawRecord] = []

    for stmt in split_statements(text):
        match = _INSERT_RE.search(stmt)
        tuples = split_tuples(match.group(3)) if match else []
        if not tuples:
            logger.debug("Skipping statement that is not an INSERT: %.80s", stmt)
            if diagnostics is not None:
                diagnostics.append(stmt)
            continue

        table = _clean_identifier(match.group(1)).lower()
        columns = [_clean_identifier(c) for c in match.group(2).split(",")]

        for inner in tuples:
            values = [_coerce_sql_value(t) for t in scan_tokens(inner)]
            if len(values) != len(columns):
                # shorter side wins, extra columns/values are dropped
                logger.debug(
                    "Column/value count mismatch in %s (%d columns, %d values)",
                    table,
                    len(columns),
                    len(values),
                )

            row: Dict[str, Any] = dict(zip(columns, values))
            records.append(RawRecord(values=row, table=table, index=len(records)))

    return records


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def parse_csv(text: str, strict: bool = False) -> List[Dict[str, str]]:
    """
    Parse CSV text with a header line into a list of header -> value dicts.

    Short rows are padded with "" and extra fields are dropped. With
    ``strict=True`` any field count that differs from the header raises
    MalformedCsv instead. Quoted fields cannot span lines.
    """
    lines = [line.strip() for line in re.split(r"\r?\n", text)]
    lines = [line for line in lines if line]
    if not lines:
        return []

    headers = tokenize(lines[0])
    rows: List[Dict[str, str]] = []

    for row_index, line in enumerate(lines[1:]):
        values = tokenize(line)
        # "a,b," has an empty last field
        if line.endswith(",") and len(values) < len(headers):
            values.append("")

        if len(values) != len(headers):
            if strict:
                raise MalformedCsv(
                    f"Expected {len(headers)} fields, got {len(values)}",
                    row=row_index,
                    text=line,
                )
            logger.debug("CSV row %d has %d fields for %d headers", row_index, len(values), len(headers))

        rows.append({h: (values[i] if i < len(values) else "") for i, h in enumerate(headers)})

    return rows


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def parse_json(text: str) -> List[Any]:
    """
    Parse JSON text into a list: arrays as-is, a single object wrapped.
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidJson(f"Invalid JSON: {exc.msg} at line {exc.lineno} column {exc.colno}") from exc

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        return [parsed]

    raise InvalidJson(f"Invalid JSON: expected an array or an object, got {type(parsed).__name__}")


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_INSERT_HINT_RE = re.compile(r"\bINSERT\s+INTO\b", re.IGNORECASE)


def detect_format(text: str) -> InputFormat:
    """
    Guess the input format: JSON if it starts like JSON, SQL if it contains
    INSERT INTO, CSV otherwise.
    """
    stripped = text.lstrip()
    if stripped.startswith(("[", "{")):
        return InputFormat.JSON
    if _INSERT_HINT_RE.search(text):
        return InputFormat.SQL
    return InputFormat.CSV


def parse_text(
    text: str,
    fmt: InputFormat = InputFormat.AUTO,
    strict: bool = False,
    diagnostics: Optional[List[str]] = None,
) -> List[RawRecord]:
    """
    Run the parser for ``fmt`` and return RawRecords.

    CSV and JSON rows come back untagged (table=None). JSON elements that are
    not objects are passed through as-is; the mapper reports them as skipped.
    """
    if not text or not text.strip():
        raise ParseError("Nothing to parse: paste SQL, CSV or JSON first")

    fmt = InputFormat(fmt)
    if fmt is InputFormat.AUTO:
        fmt = detect_format(text)
        logger.debug("Detected input format: %s", fmt.value)

    if fmt is InputFormat.SQL:
        records = parse_inserts(text, diagnostics=diagnostics)
        if not records:
            raise NoStatementsFound("No valid INSERT statements found")
        return records

    if fmt is InputFormat.CSV:
        rows: List[Any] = parse_csv(text, strict=strict)
    else:
        rows = parse_json(text)

    return [RawRecord(values=row, table=None, index=i) for i, row in enumerate(rows)]
