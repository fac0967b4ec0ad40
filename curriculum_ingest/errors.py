"""
Error types raised by the ingestion engine.

Parse-stage errors all derive from ParseError and carry a short ``code`` tag
plus enough context (row index, offending text) to build a message for the
operator. Submission errors are kept separate because they come from the
server, not from the pasted text.
"""

from __future__ import annotations

from typing import Any, List, Optional


class IngestError(Exception):
    """Base class for everything this package raises on purpose."""

    def describe(self) -> str:
        return str(self)


# ---------------------------------------------------------------------------
# Parse stage
# ---------------------------------------------------------------------------


class ParseError(IngestError):
    code = "parse_error"

    def __init__(self, message: str, row: Optional[int] = None, text: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.row = row
        self.text = text

    def describe(self) -> str:
        """
        Human readable one-liner, e.g. for a toast or the CLI.
        """
        parts = [self.message]
        if self.row is not None:
            parts.append(f"(row {self.row + 1})")
        if self.text:
            snippet = self.text if len(self.text) <= 60 else self.text[:57] + "..."
            parts.append(f": {snippet}")
        return " ".join(parts)


class InvalidJson(ParseError):
    code = "invalid_json"


class NoStatementsFound(ParseError):
    code = "no_statements_found"


class MalformedCsv(ParseError):
    code = "malformed_csv"


class AmbiguousMapping(ParseError):
    code = "ambiguous_mapping"

    def __init__(self, field: str, row: Optional[int] = None, text: Optional[str] = None) -> None:
        super().__init__(f"No column matched required field '{field}'", row=row, text=text)
        self.field = field


# ---------------------------------------------------------------------------
# Submission stage
# ---------------------------------------------------------------------------


class EmptyBatch(IngestError):
    """Raised when someone tries to submit a batch without records."""


class MissingIds(IngestError):
    """
    Some records have no regulation or department id; the API needs both.

    ``rows`` are 1-based positions in the preview batch.
    """

    def __init__(self, rows: List[int]) -> None:
        shown = ", ".join(str(r) for r in rows[:10])
        if len(rows) > 10:
            shown += f", ... ({len(rows)} rows)"
        super().__init__(
            f"Select a regulation and department before importing (rows without ids: {shown})"
        )
        self.rows = rows


class SubmissionError(IngestError):
    """
    The bulk-import endpoint could not be reached or answered with an error.

    ``payload`` is the server's error body as received (decoded JSON when
    possible, otherwise the raw text).
    """

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def describe(self) -> str:
        if self.payload:
            return str(self.payload)
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message
