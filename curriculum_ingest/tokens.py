"""
Quote-aware splitting of pasted text.

One small state machine serves three callers:
- tokenize / scan_tokens: the value list of a VALUES(...) clause or a CSV line
- split_top_level: whole SQL text into statements (raw, quotes kept)
- split_tuples: the "(...), (...)" tail of a multi-row INSERT

Rules shared by all of them:
- ' and " both start a quoted run, the run is closed by the same character
- inside a run, a doubled quote ('') is a literal quote and does not close
  the run; any other occurrence of the active quote closes it
- separators inside a run are plain text

Known limitation: parentheses inside a single value are not understood.
"""

from __future__ import annotations

from typing import Iterator, List, NamedTuple, Optional, Tuple

QUOTE_CHARS = ("'", '"')


class Token(NamedTuple):
    text: str
    quoted: bool


def _escaped_quote(text: str, i: int, quote: str) -> bool:
    """
    True when text[i] starts a doubled (escaped) quote inside a run.
    """
    return text[i] == quote and i + 1 < len(text) and text[i + 1] == quote


def _scan_decoded(text: str, separator: str) -> Iterator[Tuple[str, bool]]:
    buf: List[str] = []
    quoted = False
    quote: Optional[str] = None
    i = 0

    while i < len(text):
        ch = text[i]

        if quote is not None:
            if _escaped_quote(text, i, quote):
                buf.append(quote)
                i += 2
                continue
            if ch == quote:
                quote = None
            else:
                buf.append(ch)
        elif ch == separator:
            yield "".join(buf), quoted
            buf = []
            quoted = False
        elif not buf and not quoted and ch in QUOTE_CHARS:
            # a quote only opens a run at the start of a token, so O'Brien stays literal
            quote = ch
            quoted = True
        elif ch.isspace() and (quoted or not buf):
            pass
        else:
            buf.append(ch)
        i += 1

    if buf or quoted:
        yield "".join(buf), quoted


def scan_tokens(value_list: str, separator: str = ",") -> List[Token]:
    """
    Split on top-level separators and decode quoted runs.

    Whitespace outside quotes is trimmed, whitespace inside quotes is kept.
    An unterminated quote does not raise: the rest of the input becomes one
    (malformed) token.
    """
    tokens: List[Token] = []
    for raw, quoted in _scan_decoded(value_list, separator):
        tokens.append(Token(raw if quoted else raw.rstrip(), quoted))
    return tokens


def tokenize(value_list: str) -> List[str]:
    """
    tokenize("'Hello, World', 3") -> ["Hello, World", "3"]
    """
    return [t.text for t in scan_tokens(value_list)]


def split_top_level(text: str, separator: str) -> List[str]:
    """
    Split text on separators outside quoted runs, keeping quotes and escapes.

    Whitespace runs outside quotes collapse to a single space; quoted content
    is kept as written. Blank pieces are dropped.
    """
    pieces: List[str] = []
    buf: List[str] = []
    quote: Optional[str] = None
    i = 0

    while i < len(text):
        ch = text[i]

        if quote is not None:
            if _escaped_quote(text, i, quote):
                buf.append(text[i : i + 2])
                i += 2
                continue
            if ch == quote:
                quote = None
            buf.append(ch)
        elif ch == separator:
            pieces.append("".join(buf).strip())
            buf = []
        elif ch in QUOTE_CHARS:
            quote = ch
            buf.append(ch)
        elif ch.isspace():
            if buf and buf[-1] != " ":
                buf.append(" ")
        else:
            buf.append(ch)
        i += 1

    pieces.append("".join(buf).strip())
    return [p for p in pieces if p]


def split_tuples(text: str) -> List[str]:
    """
    Return the inner text of each top-level "( ... )" group.

    "(1,'a'), (2,'b')" -> ["1,'a'", "2,'b'"]
    An unclosed group at the end is ignored.
    """
    groups: List[str] = []
    buf: List[str] = []
    quote: Optional[str] = None
    depth = 0
    i = 0

    while i < len(text):
        ch = text[i]

        if quote is not None:
            if _escaped_quote(text, i, quote):
                buf.append(text[i : i + 2])
                i += 2
                continue
            if ch == quote:
                quote = None
            buf.append(ch)
        elif ch in QUOTE_CHARS:
            quote = ch
            if depth:
                buf.append(ch)
        elif ch == "(":
            if depth:
                buf.append(ch)
            depth += 1
        elif ch == ")" and depth:
            depth -= 1
            if depth:
                buf.append(ch)
            else:
                groups.append("".join(buf).strip())
                buf = []
        elif depth:
            buf.append(ch)
        i += 1

    return groups
