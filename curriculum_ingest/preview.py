"""
Preview assembly (canonical records -> PreviewBatch).

build_preview() is the whole engine in one call:

    text -> parse_text -> canonicalize_all -> assemble -> PreviewBatch

Everything here is pure: no I/O, no state kept between calls.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Optional, Sequence, Union

from curriculum_ingest.mapping import canonicalize_all
from curriculum_ingest.model import (
    CanonicalRecord,
    ImportContext,
    ImportType,
    InputFormat,
    PreviewBatch,
    SkippedRow,
    SubjectRecord,
)
from curriculum_ingest.parse import parse_text


def assemble(
    records: Sequence[CanonicalRecord],
    import_type: Union[ImportType, str],
    skipped: Iterable[SkippedRow] = (),
) -> PreviewBatch:
    """
    Wrap canonical records into a PreviewBatch. No de-duplication.
    """
    return PreviewBatch(
        import_type=ImportType.parse(import_type),
        records=tuple(records),
        skipped=tuple(skipped),
    )


def build_preview(
    text: str,
    import_type: Union[ImportType, str],
    fmt: Union[InputFormat, str] = InputFormat.AUTO,
    context: Optional[ImportContext] = None,
    strict: bool = False,
    diagnostics: Optional[List[str]] = None,
) -> PreviewBatch:
    """
    Parse, map and assemble pasted text in one go.

    Raises a ParseError subclass when the text cannot be parsed.
    """
    raws = parse_text(text, InputFormat(fmt), strict=strict, diagnostics=diagnostics)
    records, skipped = canonicalize_all(raws, import_type, context, strict=strict)
    return assemble(records, import_type, skipped)


def duplicate_codes(batch: PreviewBatch) -> List[str]:
    """
    Subject codes that appear more than once in the batch (sorted).

    The batch itself is not changed; duplicates are the server's call.
    """
    counts = Counter(r.code for r in batch.records if isinstance(r, SubjectRecord))
    return sorted(code for code, n in counts.items() if n > 1)
