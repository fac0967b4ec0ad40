"""
Bulk ingestion of pasted SQL / CSV / JSON into canonical subject and semester records.
"""

from curriculum_ingest.errors import (
    AmbiguousMapping,
    EmptyBatch,
    IngestError,
    InvalidJson,
    MalformedCsv,
    NoStatementsFound,
    ParseError,
    SubmissionError,
)
from curriculum_ingest.model import (
    ImportContext,
    ImportType,
    InputFormat,
    PreviewBatch,
    RawRecord,
    SemesterRecord,
    SkippedRow,
    SubjectRecord,
    SubjectType,
)
from curriculum_ingest.preview import assemble, build_preview
