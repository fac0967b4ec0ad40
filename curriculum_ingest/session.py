"""
Caller-owned state for one bulk-import dialog.

The engine functions are pure; this class is what a screen (or the CLI)
holds on to between "Parse" and "Import":

    IDLE -> PARSING -> PREVIEW_READY -> IMPORTING -> IDLE
    PARSING -> FAILED (parse error, no batch)
    IMPORTING -> FAILED (batch kept for retry)

Parse errors are not raised out of parse(); they move the session to FAILED
and are available as ``session.error``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Union

from curriculum_ingest.errors import EmptyBatch, IngestError, MissingIds, ParseError
from curriculum_ingest.model import ImportContext, ImportType, InputFormat, PreviewBatch
from curriculum_ingest.preview import build_preview
from curriculum_ingest.submit import Submitter

logger = logging.getLogger(__name__)


class ImportState(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    PREVIEW_READY = "preview_ready"
    IMPORTING = "importing"
    FAILED = "failed"


class ImportSession:
    def __init__(self, import_type: Union[ImportType, str] = ImportType.SUBJECTS) -> None:
        self.import_type = ImportType.parse(import_type)
        self.state = ImportState.IDLE
        self.batch: Optional[PreviewBatch] = None
        self.error: Optional[IngestError] = None
        self.diagnostics: List[str] = []
        self.imported_count: Optional[int] = None

    def reset(self) -> None:
        """
        Drop everything (cancel / close dialog).
        """
        self.state = ImportState.IDLE
        self.batch = None
        self.error = None
        self.diagnostics = []
        self.imported_count = None

    def parse(
        self,
        text: str,
        fmt: Union[InputFormat, str] = InputFormat.AUTO,
        context: Optional[ImportContext] = None,
        strict: bool = False,
    ) -> Optional[PreviewBatch]:
        """
        Build a fresh preview from ``text``. Returns the batch, or None on a
        parse error (see ``self.error``).
        """
        self.reset()
        self.state = ImportState.PARSING

        diagnostics: List[str] = []
        try:
            batch = build_preview(
                text,
                self.import_type,
                fmt=fmt,
                context=context,
                strict=strict,
                diagnostics=diagnostics,
            )
        except ParseError as exc:
            logger.info("Parse failed: %s", exc.describe())
            self.state = ImportState.FAILED
            self.error = exc
            self.diagnostics = diagnostics
            return None

        self.batch = batch
        self.diagnostics = diagnostics
        self.state = ImportState.PREVIEW_READY
        return batch

    @property
    def can_import(self) -> bool:
        if self.batch is None or self.batch.is_empty or self.batch.rows_missing_ids():
            return False
        return self.state in (ImportState.PREVIEW_READY, ImportState.FAILED)

    def confirm(self, submitter: Submitter) -> int:
        """
        Submit the current batch. Raises EmptyBatch when there is nothing to
        import and MissingIds when rows lack a regulation or department.
        Any failure of the submitter (including cancellation) moves the
        session to FAILED, keeps the batch and is re-raised.
        """
        if self.batch is None or self.batch.is_empty:
            raise EmptyBatch("Nothing to import. Parse first and check the preview.")
        missing = self.batch.rows_missing_ids()
        if missing:
            raise MissingIds(missing)
        if not self.can_import:
            raise RuntimeError(f"Cannot import while {self.state.value}")

        batch = self.batch
        self.state = ImportState.IMPORTING
        self.error = None
        try:
            count = submitter.submit(batch)
        except BaseException as exc:
            self.state = ImportState.FAILED
            self.error = exc if isinstance(exc, IngestError) else None
            raise

        self.imported_count = count
        self.batch = None
        self.state = ImportState.IDLE
        return count
