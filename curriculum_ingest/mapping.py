"""
Field mapping (raw rows -> canonical Subject / Semester records).

Source rows name their columns in many ways (code / course_code / courseCode,
is_elective / isElective / elective, ...). Each canonical field has a
priority-ordered alias list; the first alias present in the row wins,
compared case-insensitively. Missing or unusable values fall back to
documented defaults or to the ambient ImportContext.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from curriculum_ingest.errors import AmbiguousMapping
from curriculum_ingest.model import (
    CanonicalRecord,
    ImportContext,
    ImportType,
    RawRecord,
    SemesterRecord,
    SkippedRow,
    SubjectRecord,
    SubjectType,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Alias tables
# ---------------------------------------------------------------------------

_REGULATION_ALIASES = ("regulation_id", "regulationId", "reg_id")
_DEPARTMENT_ALIASES = ("department_id", "departmentId", "dept_id")

SUBJECT_ALIASES: Dict[str, Tuple[str, ...]] = {
    "code": ("code", "course_code", "courseCode", "coursecode"),
    "name": ("name", "title", "course_title", "courseTitle"),
    "credits": ("credits", "credit"),
    "isElective": ("is_elective", "isElective", "elective"),
    "type": ("type", "subject_type"),
    "regulationId": _REGULATION_ALIASES,
    "departmentId": _DEPARTMENT_ALIASES,
    "semester": ("semester", "sem", "semester_no", "semesterNumber"),
}

SEMESTER_ALIASES: Dict[str, Tuple[str, ...]] = {
    "regulationId": _REGULATION_ALIASES,
    "departmentId": _DEPARTMENT_ALIASES,
    "number": ("number", "sem", "semester"),
    "mandatoryCount": ("mandatory_count", "mandatoryCount", "mandatory"),
    "electiveCount": ("elective_count", "electiveCount", "elective"),
    "description": ("description", "desc"),
}

ALIASES: Dict[ImportType, Dict[str, Tuple[str, ...]]] = {
    ImportType.SUBJECTS: SUBJECT_ALIASES,
    ImportType.SEMESTERS: SEMESTER_ALIASES,
}

# Fields that must come from the row itself in strict mode.
_REQUIRED: Dict[ImportType, Tuple[str, ...]] = {
    ImportType.SUBJECTS: ("code", "name"),
    ImportType.SEMESTERS: ("number",),
}


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def build_key_index(values: Mapping[str, Any]) -> Dict[str, str]:
    """
    Map casefolded key -> original key. The first spelling seen wins.
    """
    index: Dict[str, str] = {}
    for key in values:
        index.setdefault(str(key).casefold(), key)
    return index


def first_value(
    values: Mapping[str, Any],
    aliases: Sequence[str],
    index: Optional[Dict[str, str]] = None,
) -> Tuple[bool, Any]:
    """
    Return (found, value) for the first alias present in ``values``.

    A key that is present with a None value still counts as found.
    """
    if index is None:
        index = build_key_index(values)
    for alias in aliases:
        key = index.get(alias.casefold())
        if key is not None:
            return True, values[key]
    return False, None


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def to_number(value: Any, fallback: Any = None) -> Any:
    if value is None:
        return fallback
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else fallback
    if not isinstance(value, str):
        return fallback

    text = value.strip()
    if not text:
        return fallback
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return fallback
    return number if math.isfinite(number) else fallback


def to_int(value: Any, fallback: Any = None) -> Any:
    """
    Like to_number, but only whole numbers are accepted (3.0 -> 3, 3.5 -> fallback).
    """
    number = to_number(value, None)
    if number is None:
        return fallback
    if isinstance(number, float):
        return int(number) if number.is_integer() else fallback
    return number


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return False


def to_text(value: Any, fallback: Any = "") -> Any:
    if value is None:
        return fallback
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text if text else fallback


def to_subject_type(value: Any) -> SubjectType:
    label = to_text(value, "").upper()
    try:
        return SubjectType(label)
    except ValueError:
        if label:
            logger.debug("Unknown subject type %r, using CORE", value)
        return SubjectType.CORE


# ---------------------------------------------------------------------------
# Canonicalization
# ---------------------------------------------------------------------------


class _Row:
    """
    One record being mapped: values + index + alias table, looked up per field.
    """

    def __init__(self, values: Mapping[str, Any], import_type: ImportType) -> None:
        self.values = values
        self.aliases = ALIASES[import_type]
        self.index = build_key_index(values)

    def get(self, field: str) -> Tuple[bool, Any]:
        return first_value(self.values, self.aliases[field], self.index)

    def value(self, field: str) -> Any:
        return self.get(field)[1]


def _check_required(
    row: _Row,
    import_type: ImportType,
    context: ImportContext,
    row_index: Optional[int],
) -> None:
    required = list(_REQUIRED[import_type])
    if context.regulation_id is None:
        required.append("regulationId")
    if context.department_id is None:
        required.append("departmentId")

    for field in required:
        found, value = row.get(field)
        if not found or value is None or (isinstance(value, str) and not value.strip()):
            raise AmbiguousMapping(field, row=row_index)


def _subject(row: _Row, context: ImportContext) -> SubjectRecord:
    semester_default = context.semester_number if context.semester_number is not None else 1
    return SubjectRecord(
        code=to_text(row.value("code")),
        name=to_text(row.value("name")),
        credits=to_int(row.value("credits"), 0),
        type=to_subject_type(row.value("type")),
        is_elective=to_bool(row.value("isElective")),
        regulation_id=to_int(row.value("regulationId"), context.regulation_id),
        department_id=to_int(row.value("departmentId"), context.department_id),
        semester=to_int(row.value("semester"), semester_default),
    )


def _semester(row: _Row, context: ImportContext) -> SemesterRecord:
    number_default = context.semester_number if context.semester_number is not None else 1

    number = to_int(row.value("number"), number_default)
    if number < 1:
        number = number_default

    mandatory = to_int(row.value("mandatoryCount"), 0)
    elective = to_int(row.value("electiveCount"), 0)

    return SemesterRecord(
        regulation_id=to_int(row.value("regulationId"), context.regulation_id),
        department_id=to_int(row.value("departmentId"), context.department_id),
        number=number,
        mandatory_count=mandatory if mandatory >= 0 else 0,
        elective_count=elective if elective >= 0 else 0,
        description=to_text(row.value("description"), None),
    )


def canonicalize(
    raw: Union[RawRecord, Mapping[str, Any]],
    import_type: Union[ImportType, str],
    context: Optional[ImportContext] = None,
    strict: bool = False,
) -> CanonicalRecord:
    """
    Map one raw row onto the canonical schema of ``import_type``.

    Does not look at the SQL table tag (see canonicalize_all). With
    ``strict=True`` a missing required field raises AmbiguousMapping instead
    of being defaulted.
    """
    import_type = ImportType.parse(import_type)
    context = context or ImportContext()

    if isinstance(raw, RawRecord):
        values, row_index = raw.values, raw.index
    else:
        values, row_index = raw, None

    row = _Row(values, import_type)
    if strict:
        _check_required(row, import_type, context, row_index)

    if import_type is ImportType.SUBJECTS:
        return _subject(row, context)
    return _semester(row, context)


def matches_table(table: Optional[str], import_type: Union[ImportType, str]) -> bool:
    """
    SQL rows are only mapped when their table name fits the import type.
    Untagged rows (CSV/JSON) always match.
    """
    if table is None:
        return True
    return ImportType.parse(import_type).table_hint in table.lower()


def canonicalize_all(
    raws: Iterable[RawRecord],
    import_type: Union[ImportType, str],
    context: Optional[ImportContext] = None,
    strict: bool = False,
) -> Tuple[List[CanonicalRecord], List[SkippedRow]]:
    """
    Canonicalize every row; rows that cannot be mapped are returned as
    SkippedRow entries instead of being dropped silently.

    A row is skipped when:
    - its SQL table name does not fit the import type
    - it is not an object (JSON arrays of scalars)
    - it is a subject without code or name
    """
    import_type = ImportType.parse(import_type)
    records: List[CanonicalRecord] = []
    skipped: List[SkippedRow] = []

    for raw in raws:
        if not matches_table(raw.table, import_type):
            skipped.append(SkippedRow(raw.index, f"table '{raw.table}' is not {import_type.value}", raw.table))
            continue
        if not isinstance(raw.values, Mapping):
            skipped.append(SkippedRow(raw.index, "row is not an object", raw.table))
            continue

        record = canonicalize(raw, import_type, context, strict=strict)
        if isinstance(record, SubjectRecord) and not (record.code and record.name):
            skipped.append(SkippedRow(raw.index, "missing code or name", raw.table))
            continue

        records.append(record)

    if skipped:
        logger.info("Skipped %d of %d rows for %s", len(skipped), len(skipped) + len(records), import_type.value)

    return records, skipped
