"""
Central data model definitions used across the project.

This module defines the structure of raw rows, canonical records and the
preview batch so that:
- parsers, mapper, preview and submission share the same field names
- the REST payload shape lives in exactly one place (``to_payload``)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class ImportType(str, Enum):
    SUBJECTS = "subjects"
    SEMESTERS = "semesters"

    @classmethod
    def parse(cls, value: Union[str, "ImportType"]) -> "ImportType":
        """
        Accept the enum itself or a case-insensitive name ("subjects", "Semesters").
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown import type: {value!r}")

    @property
    def table_hint(self) -> str:
        # substring an SQL table name must contain to be mapped to this type
        return "subject" if self is ImportType.SUBJECTS else "sem"


class InputFormat(str, Enum):
    AUTO = "auto"
    SQL = "sql"
    CSV = "csv"
    JSON = "json"


class SubjectType(str, Enum):
    CORE = "CORE"
    LAB = "LAB"
    ELECTIVE = "ELECTIVE"


@dataclass
class RawRecord:
    """
    One untyped row as produced by a parser.

    ``table`` is the lowercased table name for SQL input and None for CSV/JSON.
    ``values`` keeps the source keys with their original casing.
    """

    values: Dict[str, Any]
    table: Optional[str] = None
    index: int = 0


@dataclass(frozen=True)
class ImportContext:
    """
    Ambient selection of the calling screen, used to fill missing ids.
    """

    regulation_id: Optional[int] = None
    department_id: Optional[int] = None
    semester_number: Optional[int] = None


@dataclass
class SubjectRecord:
    code: str
    name: str
    credits: int = 0
    type: SubjectType = SubjectType.CORE
    is_elective: bool = False
    regulation_id: Optional[int] = None
    department_id: Optional[int] = None
    semester: int = 1

    def to_payload(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "credits": self.credits,
            "type": self.type.value,
            "isElective": self.is_elective,
            "regulationId": self.regulation_id,
            "departmentId": self.department_id,
            "semester": self.semester,
        }


@dataclass
class SemesterRecord:
    regulation_id: Optional[int]
    department_id: Optional[int]
    number: int = 1
    mandatory_count: int = 0
    elective_count: int = 0
    description: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "regulationId": self.regulation_id,
            "departmentId": self.department_id,
            "number": self.number,
            "mandatoryCount": self.mandatory_count,
            "electiveCount": self.elective_count,
            "description": self.description,
        }


CanonicalRecord = Union[SubjectRecord, SemesterRecord]


@dataclass(frozen=True)
class SkippedRow:
    """
    A source row that did not make it into the batch, and why.
    """

    index: int
    reason: str
    table: Optional[str] = None


@dataclass(frozen=True)
class PreviewBatch:
    """
    The reviewable result of one parse run.

    Lives only as long as the calling flow keeps it; re-parsing produces a new
    independent batch.
    """

    import_type: ImportType
    records: Tuple[CanonicalRecord, ...] = ()
    skipped: Tuple[SkippedRow, ...] = field(default_factory=tuple)

    @property
    def row_count(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def rows_missing_ids(self) -> List[int]:
        """
        1-based positions of records without a regulation or department id.
        """
        return [
            i
            for i, r in enumerate(self.records, start=1)
            if r.regulation_id is None or r.department_id is None
        ]

    def to_payload(self) -> List[Dict[str, Any]]:
        return [r.to_payload() for r in self.records]
