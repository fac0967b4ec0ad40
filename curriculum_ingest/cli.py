"""
CLI (Command Line Interface).

Quick terminal commands for operators and for testing, e.g.:

    curriculum-ingest preview subjects.sql --type subjects
    curriculum-ingest preview rows.csv --type semesters --regulation-id 1 --department-id 2
    curriculum-ingest import data.json --type subjects --yes

Use "-" as the file name to read from stdin.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from curriculum_ingest.config import Settings
from curriculum_ingest.errors import IngestError, MissingIds
from curriculum_ingest.model import ImportContext, ImportType, InputFormat, PreviewBatch
from curriculum_ingest.preview import duplicate_codes
from curriculum_ingest.session import ImportSession
from curriculum_ingest.submit import ImportClient

console = Console()


def _read_input(source: str) -> str:
    """
    Read pasted text from a file, or from stdin for "-".
    """
    if source == "-":
        return sys.stdin.read().lstrip("\ufeff")
    return Path(source).read_text(encoding="utf-8-sig")


def _context_from_args(args: argparse.Namespace) -> ImportContext:
    return ImportContext(
        regulation_id=args.regulation_id,
        department_id=args.department_id,
        semester_number=args.semester,
    )


def _render_batch(batch: PreviewBatch) -> None:
    """
    Print the batch as a table plus skipped rows and duplicate warnings.
    """
    payload = batch.to_payload()
    columns = list(payload[0].keys()) if payload else []

    table = Table(title=f"{batch.import_type.value} preview ({batch.row_count} rows)", box=box.SIMPLE)
    table.add_column("#", justify="right")
    for col in columns:
        table.add_column(col)
    for i, row in enumerate(payload, start=1):
        table.add_row(str(i), *["" if row[c] is None else str(row[c]) for c in columns])
    console.print(table)

    for skip in batch.skipped:
        console.print(f"[yellow]Skipped row {skip.index + 1}[/yellow]: {skip.reason}")

    dupes = duplicate_codes(batch)
    if dupes:
        console.print(f"[yellow]Duplicate codes[/yellow]: {', '.join(dupes)}")


def _parse_into_session(args: argparse.Namespace) -> Optional[ImportSession]:
    try:
        text = _read_input(args.source)
    except (OSError, UnicodeDecodeError) as exc:
        console.print(f"[red]Cannot read {args.source}[/red]: {exc}")
        return None

    session = ImportSession(args.type)
    session.parse(text, fmt=args.format, context=_context_from_args(args), strict=args.strict)

    for stmt in session.diagnostics:
        console.print(f"[yellow]Ignored statement[/yellow]: {stmt[:80]}")

    if session.error is not None:
        console.print(f"[red]Failed to parse[/red]: {session.error.describe()}")
        return None
    return session


def _cmd_preview(args: argparse.Namespace) -> int:
    session = _parse_into_session(args)
    if session is None or session.batch is None:
        return 1

    if args.json:
        print(json.dumps(session.batch.to_payload(), ensure_ascii=False, indent=2))
    else:
        _render_batch(session.batch)
    return 0


def _cmd_import(args: argparse.Namespace) -> int:
    session = _parse_into_session(args)
    if session is None or session.batch is None:
        return 1

    batch = session.batch
    _render_batch(batch)
    if batch.is_empty:
        console.print("Nothing to import. Check the preview.")
        return 1

    missing = batch.rows_missing_ids()
    if missing:
        console.print(f"[red]Import blocked[/red]: {MissingIds(missing).describe()}")
        return 1

    if not args.yes:
        answer = console.input(f"Import {batch.row_count} {batch.import_type.value}? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            console.print("Cancelled.")
            return 0

    settings = Settings.from_env().with_overrides(api_base_url=args.api_url, api_token=args.token)
    try:
        count = session.confirm(ImportClient(settings))
    except IngestError as exc:
        console.print(f"[red]Import failed[/red]: {exc.describe()}")
        return 1

    console.print(f"[green]Imported {count} {batch.import_type.value}[/green]")
    return 0


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("source", type=str, help="Input file (SQL, CSV or JSON), or - for stdin")
    p.add_argument(
        "--type",
        "-t",
        type=ImportType.parse,
        default=ImportType.SUBJECTS,
        help="Target schema: subjects or semesters",
    )
    p.add_argument(
        "--format",
        "-f",
        type=str.lower,
        choices=[f.value for f in InputFormat],
        default=InputFormat.AUTO.value,
        help="Input format (default: auto-detect)",
    )
    p.add_argument("--regulation-id", type=int, default=None, help="Regulation used when a row has none")
    p.add_argument("--department-id", type=int, default=None, help="Department used when a row has none")
    p.add_argument("--semester", type=int, default=None, help="Semester number used when a row has none")
    p.add_argument("--strict", action="store_true", help="Fail on missing required columns / ragged CSV")


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="curriculum-ingest", description="Bulk import for subjects and semesters")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_preview = sub.add_parser("preview", help="Parse input and show the canonical rows")
    _add_common_args(p_preview)
    p_preview.add_argument("--json", action="store_true", help="Print the REST payload as JSON")

    p_import = sub.add_parser("import", help="Parse input and submit it to the bulk-import API")
    _add_common_args(p_import)
    p_import.add_argument("--api-url", type=str, default=None, help="API base URL (env: CURRICULUM_API_URL)")
    p_import.add_argument("--token", type=str, default=None, help="Bearer token (env: CURRICULUM_API_TOKEN)")
    p_import.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    return parser


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )

    if args.command == "preview":
        raise SystemExit(_cmd_preview(args))
    if args.command == "import":
        raise SystemExit(_cmd_import(args))

    raise SystemExit(2)
