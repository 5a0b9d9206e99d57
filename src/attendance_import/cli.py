"""Command-line interface for attendance_import using Click.

Commands:
  init-db  -> Create the SQLite tables
  headers  -> List the required import headers
  stage    -> Stage a CSV and print its import id and headers
  run      -> Import sessions from a CSV file or a staged import id
  seed     -> Create courses, activities and groups from a JSON file
  serve    -> Run the JSON web API

Usage examples:
  python -m attendance_import.cli init-db
  python -m attendance_import.cli run --input sessions.csv --report report.xlsx
  python -m attendance_import.cli run --import-id 3f2a... --mapping '{"header0": 2}'
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Optional

import click

from .config import get_log_level
from .export import write_report
from .importer import SessionImporter
from .normalization import MODE_GROUPED, MODE_TYPED, ImportSchema
from .notify import NotifyQueue
from .progress import LoggingProgress
from .staging import StagedImport, StagingError
from .store import SessionStore

logger = logging.getLogger(__name__)


def _load_mapping(mapping: Optional[str]) -> Optional[dict]:
    if not mapping:
        return None
    try:
        data = json.loads(mapping)
    except ValueError:
        raise click.BadParameter("mapping must be a JSON object")
    if not isinstance(data, dict):
        raise click.BadParameter("mapping must be a JSON object")
    return data


def _store(db_path: Optional[str]) -> SessionStore:
    store = SessionStore(db_path)
    store.init_db()
    return store


# --------------------- CLI group ---------------------


@click.group()
@click.option("--verbose", is_flag=True, help="Enable verbose logging (DEBUG).")
@click.version_option("0.1.0")
def cli(verbose: bool):
    """attendance_import CLI."""
    level = logging.DEBUG if verbose else getattr(logging, get_log_level(), logging.INFO)
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")
    logging.debug("Verbose logging enabled." if verbose else "Logging level INFO.")


@cli.command("init-db")
@click.option("--db", "db_path", default=None, type=click.Path(dir_okay=False), help="SQLite database path.")
def cmd_init_db(db_path: Optional[str]):
    """Create the database tables."""
    store = _store(db_path)
    click.echo(f"Database ready: {store.db_path}")


@cli.command("headers")
@click.option(
    "--mode",
    type=click.Choice([MODE_GROUPED, MODE_TYPED]),
    default=None,
    help="Schema variant (defaults to ATTENDANCE_IMPORT_MODE).",
)
def cmd_headers(mode: Optional[str]):
    """List the required headers in column order."""
    schema = ImportSchema.for_mode(mode) if mode else None
    for idx, label in enumerate(SessionImporter.list_required_headers(schema)):
        click.echo(f"header{idx}: {label}")


@cli.command("stage")
@click.option("--input", "input_csv", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--encoding", default="utf-8", show_default=True)
@click.option("--delimiter", default="comma", show_default=True, help="comma, semicolon, tab, colon or a single character.")
def cmd_stage(input_csv: str, encoding: str, delimiter: str):
    """Stage a CSV for a later mapped import."""
    with open(input_csv, "rb") as f:
        content = f.read()
    try:
        staged = StagedImport.create(content, encoding, delimiter)
    except StagingError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    staged.init()
    click.echo(f"Import id: {staged.import_id}")
    for idx, header in enumerate(staged.columns):
        click.echo(f"  {idx}: {header}")


@cli.command("run")
@click.option("--input", "input_csv", default=None, type=click.Path(exists=True, dir_okay=False), help="CSV file to import.")
@click.option("--import-id", default=None, help="Previously staged import id.")
@click.option("--encoding", default="utf-8", show_default=True)
@click.option("--delimiter", default="comma", show_default=True)
@click.option("--mapping", default=None, help='JSON object of header slots, e.g. {"header0": 2}.')
@click.option("--mode", type=click.Choice([MODE_GROUPED, MODE_TYPED]), default=None)
@click.option("--strict/--lenient", default=None, help="Fail the whole import on a malformed row.")
@click.option("--report", default=None, type=click.Path(dir_okay=False), help="Write diagnostics to .csv or .xlsx.")
@click.option("--db", "db_path", default=None, type=click.Path(dir_okay=False))
def cmd_run(
    input_csv: Optional[str],
    import_id: Optional[str],
    encoding: str,
    delimiter: str,
    mapping: Optional[str],
    mode: Optional[str],
    strict: Optional[bool],
    report: Optional[str],
    db_path: Optional[str],
):
    """Import sessions into the store."""
    if not input_csv and not import_id:
        raise click.UsageError("Provide --input or --import-id")
    content = None
    if input_csv:
        with open(input_csv, "rb") as f:
            content = f.read()
    notifier = NotifyQueue()
    try:
        importer = SessionImporter(
            _store(db_path),
            notifier,
            content=content,
            encoding=encoding,
            delimiter=delimiter,
            import_id=None if input_csv else import_id,
            mapping=_load_mapping(mapping),
            schema=ImportSchema.for_mode(mode) if mode else None,
            progress=LoggingProgress(),
            strict=strict,
        )
        if importer.get_error():
            click.echo(f"Error: {importer.get_error()} {importer.error_params or ''}".rstrip(), err=True)
            sys.exit(1)
        result = importer.import_sessions()
    except click.ClickException:
        raise
    except Exception as e:
        logger.exception("Import failed")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    for d in notifier.diagnostics:
        click.echo(f"[{d.level}] {d.key} {json.dumps(d.params, default=str)}")
    if report:
        write_report(notifier.diagnostics, report)
        click.echo(f"Report written: {report}")
    click.echo(f"Import complete: {result.accepted} created, {result.duplicates} duplicates")


@cli.command("seed")
@click.option("--input", "input_json", required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--db", "db_path", default=None, type=click.Path(dir_okay=False))
def cmd_seed(input_json: str, db_path: Optional[str]):
    """Create courses with their attendance activities and groups.

    Expects a list of {"shortname", "fullname", "activities": [{"name", "subnet"}], "groups": [..]}.
    """
    with open(input_json, "r", encoding="utf-8") as f:
        courses = json.load(f)
    store = _store(db_path)
    for c in courses:
        course_id = store.add_course(c["shortname"], c.get("fullname", ""))
        for a in c.get("activities", []):
            store.add_activity(course_id, a["name"], a.get("subnet", ""))
        for g in c.get("groups", []):
            store.add_group(course_id, g)
    click.echo(f"Seeded {len(courses)} courses.")


@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def cmd_serve(host: str, port: int):  # pragma: no cover
    """Run the JSON web API."""
    import uvicorn

    uvicorn.run("attendance_import.web.app:app", host=host, port=port)


# --------------------- entry ---------------------


def main():  # pragma: no cover
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
