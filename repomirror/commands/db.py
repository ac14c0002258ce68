"""
Database commands for repomirror.

Inspect and update the equivalence database:

    repomirror db show
    repomirror db find internal 1002 --target public
    repomirror db note-equivalence internal 1002 public 2
    repomirror db note-migration internal 1003 public 3
"""

import click
import json
from typing import Optional

from ..config import load_config
from ..database import Db, open_db
from ..domain import RepositoryEquivalence, Revision, SubmittedMigration
from ..errors import RepoMirrorError
from ..exit_codes import NO_EQUIVALENCE_FOUND, exit_with_code, get_exit_code_for_exception

db_option = click.option(
    '--db', 'db_location', default=None,
    help='Database location: dummy, file:///path, or a path (default: from config)'
)


def _open(db_location: Optional[str]) -> Db:
    return open_db(db_location, load_config())


def _fail(e: Exception):
    exit_with_code(get_exit_code_for_exception(e), f"Error: {e}")


def _revision(repository_name: str, rev_id: str) -> Revision:
    try:
        return Revision(rev_id, repository_name)
    except ValueError as e:
        raise click.BadParameter(str(e))


@click.group('db')
def db_cmd():
    """Inspect and update the equivalence database."""
    pass


@db_cmd.command('show')
@db_option
@click.option('--json', 'output_json', is_flag=True,
              help='Output the database document as JSON (default: pretty tables)')
def show_db(db_location, output_json):
    """Show all recorded equivalences and migrations."""
    try:
        db = _open(db_location)
    except RepoMirrorError as e:
        _fail(e)

    if output_json:
        click.echo(db.storage.to_json(), nl=False)
        return

    from rich.console import Console
    from rich.table import Table
    from rich import box

    console = Console()
    storage = db.storage

    if not storage.equivalences and not storage.migrations:
        console.print(f"[yellow]Database {db.location or '(in memory)'} is empty.[/yellow]")
        return

    table = Table(
        title=f"Equivalences ({len(storage.equivalences)})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Repository", style="cyan")
    table.add_column("Revision")
    table.add_column("Repository", style="cyan")
    table.add_column("Revision")
    for e in storage.equivalences:
        table.add_row(e.rev1.repository_name, e.rev1.rev_id,
                      e.rev2.repository_name, e.rev2.rev_id)
    console.print(table)

    table = Table(
        title=f"Migrations ({len(storage.migrations)})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("From", style="cyan")
    table.add_column("Revision")
    table.add_column("To", style="cyan")
    table.add_column("Revision")
    for m in storage.migrations:
        table.add_row(m.from_rev.repository_name, m.from_rev.rev_id,
                      m.to_rev.repository_name, m.to_rev.rev_id)
    console.print(table)


@db_cmd.command('find')
@click.argument('repository')
@click.argument('rev_id')
@click.option('--target', '-t', required=True, help='Repository to find equivalents in')
@db_option
def find_cmd(repository, rev_id, target, db_location):
    """Find revisions in TARGET recorded as equivalent to REPOSITORY{REV_ID}.

    Prints one JSON revision per line. Exits with status 64 if none is recorded.
    """
    revision = _revision(repository, rev_id)
    try:
        db = _open(db_location)
    except RepoMirrorError as e:
        _fail(e)

    found = sorted(db.find_equivalences(revision, target), key=lambda r: r.rev_id)
    if not found:
        exit_with_code(NO_EQUIVALENCE_FOUND, f"No equivalence for {revision} in {target}")
    for other in found:
        click.echo(json.dumps(other.to_dict()))


@db_cmd.command('note-equivalence')
@click.argument('repository1')
@click.argument('rev_id1')
@click.argument('repository2')
@click.argument('rev_id2')
@db_option
@click.option('--dry-run', is_flag=True, help='Note the equivalence without writing the database')
def note_equivalence_cmd(repository1, rev_id1, repository2, rev_id2, db_location, dry_run):
    """Record that REPOSITORY1{REV_ID1} and REPOSITORY2{REV_ID2} are equivalent."""
    try:
        equivalence = RepositoryEquivalence(
            _revision(repository1, rev_id1), _revision(repository2, rev_id2)
        )
    except ValueError as e:
        raise click.BadParameter(str(e))

    try:
        db = _open(db_location)
        known = equivalence in db.get_equivalences()
        db.note_equivalence(equivalence)
        if not dry_run:
            db.write()
    except RepoMirrorError as e:
        _fail(e)

    if known:
        click.echo(f"Equivalence already recorded: {equivalence}")
    else:
        click.echo(f"Noted equivalence: {equivalence}")


@db_cmd.command('note-migration')
@click.argument('from_repository')
@click.argument('from_rev_id')
@click.argument('to_repository')
@click.argument('to_rev_id')
@db_option
@click.option('--dry-run', is_flag=True, help='Note the migration without writing the database')
def note_migration_cmd(from_repository, from_rev_id, to_repository, to_rev_id, db_location, dry_run):
    """Record a migration from FROM_REPOSITORY{FROM_REV_ID} to TO_REPOSITORY{TO_REV_ID}."""
    migration = SubmittedMigration(
        _revision(from_repository, from_rev_id), _revision(to_repository, to_rev_id)
    )

    try:
        db = _open(db_location)
        added = db.note_migration(migration)
        if added and not dry_run:
            db.write()
    except RepoMirrorError as e:
        _fail(e)

    if added:
        click.echo(f"Noted migration: {migration}")
    else:
        click.echo(f"Migration already recorded: {migration}")
