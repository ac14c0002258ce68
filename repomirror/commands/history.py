"""
History commands for repomirror.

Walks a repository's git history back to its last recorded equivalence.
"""

import click
import json

from ..config import load_config
from ..database import open_db
from ..errors import ConfigurationError, RepoMirrorError
from ..exit_codes import NO_EQUIVALENCE_FOUND, USAGE_ERROR, exit_with_code, get_exit_code_for_exception
from ..infra import GitClient
from ..services import EquivalenceMatcher, GitRevisionHistory, SearchType, find_revisions


@click.command('last-equivalence')
@click.option('--from', 'from_repository', required=True,
              help='Repository whose history is walked')
@click.option('--to', 'to_repository', required=True,
              help='Repository the equivalences must point into')
@click.option('--path', '-p', type=click.Path(exists=True, file_okay=False),
              help='Local checkout of the --from repository (default: from config)')
@click.option('--revision', '-r', 'revisions', multiple=True,
              help='Revision(s) to start from (default: HEAD)')
@click.option('--linear', is_flag=True, help='Follow first parents only')
@click.option('--max-revisions', type=int, default=None,
              help='Give up after this many revisions (default: from config, 0 = unlimited)')
@click.option('--db', 'db_location', default=None,
              help='Database location: dummy, file:///path, or a path (default: from config)')
@click.option('--json', 'output_json', is_flag=True, help='Output the result as JSON')
def last_equivalence_cmd(from_repository, to_repository, path, revisions, linear,
                         max_revisions, db_location, output_json):
    """
    Find the revisions in --from since its last equivalence with --to.

    \b
    Examples:
        repomirror last-equivalence --from internal --to public -p ~/src/internal
        repomirror last-equivalence --from internal --to public -r 3f2a9c1 --json
    """
    config = load_config()

    path = path or config.get('repositories', {}).get(from_repository)
    if not path:
        exit_with_code(USAGE_ERROR, f"Error: no checkout path for repository {from_repository!r}; "
                                    f"pass --path or set repositories.{from_repository} in config")

    history_config = config.get('history', {})
    if max_revisions is None:
        max_revisions = history_config.get('max_revisions') or None

    try:
        search_type = SearchType.LINEAR if linear else _search_type(history_config)
        db = open_db(db_location, config)
        history = GitRevisionHistory(
            from_repository, path,
            GitClient(timeout=config.get('git', {}).get('timeout_seconds', 30))
        )
        if revisions:
            start = [history.find_highest_revision(r) for r in revisions]
        else:
            start = history.find_head_revisions()
        matcher = EquivalenceMatcher(to_repository, db)
        result = find_revisions(history, start, matcher,
                                search_type=search_type, max_revisions=max_revisions)
    except RepoMirrorError as e:
        exit_with_code(get_exit_code_for_exception(e), f"Error: {e}")

    if output_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _show_pretty(result)

    if not result.equivalences:
        exit_with_code(NO_EQUIVALENCE_FOUND)


def _search_type(history_config) -> SearchType:
    value = history_config.get('search_type', 'branched')
    try:
        return SearchType(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid history.search_type {value!r}: expected one of "
            + ', '.join(t.value for t in SearchType)
        )


def _show_pretty(result):
    from rich.console import Console
    from rich.table import Table
    from rich import box

    console = Console()
    graph = result.revisions_since_equivalence

    if len(graph):
        table = Table(
            title=f"Revisions since equivalence ({len(graph)})",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold magenta"
        )
        table.add_column("Revision", style="cyan")
        table.add_column("Author")
        table.add_column("Date", style="dim")
        table.add_column("Description")
        for revision in graph.breadth_first():
            metadata = graph[revision]
            date = metadata.date.strftime('%Y-%m-%d %H:%M') if metadata.date else ''
            summary = metadata.description.splitlines()[0] if metadata.description else ''
            table.add_row(revision.rev_id[:12], metadata.author, date, summary)
        console.print(table)
    else:
        console.print("[green]No revisions since the last equivalence.[/green]")

    if result.equivalences:
        for equivalence in result.equivalences:
            console.print(f"Equivalence: [cyan]{equivalence}[/cyan]")
    else:
        console.print("[yellow]No recorded equivalence found in this history.[/yellow]")
