#!/usr/bin/env python3

import click

from repomirror.config import load_config, configure_logging
from repomirror.commands.db import db_cmd
from repomirror.commands.history import last_equivalence_cmd
from repomirror.commands.config import config_cmd


@click.group()
@click.version_option(package_name='repomirror')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose):
    """repomirror - Track equivalent revisions across mirrored repositories.

    Records where two independently-versioned repositories are known to hold
    the same content, and finds what changed in one since then.
    """
    configure_logging(load_config(), verbose=verbose)


# Core commands (flat, top-level)
cli.add_command(last_equivalence_cmd, name='last-equivalence')

# Command groups
cli.add_command(db_cmd)
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
