"""The `gitlet` command line."""

import logging
import sys
from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import Any

import click

from .constants import SHORT_HASH_LENGTH
from .history import LogEntry
from .objects import GitletError
from .repository import MergeKind, Repository
from .stage import NothingToRemoveError


def reports_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Print library errors as user messages.

    `NothingToRemoveError` is informational and exits with status 0; every other
    error exits with status 1."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except NothingToRemoveError as e:
            click.echo(str(e))
            return None
        except (GitletError, ValueError) as e:
            click.echo(str(e))
            sys.exit(1)

    return wrapper


def format_log_entry(entry: LogEntry) -> str:
    commit = entry.commit
    date = commit.date()
    lines = ['===', f'commit {entry.commit_ref}']
    if commit.merge_parent is not None and commit.parent is not None:
        lines.append(f'Merge: {commit.merge_parent[:SHORT_HASH_LENGTH]} {commit.parent[:SHORT_HASH_LENGTH]}')
    lines.append(f'Date: {date:%a %b} {date.day} {date:%H:%M:%S %Y %z}')
    lines.append(commit.message)
    lines.append('')
    return '\n'.join(lines)


class CheckoutCommand(click.Command):
    """A command that remembers whether a `--` separator was given.

    click drops the separator while parsing, but checkout needs it to tell
    `checkout BRANCH` from `checkout -- FILE`."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        ctx.meta['file_separator'] = '--' in args
        return super().parse_args(ctx, args)


@click.group()
@click.option('--dir', 'working_dir', type=click.Path(file_okay=False, path_type=Path), default='.',
              help='Working directory of the repository (default: current directory).')
@click.option('-v', '--verbose', is_flag=True, help='Enable debug logging.')
@click.pass_context
def main(ctx: click.Context, working_dir: Path, verbose: bool) -> None:
    """A tiny version-control system."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    ctx.obj = Repository(working_dir)


@main.command()
@click.pass_obj
@reports_errors
def init(repo: Repository) -> None:
    """Create a repository in the working directory."""
    repo.init()


@main.command()
@click.argument('filename')
@click.pass_obj
@reports_errors
def add(repo: Repository, filename: str) -> None:
    """Stage a file for addition."""
    repo.add(filename)


@main.command()
@click.argument('message', default='')
@click.pass_obj
@reports_errors
def commit(repo: Repository, message: str) -> None:
    """Commit the staged changes."""
    repo.commit(message)


@main.command()
@click.argument('filename')
@click.pass_obj
@reports_errors
def rm(repo: Repository, filename: str) -> None:
    """Unstage a file, or stage a tracked file for removal."""
    repo.rm(filename)


@main.command()
@click.pass_obj
@reports_errors
def log(repo: Repository) -> None:
    """Show the history of the current branch."""
    for entry in repo.log():
        click.echo(format_log_entry(entry))


@main.command('global-log')
@click.pass_obj
@reports_errors
def global_log(repo: Repository) -> None:
    """Show every commit ever made."""
    for entry in repo.global_log():
        click.echo(format_log_entry(entry))


@main.command()
@click.argument('message')
@click.pass_obj
@reports_errors
def find(repo: Repository, message: str) -> None:
    """Print the ids of commits with the given message."""
    commit_refs = repo.find(message)
    if not commit_refs:
        click.echo('Found no commit with that message.')
        sys.exit(1)

    for commit_ref in commit_refs:
        click.echo(commit_ref)


@main.command()
@click.pass_obj
@reports_errors
def status(repo: Repository) -> None:
    """Show branches, staged files and working directory changes."""
    current = repo.status()

    click.echo('=== Branches ===')
    for branch in current.branches:
        click.echo(f'*{branch}' if branch == current.current_branch else branch)
    sections = [
        ('Staged Files', current.staged),
        ('Removed Files', current.removed),
        ('Modifications Not Staged For Commit', current.modified),
        ('Untracked Files', current.untracked),
    ]
    for title, names in sections:
        click.echo(f'\n=== {title} ===')
        for name in names:
            click.echo(name)
    click.echo()


@main.command(cls=CheckoutCommand)
@click.argument('args', nargs=-1, required=True)
@click.pass_context
@reports_errors
def checkout(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Check out a branch (BRANCH), a file from HEAD (-- FILE) or a file from a commit (COMMIT -- FILE)."""
    repo: Repository = ctx.obj
    separator = ctx.meta.get('file_separator', False)

    match args:
        case (branch,) if not separator:
            repo.checkout_branch(branch)
        case (filename,):
            repo.checkout_file(filename)
        case (commit_id, filename) if separator:
            repo.checkout_file(filename, commit_id)
        case _:
            click.echo('Incorrect operands.')
            sys.exit(1)


@main.command()
@click.argument('name')
@click.pass_obj
@reports_errors
def branch(repo: Repository, name: str) -> None:
    """Create a branch at HEAD."""
    repo.branch(name)


@main.command('rm-branch')
@click.argument('name')
@click.pass_obj
@reports_errors
def rm_branch(repo: Repository, name: str) -> None:
    """Delete a branch pointer."""
    repo.rm_branch(name)


@main.command()
@click.argument('commit_id')
@click.pass_obj
@reports_errors
def reset(repo: Repository, commit_id: str) -> None:
    """Move the current branch to a commit and check out its files."""
    repo.reset(commit_id)


@main.command()
@click.argument('branch_name')
@click.pass_obj
@reports_errors
def merge(repo: Repository, branch_name: str) -> None:
    """Merge a branch into the current branch."""
    outcome = repo.merge(branch_name)

    match outcome.kind:
        case MergeKind.ALREADY_MERGED:
            click.echo('Given branch is an ancestor of the current branch.')
        case MergeKind.FAST_FORWARD:
            click.echo('Current branch fast-forwarded.')
        case MergeKind.MERGED if outcome.had_conflict:
            click.echo('Encountered a merge conflict.')


if __name__ == '__main__':
    main()
