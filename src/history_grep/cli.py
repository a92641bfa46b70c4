"""Command line interface for History Grep."""

import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console

from . import __version__
from .config import SearchConfig
from .errors import HistoryGrepError
from .git.object_store import GitObjectStore
from .models import RoundProgress
from .reporter import MatchReporter
from .search.history_walker import HistoryWalker
from .utils.exception_logger import ExceptionLogger

logger = logging.getLogger(__name__)

error_console = Console(stderr=True, highlight=False)


def _print_round(progress: RoundProgress) -> None:
    error_console.print(
        f"[{progress.round_index}] {progress.matches} matches in "
        f"{progress.trees_walked} trees, {progress.skipped_blobs} skipped blobs... "
        f"Next round has {progress.next_frontier_size} commits...",
        markup=False,
        soft_wrap=True,
    )


def run_search(config: SearchConfig, console: Optional[Console] = None) -> int:
    """Search the history described by ``config`` and print every match.

    Returns:
        Number of matches printed

    Raises:
        HistoryGrepError: On configuration or graph-integrity failures
    """
    reporter = MatchReporter(
        console=console or Console(highlight=False, no_color=not config.color),
        color=config.color,
        output_grouping=config.output_grouping,
    )
    with GitObjectStore(config.repo) as store:
        walker = HistoryWalker(
            store,
            config,
            progress_callback=_print_round if config.verbose else None,
        )
        count = reporter.report_all(walker.search())

    if config.verbose:
        stats = walker.stats
        error_console.print(
            f"Done: {count} matches in {stats.commits_visited} commits, "
            f"{stats.files_visited} files visited, "
            f"{stats.skipped_blobs} skipped blobs",
            markup=False,
            soft_wrap=True,
        )
    return count


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("pattern")
@click.argument("repo", required=False, type=click.Path(path_type=Path))
@click.option("--branch", "-b", help="Branch or reference to start from (default HEAD)")
@click.option(
    "--no-once-file",
    "-o",
    is_flag=True,
    help="Search every version of a path; by default only the first version "
    "of each path found walking back from the start reference is searched",
)
@click.option(
    "--all-blobs",
    "-a",
    is_flag=True,
    help="Search identical file content again in every commit that contains it",
)
@click.option(
    "--no-color-code",
    "-c",
    is_flag=True,
    help="Disable color coding for the output",
)
@click.option(
    "--no-output-grouping",
    "-g",
    is_flag=True,
    help="Disable grouping by commit; prefix every line with the commit id",
)
@click.option("--verbose", "-v", is_flag=True, help="Print progress to stderr")
@click.option(
    "--extensions",
    "-e",
    multiple=True,
    help="Add an entry to the list of extensions to search (repeatable)",
)
@click.option(
    "--ignore-dirs",
    "-i",
    multiple=True,
    help="Add an entry to the list of directory names to ignore (repeatable)",
)
@click.version_option(version=__version__, prog_name="history-grep")
def cli(
    pattern: str,
    repo: Optional[Path],
    branch: Optional[str],
    no_once_file: bool,
    all_blobs: bool,
    no_color_code: bool,
    no_output_grouping: bool,
    verbose: bool,
    extensions: Tuple[str, ...],
    ignore_dirs: Tuple[str, ...],
):
    """Search PATTERN (a regular expression) in the whole history of REPO.

    REPO defaults to the current directory. Every commit reachable from the
    start reference is searched, nearest commits first.

    EXAMPLES:
      history-grep 'TODO\\(\\w+\\)'
      history-grep -b release -e txt old_function ../project
      history-grep -g -c needle | sort
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )
    ExceptionLogger.initialize()

    try:
        config = SearchConfig.build(
            pattern,
            repo=repo,
            branch=branch,
            extra_extensions=extensions,
            extra_ignore_dirs=ignore_dirs,
            once_file=not no_once_file,
            dedup_blobs=not all_blobs,
            color=not no_color_code,
            output_grouping=not no_output_grouping,
            verbose=verbose,
        )
        error_console.print(
            f"Searching path: {config.repo} "
            f"extensions: {sorted(config.extensions)} "
            f"ignore_dirs: {sorted(config.ignore_dirs)}",
            markup=False,
            soft_wrap=True,
        )
        run_search(config)
    except HistoryGrepError as e:
        error_console.print(f"❌ {e}", style="red", markup=False, soft_wrap=True)
        sys.exit(1)


def main():
    """Main entry point."""
    try:
        cli()
    except KeyboardInterrupt:
        error_console.print("\n❌ Interrupted by user", style="red")
        sys.exit(1)
    except Exception as e:
        exception_logger = ExceptionLogger.get_instance()
        if exception_logger:
            exception_logger.log_exception(e, context={"argv": sys.argv})
        error_console.print(
            f"❌ Unexpected error: {e}", style="red", markup=False, soft_wrap=True
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
