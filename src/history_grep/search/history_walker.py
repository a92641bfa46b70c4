"""
Breadth-first traversal of the commit graph.

Each round visits the commits at one distance from the start reference and
collects their unvisited parents as the next frontier. The traversal state
is shared by every commit of the run, so "first seen" always means nearest
to the start reference.
"""

import logging
from typing import Callable, Iterator, List, Optional

from ..config import SearchConfig
from ..errors import GraphIntegrityError, ObjectNotFoundError
from ..git.object_store import GitObjectStore
from ..models import Commit, MatchRecord, RoundProgress, TraversalState, WalkStats
from .snapshot_walker import SnapshotWalker

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[RoundProgress], None]


class HistoryWalker:
    """Searches every commit reachable from a start reference exactly once."""

    def __init__(
        self,
        store: GitObjectStore,
        config: SearchConfig,
        progress_callback: Optional[ProgressCallback] = None,
    ):
        """
        Args:
            store: Opened object store of the repository
            config: Search settings
            progress_callback: Called after every breadth-first round
        """
        self.store = store
        self.config = config
        self.progress_callback = progress_callback
        self.state = TraversalState()
        self.stats = WalkStats()
        self.snapshot_walker = SnapshotWalker(store, config, self.state, self.stats)

    def search(self) -> Iterator[MatchRecord]:
        """Resolve the start reference and yield matches from all of history.

        Raises:
            ReferenceNotFoundError: If the start reference does not resolve.
                Raised on the first iteration, before any commit is visited.
            GraphIntegrityError: If a reachable commit cannot be read
        """
        start = self.store.resolve_commit(self.config.branch)
        logger.debug("Starting history walk at %s", start)
        yield from self.walk_from(start)

    def walk_from(self, start_oid: str) -> Iterator[MatchRecord]:
        frontier: List[str] = [start_oid]

        while frontier:
            commits = []
            for oid in frontier:
                if not self.state.first_visit_commit(oid):
                    continue
                commit = self._read_commit(oid)
                commits.append(commit)
                self.stats.commits_visited += 1

                if commit.tree is None:
                    logger.debug("Commit %s has no tree, skipping", oid)
                    continue
                yield from self.snapshot_walker.walk(commit.oid, commit.tree)

            frontier = self._next_frontier(commits)
            self._report_round(len(frontier))

    def _read_commit(self, oid: str) -> Commit:
        try:
            return self.store.read_commit(oid)
        except ObjectNotFoundError as e:
            raise GraphIntegrityError(f"Cannot enumerate parents of commit {oid}: {e}")

    def _next_frontier(self, commits: List[Commit]) -> List[str]:
        # Keeps first-discovered order so runs are deterministic
        next_frontier: List[str] = []
        seen = set()
        for commit in commits:
            for parent in commit.parents:
                if parent in self.state.commits or parent in seen:
                    continue
                seen.add(parent)
                next_frontier.append(parent)
        return next_frontier

    def _report_round(self, next_frontier_size: int) -> None:
        progress = RoundProgress(
            round_index=self.stats.rounds,
            matches=self.stats.matches,
            trees_walked=self.stats.trees_walked,
            skipped_blobs=self.stats.skipped_blobs,
            next_frontier_size=next_frontier_size,
        )
        self.stats.rounds += 1
        logger.debug(
            "Round %d: %d matches, %d trees, %d skipped blobs, next frontier %d",
            progress.round_index,
            progress.matches,
            progress.trees_walked,
            progress.skipped_blobs,
            progress.next_frontier_size,
        )
        if self.progress_callback:
            self.progress_callback(progress)
