"""
Depth-first walk over the tree of one commit.

The walker shares its visited sets with every other commit of the run, so a
sub-tree that is unchanged between revisions is descended only once and an
unchanged blob is searched only once.
"""

import logging
from typing import Iterator, List

from ..config import SearchConfig
from ..errors import ObjectNotFoundError
from ..git.object_store import GitObjectStore
from ..models import MatchRecord, TraversalState, TreeEntry, WalkStats
from .classifier import ContentClassifier
from .matcher import iter_matches

logger = logging.getLogger(__name__)


def join_path(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


class SnapshotWalker:
    """Produces match records for the files of one commit snapshot."""

    def __init__(
        self,
        store: GitObjectStore,
        config: SearchConfig,
        state: TraversalState,
        stats: WalkStats,
    ):
        self.store = store
        self.config = config
        self.state = state
        self.stats = stats
        self.classifier = ContentClassifier(config.extensions, config.ignore_dirs)

    def walk(self, commit_oid: str, tree_oid: str) -> Iterator[MatchRecord]:
        """Yield matches from the root tree of a commit.

        A root tree that cannot be read contributes nothing, and so does one
        already walked by an earlier commit when blob dedup is enabled.
        """
        yield from self._walk_tree(commit_oid, tree_oid, "")

    def _walk_tree(
        self, commit_oid: str, tree_oid: str, path: str
    ) -> Iterator[MatchRecord]:
        # Skipping a seen tree is only sound when its blobs would be skipped too
        if self.config.dedup_blobs and not self.state.first_visit_tree(tree_oid):
            return
        try:
            entries = self.store.read_tree(tree_oid)
        except ObjectNotFoundError as e:
            logger.debug("Skipping unreadable tree %s: %s", path, e)
            return
        self.stats.trees_walked += 1
        yield from self._walk_entries(commit_oid, entries, path)

    def _walk_entries(
        self, commit_oid: str, entries: List[TreeEntry], path: str
    ) -> Iterator[MatchRecord]:
        for entry in entries:
            entry_path = join_path(path, entry.name)
            if entry.is_tree:
                if self.classifier.is_ignored_name(entry.name):
                    continue
                yield from self._walk_tree(commit_oid, entry.oid, entry_path)
            else:
                yield from self._search_file(commit_oid, entry, entry_path)

    def _search_file(
        self, commit_oid: str, entry: TreeEntry, path: str
    ) -> Iterator[MatchRecord]:
        if self.config.once_file and not self.state.first_visit_path(path):
            return
        self.stats.files_visited += 1

        blob = self.classifier.classify(entry, self.store)
        if blob is None:
            return

        if self.config.dedup_blobs and not self.state.first_visit_blob(blob.oid):
            self.stats.skipped_blobs += 1
            return

        for found in iter_matches(blob.content, self.config.pattern):
            self.stats.matches += 1
            yield MatchRecord(
                commit=commit_oid,
                path=path,
                start=found.start,
                end=found.end,
                line_number=found.line_number,
                line_text=found.line_text,
            )
