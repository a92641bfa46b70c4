"""Data model shared by the object store, the walkers and the reporter."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set, Tuple


class EntryKind(Enum):
    """Kind of a tree entry, derived from its git file mode."""

    TREE = "tree"
    BLOB = "blob"
    SYMLINK = "symlink"
    SUBMODULE = "submodule"


# Git stores modes without leading zeros ("40000" for trees)
_MODE_KINDS = {
    "40000": EntryKind.TREE,
    "040000": EntryKind.TREE,
    "100644": EntryKind.BLOB,
    "100755": EntryKind.BLOB,
    "100664": EntryKind.BLOB,
    "120000": EntryKind.SYMLINK,
    "160000": EntryKind.SUBMODULE,
}


@dataclass(frozen=True)
class TreeEntry:
    """One entry of a tree object."""

    mode: str
    name: str
    oid: str

    @property
    def kind(self) -> EntryKind:
        kind = _MODE_KINDS.get(self.mode)
        if kind is not None:
            return kind
        # Unknown legacy modes: anything starting with 10 is a regular file
        return EntryKind.BLOB if self.mode.startswith("10") else EntryKind.SUBMODULE

    @property
    def is_tree(self) -> bool:
        return self.kind is EntryKind.TREE


@dataclass(frozen=True)
class Commit:
    """A commit node of the history graph."""

    oid: str
    parents: Tuple[str, ...]
    tree: Optional[str]


@dataclass(frozen=True)
class MatchRecord:
    """A single pattern occurrence found in one file of one commit.

    ``start`` and ``end`` are byte offsets into the UTF-8 content of the file.
    ``line_number`` is 1-based and refers to the line containing ``start``.
    """

    commit: str
    path: str
    start: int
    end: int
    line_number: int
    line_text: str


@dataclass
class TraversalState:
    """Visited sets for one run. Sets only grow; nothing is evicted.

    Every ``first_visit_*`` method is a check-and-insert: it returns True
    exactly once per key and marks the key visited in the same step.
    """

    commits: Set[str] = field(default_factory=set)
    trees: Set[str] = field(default_factory=set)
    blobs: Set[str] = field(default_factory=set)
    paths: Set[str] = field(default_factory=set)

    @staticmethod
    def _first(visited: Set[str], key: str) -> bool:
        if key in visited:
            return False
        visited.add(key)
        return True

    def first_visit_commit(self, oid: str) -> bool:
        return self._first(self.commits, oid)

    def first_visit_tree(self, oid: str) -> bool:
        return self._first(self.trees, oid)

    def first_visit_blob(self, oid: str) -> bool:
        return self._first(self.blobs, oid)

    def first_visit_path(self, path: str) -> bool:
        return self._first(self.paths, path)


@dataclass
class WalkStats:
    """Run-scoped counters used only for verbose diagnostics."""

    commits_visited: int = 0
    trees_walked: int = 0
    files_visited: int = 0
    skipped_blobs: int = 0
    matches: int = 0
    rounds: int = 0


@dataclass(frozen=True)
class RoundProgress:
    """Snapshot of the counters after one breadth-first round."""

    round_index: int
    matches: int
    trees_walked: int
    skipped_blobs: int
    next_frontier_size: int
