"""Decides which blobs of a tree are eligible for text search."""

import logging
import posixpath
from dataclasses import dataclass
from typing import FrozenSet, Optional

from ..errors import ObjectNotFoundError
from ..git.object_store import GitObjectStore
from ..models import EntryKind, TreeEntry

logger = logging.getLogger(__name__)

# Same window git uses for its own binary detection
BINARY_SNIFF_SIZE = 8000


@dataclass(frozen=True)
class EligibleBlob:
    oid: str
    content: bytes


def is_binary(content: bytes) -> bool:
    """A NUL byte near the start of the content marks it as binary."""
    return b"\x00" in content[:BINARY_SNIFF_SIZE]


def file_extension(name: str) -> Optional[str]:
    """Return the lower-cased extension of a file name without its dot.

    Dot files such as ``.bashrc`` and names without a dot have no extension.
    """
    _, ext = posixpath.splitext(name)
    if not ext:
        return None
    return ext[1:].lower()


class ContentClassifier:
    """Applies the ignore list, entry kind, extension and binary rules in order."""

    def __init__(self, extensions: FrozenSet[str], ignore_dirs: FrozenSet[str]):
        self.extensions = extensions
        self.ignore_dirs = ignore_dirs

    def is_ignored_name(self, name: str) -> bool:
        return name in self.ignore_dirs

    def has_searchable_extension(self, name: str) -> bool:
        ext = file_extension(name)
        return ext is not None and ext in self.extensions

    def classify(
        self, entry: TreeEntry, store: GitObjectStore
    ) -> Optional[EligibleBlob]:
        """Return the blob content if the entry should be searched, else None.

        Sub-trees are never passed here; the snapshot walker handles them.
        """
        if entry.is_tree:
            raise ValueError(f"Tree entry {entry.name} cannot be classified")
        if self.is_ignored_name(entry.name):
            return None
        if entry.kind is not EntryKind.BLOB:
            return None
        if not self.has_searchable_extension(entry.name):
            return None

        try:
            content = store.read_blob(entry.oid)
        except ObjectNotFoundError as e:
            logger.debug("Skipping unreadable blob %s: %s", entry.name, e)
            return None

        if is_binary(content):
            logger.debug("Skipping binary blob %s (%s)", entry.name, entry.oid)
            return None
        return EligibleBlob(oid=entry.oid, content=content)
