"""History search components: classification, matching and graph walks."""

from .classifier import ContentClassifier
from .history_walker import HistoryWalker
from .snapshot_walker import SnapshotWalker

__all__ = ["ContentClassifier", "HistoryWalker", "SnapshotWalker"]
