"""Exception hierarchy for history-grep.

Configuration and graph-integrity errors are fatal for a run. Object lookup
failures are raised by the object store and treated as recoverable by the
walkers unless the failing object is a commit.
"""


class HistoryGrepError(Exception):
    """Base class for all history-grep errors."""


class ConfigurationError(HistoryGrepError):
    """Raised when the search cannot start with the given settings."""


class RepositoryNotFoundError(ConfigurationError):
    """Raised when the repository path does not exist or is not a git repository."""


class ReferenceNotFoundError(ConfigurationError):
    """Raised when a branch or reference name does not resolve to a commit."""


class GraphIntegrityError(HistoryGrepError):
    """Raised when the parents of a commit cannot be enumerated."""


class ObjectNotFoundError(HistoryGrepError):
    """Raised when an object is missing from the store or has an unexpected type."""

    def __init__(self, oid: str, expected_type: str, message: str = ""):
        self.oid = oid
        self.expected_type = expected_type
        super().__init__(message or f"Cannot read {expected_type} object {oid}")
