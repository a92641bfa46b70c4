"""Configuration for a history search run."""

import logging
import re
from pathlib import Path
from re import Pattern
from typing import Any, FrozenSet, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (
    "sh",
    "js",
    "tcl",
    "pl",
    "py",
    "rb",
    "c",
    "cpp",
    "h",
    "rc",
    "rci",
    "dlg",
    "pas",
    "dpr",
    "cs",
    "rs",
)

DEFAULT_IGNORE_DIRS = (".hg", ".svn", ".git", ".bzr", "node_modules", "target")


def normalize_extension(ext: str) -> str:
    """Lower-case an extension and strip its leading dot."""
    return ext.strip().lstrip(".").lower()


class SearchConfig(BaseModel):
    """Immutable settings for one search run."""

    model_config = ConfigDict(
        frozen=True, arbitrary_types_allowed=True, extra="forbid"
    )

    pattern: Pattern[str] = Field(description="Compiled search pattern")
    repo: Path = Field(description="Canonical repository root")
    branch: Optional[str] = Field(
        default=None, description="Start reference, HEAD when omitted"
    )
    extensions: FrozenSet[str] = Field(
        default=frozenset(DEFAULT_EXTENSIONS),
        description="Searchable file extensions without leading dot",
    )
    ignore_dirs: FrozenSet[str] = Field(
        default=frozenset(DEFAULT_IGNORE_DIRS),
        description="Entry names never descended into or searched",
    )
    once_file: bool = Field(
        default=True, description="Search only the first-seen version of each path"
    )
    dedup_blobs: bool = Field(
        default=True, description="Search each distinct blob only once"
    )
    color: bool = Field(default=True, description="Color-annotate the output")
    output_grouping: bool = Field(
        default=True, description="Group matches under a per-commit header"
    )
    verbose: bool = Field(default=False, description="Print progress diagnostics")

    @field_validator("pattern", mode="before")
    @classmethod
    def compile_pattern(cls, v: Any) -> Pattern[str]:
        """Compile string patterns; accept already compiled ones."""
        if isinstance(v, str):
            try:
                return re.compile(v)
            except re.error as e:
                raise ValueError(f"Error in regex compilation: {e}")
        return v

    @field_validator("repo", mode="before")
    @classmethod
    def canonicalize_repo(cls, v: Any) -> Path:
        """Resolve the repository path to an absolute canonical path."""
        if isinstance(v, (str, Path)):
            return Path(v).expanduser().resolve()
        raise ValueError(f"Expected str or Path, got {type(v)}")

    @field_validator("extensions", mode="before")
    @classmethod
    def normalize_extensions(cls, v: Iterable[str]) -> FrozenSet[str]:
        """Remove dots from file extensions and compare case-insensitively."""
        return frozenset(
            normalize_extension(ext) for ext in v if normalize_extension(ext)
        )

    @classmethod
    def build(
        cls,
        pattern: str,
        repo: Optional[Path] = None,
        branch: Optional[str] = None,
        extra_extensions: Iterable[str] = (),
        extra_ignore_dirs: Iterable[str] = (),
        **toggles: bool,
    ) -> "SearchConfig":
        """Create a configuration from user options merged with the defaults.

        Args:
            pattern: Regular expression to search for
            repo: Repository root, the current directory when omitted
            branch: Start reference, HEAD when omitted
            extra_extensions: Extensions added to the built-in list
            extra_ignore_dirs: Entry names added to the built-in ignore list
            **toggles: once_file, dedup_blobs, color, output_grouping, verbose

        Raises:
            ConfigurationError: If the pattern does not compile or a value is invalid
        """
        try:
            return cls(
                pattern=pattern,
                repo=repo if repo is not None else Path.cwd(),
                branch=branch,
                extensions=[*DEFAULT_EXTENSIONS, *extra_extensions],
                ignore_dirs=frozenset([*DEFAULT_IGNORE_DIRS, *extra_ignore_dirs]),
                **toggles,
            )
        except ValidationError as e:
            messages = "; ".join(error["msg"] for error in e.errors())
            raise ConfigurationError(messages)
