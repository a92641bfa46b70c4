"""
Shared pytest fixtures for History Grep tests.

Provides real git repositories, opened object stores and search
configurations bound to them.
"""

from pathlib import Path
from typing import Generator

import pytest

from history_grep.config import SearchConfig
from history_grep.git.object_store import GitObjectStore
from history_grep.utils.exception_logger import ExceptionLogger

from .fixtures.git_history_repository import GitHistoryRepository


@pytest.fixture
def git_repo(tmp_path: Path) -> GitHistoryRepository:
    """Empty repository on branch main with a configured identity."""
    return GitHistoryRepository(tmp_path / "repo").init()


@pytest.fixture
def open_store(git_repo: GitHistoryRepository) -> Generator[GitObjectStore, None, None]:
    """Object store opened on ``git_repo``; commits must exist before reading."""
    store = GitObjectStore(git_repo.repo_path)
    yield store
    store.close()


@pytest.fixture
def make_config(git_repo: GitHistoryRepository):
    """Factory for configurations searching ``git_repo``."""

    def _make(pattern: str = "needle", **kwargs) -> SearchConfig:
        return SearchConfig.build(pattern, repo=git_repo.repo_path, **kwargs)

    return _make


@pytest.fixture(autouse=True)
def reset_exception_logger(tmp_path: Path, monkeypatch) -> Generator[None, None, None]:
    """Keep the exception logger singleton out of the real home directory."""
    monkeypatch.setattr(
        "history_grep.utils.exception_logger.default_log_dir",
        lambda: tmp_path / "logs",
    )
    ExceptionLogger._instance = None
    yield
    ExceptionLogger._instance = None


@pytest.fixture(autouse=True)
def isolate_git_discovery(tmp_path: Path, monkeypatch) -> None:
    """Stop git from discovering a repository above the test directory."""
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
