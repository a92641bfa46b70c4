"""
Real git repositories with scripted histories for tests.

All git operations execute via subprocess.run() with real git commands; the
walkers under test read the resulting object database exactly as they would
read a user's repository.
"""

import subprocess
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

FileContent = Union[str, bytes]


class GitHistoryRepository:
    """Builds commits, branches and merges in a fresh repository."""

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *args],
            cwd=self.repo_path,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout.strip()

    def init(self) -> "GitHistoryRepository":
        self.repo_path.mkdir(parents=True, exist_ok=True)
        self.git("init")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")
        self.git("config", "user.name", "Test")
        self.git("config", "user.email", "test@example.com")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "core.autocrlf", "false")
        return self

    def write(self, files: Dict[str, FileContent]) -> None:
        for name, content in files.items():
            path = self.repo_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_bytes(content.encode("utf-8"))

    def commit(
        self,
        message: str,
        files: Optional[Dict[str, FileContent]] = None,
        remove: Iterable[str] = (),
    ) -> str:
        """Write files, stage everything and commit. Returns the commit id."""
        self.write(files or {})
        for name in remove:
            self.git("rm", "-q", name)
        self.git("add", "-A")
        self.git("commit", "-q", "--allow-empty", "-m", message)
        return self.head()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD")

    def checkout(self, branch: str, create: bool = False) -> None:
        if create:
            self.git("checkout", "-q", "-b", branch)
        else:
            self.git("checkout", "-q", branch)

    def merge(self, branch: str, message: str) -> str:
        self.git("merge", "-q", "--no-ff", "-m", message, branch)
        return self.head()

    def blob_id(self, rev: str, path: str) -> str:
        return self.git("rev-parse", f"{rev}:{path}")

    def tree_id(self, rev: str, path: str = "") -> str:
        return self.git("rev-parse", f"{rev}^{{tree}}" if not path else f"{rev}:{path}")
