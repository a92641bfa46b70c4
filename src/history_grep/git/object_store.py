"""
Read-only access to a git object database.

Objects are fetched through a single long-lived ``git cat-file --batch``
process: one request line in, one ``<oid> <type> <size>`` header plus the raw
object body out. Tree objects are parsed from their binary form so that no
process is spawned per directory.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from ..errors import (
    ObjectNotFoundError,
    ReferenceNotFoundError,
    RepositoryNotFoundError,
)
from ..models import Commit, TreeEntry
from ..utils.git_runner import (
    is_git_repository,
    log_git_failure,
    run_git_command,
    start_git_process,
)

logger = logging.getLogger(__name__)

BATCH_COMMAND = ["git", "cat-file", "--batch"]


class GitObjectStore:
    """Synchronous reader for commits, trees and blobs of one repository."""

    def __init__(self, repo_path: Path):
        """
        Args:
            repo_path: Work tree or bare repository directory
        """
        self.repo_path = Path(repo_path)
        self._process: Optional[subprocess.Popen] = None

    def __enter__(self) -> "GitObjectStore":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def open(self) -> None:
        """Validate the repository and start the batch reader.

        Raises:
            RepositoryNotFoundError: If the path is missing or not a git repository
        """
        if self._process is not None:
            return
        if not self.repo_path.is_dir():
            raise RepositoryNotFoundError(
                f"Repository path does not exist: {self.repo_path}"
            )
        if not is_git_repository(self.repo_path):
            raise RepositoryNotFoundError(
                f"Not a git repository: {self.repo_path}"
            )
        self._process = start_git_process(BATCH_COMMAND, cwd=self.repo_path)
        logger.debug("Started object reader for %s", self.repo_path)

    def close(self) -> None:
        if self._process is None:
            return
        process, self._process = self._process, None
        try:
            if process.stdin:
                try:
                    process.stdin.close()
                except BrokenPipeError:
                    pass  # reader already exited
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
        finally:
            if process.stdout:
                process.stdout.close()

    def resolve_commit(self, ref: Optional[str] = None) -> str:
        """Resolve a reference name to a commit id.

        Short names follow git's own lookup rules (``refs/<name>``,
        ``refs/tags/<name>``, ``refs/heads/<name>``, ``refs/remotes/<name>``).

        Args:
            ref: Branch, tag or revision; None means HEAD

        Returns:
            Full hexadecimal commit id

        Raises:
            ReferenceNotFoundError: If the name does not resolve to a commit
        """
        name = ref or "HEAD"
        if name.startswith("-"):
            raise ReferenceNotFoundError(f"Invalid reference name: {name}")
        try:
            result = run_git_command(
                ["git", "rev-parse", "--verify", "--quiet", f"{name}^{{commit}}"],
                cwd=self.repo_path,
            )
        except subprocess.CalledProcessError:
            raise ReferenceNotFoundError(f"Cannot resolve reference: {name}")
        return result.stdout.strip()

    def read_commit(self, oid: str) -> Commit:
        """Read a commit object and extract its tree and parents."""
        body = self._read_object(oid, "commit")
        tree: Optional[str] = None
        parents: List[str] = []
        # Header lines end at the first blank line; the message follows
        for line in body.split(b"\n"):
            if not line:
                break
            key, _, value = line.partition(b" ")
            if key == b"tree":
                tree = value.decode("ascii")
            elif key == b"parent":
                parents.append(value.decode("ascii"))
        return Commit(oid=oid, parents=tuple(parents), tree=tree)

    def read_tree(self, oid: str) -> List[TreeEntry]:
        """Read a tree object and parse its entries in stored order."""
        body = self._read_object(oid, "tree")
        # SHA-1 repositories use 20 raw bytes per id, SHA-256 ones 32
        id_size = len(oid) // 2
        entries = []
        pos = 0
        while pos < len(body):
            space = body.index(b" ", pos)
            nul = body.index(b"\0", space)
            mode = body[pos:space].decode("ascii")
            name = body[space + 1 : nul].decode("utf-8", errors="surrogateescape")
            raw_id = body[nul + 1 : nul + 1 + id_size]
            entries.append(TreeEntry(mode=mode, name=name, oid=raw_id.hex()))
            pos = nul + 1 + id_size
        return entries

    def read_blob(self, oid: str) -> bytes:
        return self._read_object(oid, "blob")

    def _read_object(self, oid: str, expected_type: str) -> bytes:
        object_type, body = self._request(oid)
        if object_type is None:
            raise ObjectNotFoundError(oid, expected_type)
        if object_type != expected_type:
            raise ObjectNotFoundError(
                oid,
                expected_type,
                f"Object {oid} is a {object_type}, expected {expected_type}",
            )
        return body

    def _request(self, oid: str) -> Tuple[Optional[str], bytes]:
        if self._process is None:
            self.open()
        assert self._process is not None
        stdin, stdout = self._process.stdin, self._process.stdout
        assert stdin is not None and stdout is not None

        try:
            stdin.write(oid.encode("ascii") + b"\n")
            stdin.flush()
        except BrokenPipeError as e:
            raise self._reader_terminated(oid, e)

        header = stdout.readline()
        if not header:
            raise self._reader_terminated(oid)
        parts = header.rstrip(b"\n").split(b" ")
        # "<oid> missing" / "<oid> ambiguous" carry no body
        if len(parts) != 3:
            logger.debug("Object %s unavailable: %s", oid, header.strip())
            return None, b""

        size = int(parts[2])
        body = stdout.read(size)
        stdout.read(1)  # trailing newline after each object
        return parts[1].decode("ascii"), body

    def _reader_terminated(
        self, oid: str, cause: Optional[BaseException] = None
    ) -> ObjectNotFoundError:
        error = ObjectNotFoundError(oid, "object", "Object reader terminated")
        returncode = self._process.poll() if self._process else None
        log_git_failure(
            cause or error,
            BATCH_COMMAND,
            self.repo_path,
            returncode=returncode,
            object_id=oid,
        )
        return error
