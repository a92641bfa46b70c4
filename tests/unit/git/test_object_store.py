"""Tests for GitObjectStore - reading objects through git cat-file --batch."""

import json

import pytest

from history_grep.errors import (
    ObjectNotFoundError,
    ReferenceNotFoundError,
    RepositoryNotFoundError,
)
from history_grep.git.object_store import GitObjectStore
from history_grep.models import EntryKind
from history_grep.utils.exception_logger import ExceptionLogger


class TestGitObjectStore:
    """Test GitObjectStore against real repositories."""

    def test_missing_path_raises(self, tmp_path):
        with pytest.raises(RepositoryNotFoundError):
            GitObjectStore(tmp_path / "does-not-exist").open()

    def test_plain_directory_raises(self, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()

        with pytest.raises(RepositoryNotFoundError):
            GitObjectStore(plain).open()

    def test_resolve_head(self, git_repo, open_store):
        commit = git_repo.commit("init", {"a.py": "x\n"})

        assert open_store.resolve_commit() == commit
        assert open_store.resolve_commit("HEAD") == commit

    def test_resolve_short_branch_and_tag_names(self, git_repo, open_store):
        first = git_repo.commit("one", {"a.py": "1\n"})
        git_repo.git("tag", "v1")
        git_repo.git("branch", "old")
        git_repo.commit("two", {"a.py": "2\n"})

        assert open_store.resolve_commit("v1") == first
        assert open_store.resolve_commit("old") == first
        assert open_store.resolve_commit("refs/heads/old") == first

    def test_annotated_tag_peels_to_commit(self, git_repo, open_store):
        first = git_repo.commit("one", {"a.py": "1\n"})
        git_repo.git("tag", "-a", "release", "-m", "release")

        assert open_store.resolve_commit("release") == first

    def test_unknown_reference_raises(self, git_repo, open_store):
        git_repo.commit("init", {"a.py": "x\n"})

        with pytest.raises(ReferenceNotFoundError):
            open_store.resolve_commit("missing-branch")

    def test_option_like_reference_rejected(self, git_repo, open_store):
        git_repo.commit("init", {"a.py": "x\n"})

        with pytest.raises(ReferenceNotFoundError):
            open_store.resolve_commit("--all")

    def test_empty_repository_has_no_head(self, git_repo, open_store):
        with pytest.raises(ReferenceNotFoundError):
            open_store.resolve_commit()

    def test_read_commit_parents_and_tree(self, git_repo, open_store):
        root = git_repo.commit("one", {"a.py": "1\n"})
        child = git_repo.commit("two", {"a.py": "2\n"})

        root_commit = open_store.read_commit(root)
        child_commit = open_store.read_commit(child)

        assert root_commit.parents == ()
        assert child_commit.parents == (root,)
        assert child_commit.tree == git_repo.tree_id(child)

    def test_read_merge_commit_parents_in_order(self, git_repo, open_store):
        git_repo.commit("base", {"a.py": "1\n"})
        git_repo.checkout("side", create=True)
        side = git_repo.commit("side", {"b.py": "2\n"})
        git_repo.checkout("main")
        main = git_repo.commit("main", {"c.py": "3\n"})
        merge = git_repo.merge("side", "merge")

        assert open_store.read_commit(merge).parents == (main, side)

    def test_read_tree_entries(self, git_repo, open_store):
        git_repo.commit("init", {"a.py": "1\n", "pkg/b.py": "2\n", "run.sh": "echo\n"})
        (git_repo.repo_path / "run.sh").chmod(0o755)
        git_repo.commit("exec", {})

        entries = {e.name: e for e in open_store.read_tree(git_repo.tree_id("HEAD"))}

        assert set(entries) == {"a.py", "pkg", "run.sh"}
        assert entries["pkg"].kind is EntryKind.TREE
        assert entries["a.py"].kind is EntryKind.BLOB
        assert entries["run.sh"].mode == "100755"
        assert entries["a.py"].oid == git_repo.blob_id("HEAD", "a.py")

    def test_read_tree_with_symlink(self, git_repo, open_store):
        git_repo.write({"target.py": "x\n"})
        (git_repo.repo_path / "link.py").symlink_to("target.py")
        git_repo.commit("link")

        entries = {e.name: e for e in open_store.read_tree(git_repo.tree_id("HEAD"))}

        assert entries["link.py"].kind is EntryKind.SYMLINK

    def test_read_tree_with_unicode_names(self, git_repo, open_store):
        git_repo.commit("init", {"naïve café.py": "1\n"})

        entries = open_store.read_tree(git_repo.tree_id("HEAD"))

        assert [e.name for e in entries] == ["naïve café.py"]

    def test_read_blob_preserves_exact_bytes(self, git_repo, open_store):
        content = b"line1\r\n  line2\x00binary\n\n"
        git_repo.commit("init", {"data.bin": content})

        assert open_store.read_blob(git_repo.blob_id("HEAD", "data.bin")) == content

    def test_sequential_requests_share_one_process(self, git_repo, open_store):
        git_repo.commit("init", {"a.py": "aaa\n", "b.py": "bbbb\n"})

        first = open_store.read_blob(git_repo.blob_id("HEAD", "a.py"))
        second = open_store.read_blob(git_repo.blob_id("HEAD", "b.py"))
        third = open_store.read_blob(git_repo.blob_id("HEAD", "a.py"))

        assert (first, second, third) == (b"aaa\n", b"bbbb\n", b"aaa\n")

    def test_missing_object_raises(self, git_repo, open_store):
        git_repo.commit("init", {"a.py": "x\n"})

        with pytest.raises(ObjectNotFoundError) as exc_info:
            open_store.read_blob("0" * 40)
        assert exc_info.value.oid == "0" * 40

        # reader still usable after a miss
        assert open_store.read_blob(git_repo.blob_id("HEAD", "a.py")) == b"x\n"

    def test_wrong_object_type_raises(self, git_repo, open_store):
        commit = git_repo.commit("init", {"a.py": "x\n"})

        with pytest.raises(ObjectNotFoundError):
            open_store.read_tree(commit)

    def test_context_manager_closes_process(self, git_repo):
        git_repo.commit("init", {"a.py": "x\n"})

        with GitObjectStore(git_repo.repo_path) as store:
            assert store.resolve_commit()
            process = store._process
            assert process is not None

        assert store._process is None
        assert process.poll() is not None


class TestGitFailureLogging:
    """Git failures are recorded through the exception logger."""

    def _entries(self, exception_logger):
        text = exception_logger.log_file_path.read_text()
        return [json.loads(chunk) for chunk in text.split("\n---\n") if chunk.strip()]

    def test_dead_object_reader_is_recorded(self, git_repo, open_store, tmp_path):
        git_repo.commit("init", {"a.py": "x\n"})
        blob = git_repo.blob_id("HEAD", "a.py")
        exception_logger = ExceptionLogger.initialize(log_dir=tmp_path / "logs")
        open_store.open()
        open_store._process.kill()
        open_store._process.wait()

        with pytest.raises(ObjectNotFoundError, match="Object reader terminated"):
            open_store.read_blob(blob)

        [entry] = self._entries(exception_logger)
        assert entry["context"]["git_command"] == "git cat-file --batch"
        assert entry["context"]["cwd"] == str(git_repo.repo_path)
        assert entry["context"]["object_id"] == blob
        assert entry["context"]["returncode"] is not None

    def test_unresolvable_reference_is_recorded(self, git_repo, open_store, tmp_path):
        git_repo.commit("init", {"a.py": "x\n"})
        exception_logger = ExceptionLogger.initialize(log_dir=tmp_path / "logs")

        with pytest.raises(ReferenceNotFoundError):
            open_store.resolve_commit("missing-branch")

        [entry] = self._entries(exception_logger)
        assert "rev-parse" in entry["context"]["git_command"]
        assert "missing-branch^{commit}" in entry["context"]["git_command"]
