"""Tests for git-based change detection."""

from pathlib import Path

import pytest
from git import Repo

from docsync.config import AgentConfig
from docsync.detection.change_detector import ChangeDetector, detect_language, glob_to_regex, matches_any
from docsync.errors import ChangeDetectionError


def commit_files(repo: Repo, message: str, files=None, remove=None) -> str:
    """Helper to write, delete and commit files in a test repository."""
    root = Path(repo.working_dir)
    for rel_path, content in (files or {}).items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        repo.index.add([rel_path])
    for rel_path in remove or []:
        repo.index.remove([rel_path], working_tree=True)
    return repo.index.commit(message).hexsha


@pytest.fixture
def repo(tmp_path):
    """Repository with a baseline commit and a follow-up touching several files."""
    repo = Repo.init(tmp_path / "project")
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")

    commit_files(
        repo,
        "Initial commit",
        {
            "src/app/users.py": "def get_user(user_id):\n    pass\n",
            "src/app/legacy.py": "def old():\n    pass\n",
            "README.md": "# Project\n",
        },
    )
    commit_files(
        repo,
        "Change API",
        {
            "src/app/users.py": "def get_user(user_id, deleted=False):\n    pass\n",
            "src/app/orders.py": "def list_orders():\n    pass\n",
            "src/app/tests/test_users.py": "def test_user():\n    pass\n",
            "README.md": "# Project\n\nMore.\n",
        },
        remove=["src/app/legacy.py"],
    )
    return repo


@pytest.fixture
def detector(repo):
    return ChangeDetector(AgentConfig(), repo.working_dir)


def test_detect_from_git_classifies_changes(detector):
    changes = {change.file_path: change for change in detector.detect_from_git()}

    assert sorted(changes) == ["src/app/legacy.py", "src/app/orders.py", "src/app/users.py"]

    added = changes["src/app/orders.py"]
    assert added.change_type == "added"
    assert added.previous_content is None
    assert added.language == "python"

    modified = changes["src/app/users.py"]
    assert modified.change_type == "modified"
    assert "deleted=False" in modified.content
    assert modified.previous_content == "def get_user(user_id):\n    pass"

    deleted = changes["src/app/legacy.py"]
    assert deleted.change_type == "deleted"
    assert deleted.content == ""
    assert "def old()" in deleted.previous_content


def test_detect_from_git_with_explicit_commit(repo, detector):
    head = repo.head.commit.hexsha

    assert detector.detect_from_git(head) == []


def test_unknown_commit_raises(detector):
    with pytest.raises(ChangeDetectionError, match="Failed to detect changes"):
        detector.detect_from_git("does-not-exist")


def test_detect_from_files_filters_paths(detector):
    changes = detector.detect_from_files(["src/app/users.py", "README.md", "src/app/tests/test_users.py"])

    assert [change.file_path for change in changes] == ["src/app/users.py"]
    assert changes[0].change_type == "modified"


def test_detector_finds_repository_root_from_subdirectory(repo):
    detector = ChangeDetector(AgentConfig(), str(Path(repo.working_dir) / "src"))

    assert detector.repo_path == Path(repo.working_dir)


@pytest.mark.parametrize(
    "path,pattern,expected",
    [
        ("src/app/users.py", "src/**/*.py", True),
        ("src/users.py", "src/**/*.py", True),
        ("lib/users.py", "src/**/*.py", False),
        ("src/app/users.pyc", "src/**/*.py", False),
        ("src/app/tests/test_x.py", "**/tests/**", True),
        ("README.md", "*.md", True),
        ("docs/README.md", "*.md", False),
    ],
)
def test_glob_matching(path, pattern, expected):
    assert bool(glob_to_regex(pattern).match(path)) is expected


def test_matches_any_normalizes_separators():
    assert matches_any("src\\app\\users.py", ["src/**/*.py"])


def test_detect_language():
    assert detect_language("a/b.py") == "python"
    assert detect_language("a/b.TSX") == "typescript"
    assert detect_language("a/b.txt") == "unknown"


def test_non_utf8_source_in_git_mode_is_read_with_replacement(repo):
    path = Path(repo.working_dir) / "src/app/legacy_names.py"
    path.write_bytes(b"# Caf\xe9\ndef greet():\n    pass\n")
    repo.index.add(["src/app/legacy_names.py"])
    repo.index.commit("Add latin-1 module")

    changes = {change.file_path: change for change in ChangeDetector(AgentConfig(), repo.working_dir).detect_from_git()}

    added = changes["src/app/legacy_names.py"]
    assert added.change_type == "added"
    assert added.content == "# Caf\ufffd\ndef greet():\n    pass\n"
