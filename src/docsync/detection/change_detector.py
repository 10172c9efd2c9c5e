"""Change detection from a Git repository or an explicit list of files."""

import re
from pathlib import Path
from typing import Iterable, List, Optional

from git import BadName, GitCommandError, Repo
from loguru import logger

from docsync.config import AgentConfig
from docsync.errors import ChangeDetectionError
from docsync.models.api import CodeChange

DEFAULT_COMPARE_TARGET = "HEAD~1"

LANGUAGE_MAP = {
    ".py": "python",
    ".pyi": "python",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".java": "java",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".c": "c",
    ".h": "c",
}


def detect_language(file_path: str) -> str:
    return LANGUAGE_MAP.get(Path(file_path).suffix.lower(), "unknown")


def glob_to_regex(pattern: str) -> re.Pattern:
    """Translate a path glob: ``**/`` spans zero or more directories, ``*`` stays within one segment."""
    regex = re.escape(pattern)
    regex = regex.replace(r"\*\*/", "(?:.+/)?")
    regex = regex.replace(r"\*\*", ".*")
    regex = regex.replace(r"\*", "[^/]*")
    regex = regex.replace(r"\?", "[^/]")
    return re.compile(f"^{regex}$", re.IGNORECASE)


def matches_any(file_path: str, patterns: Iterable[str]) -> bool:
    normalized = file_path.replace("\\", "/")
    return any(glob_to_regex(pattern).match(normalized) for pattern in patterns)


class ChangeDetector:
    """Reports changed code files as ``CodeChange`` records."""

    def __init__(self, config: AgentConfig, repo_path: str = "."):
        self.config = config
        self.repo = Repo(repo_path, search_parent_directories=True)
        self.repo_path = Path(self.repo.working_tree_dir)

    def should_include(self, file_path: str) -> bool:
        if matches_any(file_path, self.config.ignore_paths):
            return False
        return matches_any(file_path, self.config.code_paths)

    def _exists_in(self, file_path: str, rev: str) -> bool:
        try:
            self.repo.git.cat_file("-e", f"{rev}:{file_path}")
            return True
        except GitCommandError:
            return False

    def _show(self, file_path: str, rev: str) -> Optional[str]:
        try:
            return self.repo.git.show(f"{rev}:{file_path}")
        except GitCommandError:
            return None

    def _change_type(self, file_path: str, compare_target: str) -> str:
        in_current = self._exists_in(file_path, "HEAD")
        in_previous = self._exists_in(file_path, compare_target)
        if in_current and not in_previous:
            return "added"
        if in_previous and not in_current:
            return "deleted"
        return "modified"

    def _create_change(self, file_path: str, compare_target: str) -> CodeChange:
        change_type = self._change_type(file_path, compare_target)

        content = ""
        if change_type != "deleted":
            working_copy = self.repo_path / file_path
            if working_copy.exists():
                content = working_copy.read_text(encoding="utf-8", errors="replace")

        previous_content = None
        if change_type != "added":
            previous_content = self._show(file_path, compare_target)

        return CodeChange(
            file_path=file_path,
            change_type=change_type,
            language=detect_language(file_path),
            content=content,
            previous_content=previous_content,
        )

    def detect_from_git(self, commit: Optional[str] = None) -> List[CodeChange]:
        """Detect changes between ``commit`` (default ``HEAD~1``) and ``HEAD``."""
        compare_target = commit or DEFAULT_COMPARE_TARGET
        try:
            base = self.repo.commit(compare_target)
            diff_index = base.diff(self.repo.head.commit)
        except (BadName, GitCommandError, ValueError) as e:
            raise ChangeDetectionError(f"Failed to detect changes from git: {e}") from e

        changes: List[CodeChange] = []
        for item in diff_index:
            file_path = item.b_path or item.a_path
            if not file_path or not self.should_include(file_path):
                continue
            try:
                changes.append(self._create_change(file_path, compare_target))
            except OSError as e:
                logger.warning(f"Skipping file {file_path}: {e}")

        logger.info(f"Detected {len(changes)} changed code files since {compare_target}")
        return changes

    def detect_from_files(self, file_paths: List[str]) -> List[CodeChange]:
        """Compare each listed file against ``HEAD~1``; unreadable files are skipped."""
        changes: List[CodeChange] = []
        for file_path in file_paths:
            if not self.should_include(file_path):
                logger.debug(f"Skipping {file_path}: outside code paths or ignored")
                continue
            try:
                changes.append(self._create_change(file_path, DEFAULT_COMPARE_TARGET))
            except OSError as e:
                logger.warning(f"Skipping file {file_path}: {e}")

        return changes
