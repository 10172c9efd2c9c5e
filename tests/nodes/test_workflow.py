"""End-to-end tests for the docsync pipeline with fake collaborators."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from docsync.config import AgentConfig
from docsync.errors import GenerationError, ParseError, ReviewError, WriteError
from docsync.models.api import CodeChange
from docsync.models.state import AgentInput
from docsync.models.update import DocumentationUpdate, ReviewDecision
from docsync.parsing.python_parser import PythonAPIParser
from docsync.workflow import DocSyncAgent

OLD_SOURCE = "def get_user(user_id):\n    pass\n"
NEW_SOURCE = "def get_user(user_id, deleted=False):\n    pass\n"


class FakeGenerator:
    """Rewrites the get_user call; can fail or redirect output for chosen files."""

    def __init__(self, fail_for=(), redirect=None):
        self.fail_for = set(fail_for)
        self.redirect = redirect or {}
        self.calls = []

    async def generate_update(self, doc_file, context):
        self.calls.append(doc_file.path)
        if doc_file.path in self.fail_for:
            raise RuntimeError("model unavailable")
        return DocumentationUpdate(
            file_path=self.redirect.get(doc_file.path, doc_file.path),
            original_content=doc_file.content,
            updated_content=doc_file.content.replace("get_user(1)", "get_user(1, deleted=True)"),
            reasoning="New keyword parameter",
        )


class FakeReviewer:
    def __init__(self, actions=None, error=None):
        self.actions = actions
        self.error = error
        self.batches = []

    async def present_batch(self, updates):
        self.batches.append(list(updates))
        if self.error:
            raise self.error
        actions = self.actions if self.actions is not None else ["approve"] * len(updates)
        return [ReviewDecision(action=action) for action in actions]


def modified_change(path="src/app/users.py", old=OLD_SOURCE, new=NEW_SOURCE):
    return CodeChange(file_path=path, change_type="modified", language="python", content=new, previous_content=old)


@pytest.fixture
def docs_dir(tmp_path):
    docs = tmp_path / "docs"
    docs.mkdir()
    for name in ("a", "b", "c"):
        (docs / f"{name}.md").write_text(f"# {name}\n\nCall get_user(1) here.\n", encoding="utf-8")
    return docs


@pytest.fixture
def config(docs_dir):
    return AgentConfig(documentation_paths=[str(docs_dir)], code_paths=["src/**/*.py"])


def make_agent(changes=None, generator=None, reviewer=None, detector=None):
    if detector is None:
        detector = MagicMock()
        detector.detect_from_git.return_value = changes or []
        detector.detect_from_files.return_value = changes or []
    return DocSyncAgent(
        detector=detector,
        parser=PythonAPIParser(),
        generator=generator or FakeGenerator(),
        reviewer=reviewer or FakeReviewer(),
    )


@pytest.mark.asyncio
async def test_no_changes_short_circuits(config):
    generator = FakeGenerator()
    agent = make_agent(changes=[], generator=generator)

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.success
    assert result.updates_generated == 0
    assert result.updates_applied == 0
    assert result.errors == []
    assert result.summary == "No code changes detected."
    assert generator.calls == []


@pytest.mark.asyncio
async def test_failed_write_is_recorded_and_other_updates_applied(tmp_path, docs_dir, config):
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    unwritable = str(blocker / "c.md")
    generator = FakeGenerator(redirect={str(docs_dir / "c.md"): unwritable})
    agent = make_agent(changes=[modified_change()], generator=generator)

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.success
    assert result.updates_generated == 3
    assert result.updates_applied == 2
    assert len(result.errors) == 1
    assert isinstance(result.errors[0], WriteError)
    assert result.errors[0].file_path == unwritable
    assert result.summary == (
        "Generated 3 documentation update(s). Applied 2 update(s). "
        "Encountered 1 error(s). Analyzed 1 file(s). Found 1 API change(s)."
    )

    assert "get_user(1, deleted=True)" in (docs_dir / "a.md").read_text(encoding="utf-8")
    assert (docs_dir / "a.md.backup").read_text(encoding="utf-8") == "# a\n\nCall get_user(1) here.\n"
    assert "deleted=True" not in (docs_dir / "c.md").read_text(encoding="utf-8")


@pytest.mark.asyncio
async def test_changes_below_threshold_stop_before_mapping(config):
    doc_only = modified_change(
        old='def get_user(user_id):\n    """Old."""\n',
        new='def get_user(user_id):\n    """New."""\n',
    )
    generator = FakeGenerator()
    agent = make_agent(changes=[doc_only], generator=generator)

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.success
    assert result.summary == "No changes meet the minimum severity threshold (minor)."
    assert generator.calls == []


@pytest.mark.asyncio
async def test_patch_threshold_lets_documentation_changes_through(docs_dir):
    config = AgentConfig(documentation_paths=[str(docs_dir)], min_severity="patch")
    doc_only = modified_change(
        old='def get_user(user_id):\n    """Old."""\n',
        new='def get_user(user_id):\n    """New."""\n',
    )
    agent = make_agent(changes=[doc_only], reviewer=FakeReviewer(actions=["reject"] * 3))

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.updates_generated == 3
    assert result.updates_applied == 0


@pytest.mark.asyncio
async def test_undocumented_changes_stop_after_mapping(config):
    change = CodeChange("src/app/billing.py", "added", "python", "def charge(amount):\n    pass\n")
    generator = FakeGenerator()
    agent = make_agent(changes=[change], generator=generator)

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.success
    assert result.summary == "No documentation files affected by changes."
    assert generator.calls == []


@pytest.mark.asyncio
async def test_unparseable_file_is_skipped(config):
    broken = modified_change(path="src/app/broken.py", old="x = 1\n", new="def broken(:\n")
    agent = make_agent(changes=[broken, modified_change()])

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.success
    assert result.updates_applied == 3
    assert [type(e) for e in result.errors] == [ParseError]
    assert result.errors[0].file_path == "src/app/broken.py"
    assert "Analyzed 2 file(s)" in result.summary


@pytest.mark.asyncio
async def test_generation_failure_skips_only_that_file(docs_dir, config):
    generator = FakeGenerator(fail_for={str(docs_dir / "b.md")})
    reviewer = FakeReviewer()
    agent = make_agent(changes=[modified_change()], generator=generator, reviewer=reviewer)

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.success
    assert result.updates_generated == 2
    assert result.updates_applied == 2
    assert [type(e) for e in result.errors] == [GenerationError]
    assert [u.file_path for u in reviewer.batches[0]] == [str(docs_dir / "a.md"), str(docs_dir / "c.md")]


@pytest.mark.asyncio
async def test_review_failure_rejects_everything(docs_dir, config):
    agent = make_agent(changes=[modified_change()], reviewer=FakeReviewer(error=RuntimeError("terminal closed")))

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.success
    assert result.updates_generated == 3
    assert result.updates_applied == 0
    assert [type(e) for e in result.errors] == [ReviewError]
    assert not (docs_dir / "a.md.backup").exists()


@pytest.mark.asyncio
async def test_missing_decisions_count_as_rejections(docs_dir, config):
    agent = make_agent(changes=[modified_change()], reviewer=FakeReviewer(actions=["approve"]))

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.updates_applied == 1
    assert (docs_dir / "a.md.backup").exists()
    assert not (docs_dir / "b.md.backup").exists()


@pytest.mark.asyncio
async def test_edited_content_is_written(docs_dir, config):
    class EditingReviewer:
        async def present_batch(self, updates):
            return [ReviewDecision(action="edit", edited_content="# Edited\n")] + [
                ReviewDecision(action="reject") for _ in updates[1:]
            ]

    agent = make_agent(changes=[modified_change()], reviewer=EditingReviewer())

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.updates_applied == 1
    assert (docs_dir / "a.md").read_text(encoding="utf-8") == "# Edited\n"


@pytest.mark.asyncio
async def test_detection_failure_fails_the_run(config):
    detector = MagicMock()
    detector.detect_from_git.side_effect = RuntimeError("not a git repository")
    agent = make_agent(detector=detector)

    result = await agent.run(AgentInput(mode="git", config=config))

    assert not result.success
    assert result.summary.startswith("Pipeline failed:")
    assert "not a git repository" in result.summary
    assert result.updates_generated == 0


@pytest.mark.asyncio
async def test_files_mode_passes_target_paths(config):
    detector = MagicMock()
    detector.detect_from_files.return_value = []
    agent = make_agent(detector=detector)

    await agent.run(AgentInput(mode="files", config=config, target="src/a.py, src/b.py"))

    detector.detect_from_files.assert_called_once_with(["src/a.py", "src/b.py"])
    detector.detect_from_git.assert_not_called()


@pytest.mark.asyncio
async def test_git_mode_passes_commit(config):
    detector = MagicMock()
    detector.detect_from_git.return_value = []
    agent = make_agent(detector=detector)

    await agent.run(AgentInput(mode="git", config=config, target="abc123"))

    detector.detect_from_git.assert_called_once_with("abc123")


@pytest.mark.asyncio
async def test_runs_are_independent(config):
    agent = make_agent(changes=[modified_change()])

    first = await agent.run(AgentInput(mode="git", config=config, auto_approve=True))
    second = await agent.run(AgentInput(mode="git", config=config, auto_approve=True))

    assert first.updates_generated == second.updates_generated == 3
    assert second.errors == []
    assert Path(config.documentation_paths[0], "a.md.backup").exists()


@pytest.mark.asyncio
async def test_non_utf8_documentation_file_does_not_fail_the_run(docs_dir, config):
    (docs_dir / "legacy.md").write_bytes(b"Caf\xe9 notes\n")
    agent = make_agent(changes=[modified_change()])

    result = await agent.run(AgentInput(mode="git", config=config))

    assert result.success
    assert result.updates_generated == 3
    assert result.updates_applied == 3
    assert result.errors == []
    assert (docs_dir / "legacy.md").read_bytes() == b"Caf\xe9 notes\n"
