"""Apply Node: write approved documentation updates to disk."""

import dataclasses
import shutil
from pathlib import Path
from typing import Any, Dict, List

from loguru import logger

from docsync.errors import WriteError
from docsync.models.state import PipelineState

BACKUP_SUFFIX = ".backup"


def backup_path(file_path: str) -> Path:
    return Path(f"{file_path}{BACKUP_SUFFIX}")


def write_documentation_file(file_path: str, content: str) -> None:
    """Overwrite a documentation file, copying any existing version to ``<path>.backup`` first."""
    path = Path(file_path)
    if path.exists():
        shutil.copyfile(path, backup_path(file_path))

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


async def apply_node(state: PipelineState) -> Dict[str, Any]:
    """Write every approved or edited update. Files already written stay written if a later one fails."""
    logger.info("Executing Apply Node")
    errors: List[Exception] = []
    applied = 0

    for update, decision in zip(state.get("updates", []), state.get("decisions", [])):
        if not decision.accepted:
            logger.debug(f"Skipping rejected update for {update.file_path}")
            continue
        try:
            write_documentation_file(update.file_path, decision.content_for(update))
            applied += 1
            logger.info(f"Updated {update.file_path}")
        except Exception as e:
            logger.error(f"Failed to write {update.file_path}: {e}")
            error = WriteError(f"Failed to write {update.file_path}: {e}", update.file_path)
            error.__cause__ = e
            errors.append(error)

    return {
        "phase": "applying",
        "updates_applied": applied,
        "metrics": dataclasses.replace(state["metrics"], docs_updated=applied),
        "errors": errors,
    }
