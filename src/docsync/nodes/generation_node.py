"""Generation Node: draft replacement text for every affected documentation file."""

from typing import Any, Dict, List

from langchain_core.runnables import RunnableConfig
from loguru import logger

from docsync.engine.context import build_context
from docsync.errors import GenerationError
from docsync.models.state import PipelineState
from docsync.models.update import DocumentationUpdate


async def generation_node(state: PipelineState, config: RunnableConfig) -> Dict[str, Any]:
    """Generate one update per affected file; a failed file is skipped."""
    logger.info("Executing Generation Node")
    generator = config["configurable"]["generator"]
    affected = state["affected_docs"]

    context = build_context(state["combined_diff"], affected, state["input"].config)

    updates: List[DocumentationUpdate] = []
    errors: List[Exception] = []
    for file_path, doc_file in affected.files.items():
        logger.debug(f"Generating update for {file_path}")
        try:
            updates.append(await generator.generate_update(doc_file, context))
        except Exception as e:
            logger.error(f"Failed to generate update for {file_path}: {e}")
            error = GenerationError(f"Failed to generate update for {file_path}: {e}", file_path)
            error.__cause__ = e
            errors.append(error)

    logger.info(f"Generated {len(updates)} documentation updates")
    return {"phase": "generating", "updates": updates, "errors": errors}
