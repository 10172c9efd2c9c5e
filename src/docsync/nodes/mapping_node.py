"""Mapping Node: find the documentation that mentions changed API elements."""

from typing import Any, Dict, List

from loguru import logger

from docsync.engine.diff import merge_diffs
from docsync.engine.mapping import DocumentationMapper
from docsync.errors import MappingError
from docsync.models.docs import AffectedDocumentation
from docsync.models.state import PipelineState

NO_AFFECTED_DOCS_SUMMARY = "No documentation files affected by changes."


async def mapping_node(state: PipelineState) -> Dict[str, Any]:
    """Index the documentation roots and map the combined diff onto them."""
    logger.info("Executing Mapping Node")
    config = state["input"].config
    errors: List[Exception] = []

    mapper = DocumentationMapper(config.documentation_paths)
    mapper.initialize()
    logger.debug(f"Indexed {len(mapper.index)} documentation files")

    combined = merge_diffs(state["diffs"])
    try:
        affected = mapper.map_affected_docs(combined)
    except Exception as e:
        logger.error(f"Failed to map documentation: {e}")
        error = MappingError(f"Failed to map documentation: {e}")
        error.__cause__ = e
        errors.append(error)
        affected = AffectedDocumentation()

    for element in affected.missing_docs:
        logger.warning(f"Public {element.kind.value} '{element.name}' is not mentioned in any documentation")

    logger.info(f"{len(affected.files)} documentation files affected, {affected.total_references} references")
    update: Dict[str, Any] = {
        "phase": "mapping",
        "combined_diff": combined,
        "affected_docs": affected,
        "errors": errors,
    }
    if not affected.files:
        update["summary"] = NO_AFFECTED_DOCS_SUMMARY
        logger.info(NO_AFFECTED_DOCS_SUMMARY)
    return update


def route_after_mapping(state: PipelineState) -> str:
    affected = state.get("affected_docs")
    return "continue" if affected and affected.files else "stop"
