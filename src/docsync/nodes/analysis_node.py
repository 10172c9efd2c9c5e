"""Analysis Node: parse each changed file and diff its API surface."""

import dataclasses
from typing import Any, Dict, List, Optional, Tuple

from langchain_core.runnables import RunnableConfig
from loguru import logger

from docsync.engine import diff as diff_engine
from docsync.errors import ParseError
from docsync.models.api import APIDiff, ChangeSeverity, CodeChange, ParsedCode
from docsync.models.state import PipelineState


def analyze_change(change: CodeChange, parser: Any) -> Tuple[ParsedCode, Optional[APIDiff]]:
    """Parse one change and return ``(parsed_new, diff_or_None)``."""
    new_parsed: ParsedCode = parser.parse(change.content, change.language)

    if change.change_type == "added":
        return new_parsed, diff_engine.added_only(new_parsed.apis)

    if change.previous_content is not None:
        old_parsed: ParsedCode = parser.parse(change.previous_content, change.language)
        return new_parsed, diff_engine.analyze(old_parsed.apis, new_parsed.apis)

    return new_parsed, None


async def analysis_node(state: PipelineState, config: RunnableConfig) -> Dict[str, Any]:
    """Diff every changed file; a file that fails to parse is skipped."""
    logger.info("Executing Analysis Node")
    parser = config["configurable"]["parser"]

    parsed_code: Dict[str, ParsedCode] = {}
    diffs: List[APIDiff] = []
    errors: List[Exception] = []
    files_analyzed = 0

    for change in state["changes"]:
        files_analyzed += 1
        logger.debug(f"Analyzing {change.change_type} file: {change.file_path}")
        try:
            parsed, diff = analyze_change(change, parser)
        except Exception as e:
            logger.error(f"Failed to parse {change.file_path}: {e}")
            error = ParseError(f"Failed to parse {change.file_path}: {e}", change.file_path)
            error.__cause__ = e
            errors.append(error)
            continue

        parsed_code[change.file_path] = parsed
        if diff is not None:
            diffs.append(diff)

    metrics = dataclasses.replace(state["metrics"], files_analyzed=files_analyzed)
    return {"phase": "analyzing", "parsed_code": parsed_code, "diffs": diffs, "metrics": metrics, "errors": errors}


async def severity_filter_node(state: PipelineState) -> Dict[str, Any]:
    """Drop diffs below the configured minimum severity."""
    logger.info("Executing Severity Filter Node")
    min_severity = ChangeSeverity(state["input"].config.min_severity)

    kept = [diff for diff in state["diffs"] if diff_engine.calculate_severity(diff).at_least(min_severity)]
    logger.info(f"{len(kept)} of {len(state['diffs'])} diffs meet the {min_severity.value} threshold")

    apis_changed = sum(diff.change_count for diff in kept)
    update: Dict[str, Any] = {
        "diffs": kept,
        "metrics": dataclasses.replace(state["metrics"], apis_changed=apis_changed),
    }
    if not kept:
        update["summary"] = f"No changes meet the minimum severity threshold ({min_severity.value})."
        logger.info(update["summary"])
    return update


def route_after_filter(state: PipelineState) -> str:
    return "continue" if state.get("diffs") else "stop"
